"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from wpinventory.settings import Settings


@pytest.fixture
def isolate_settings(tmp_path, monkeypatch):
    """Redirect settings to a temp XDG config directory."""
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr(Settings, "_instance", None)
    return config_home / "wpinventory" / "settings.json"


@pytest.fixture
def make_tree(tmp_path):
    """Build a plugins directory from a {relative_path: bytes} mapping."""

    def _make(files: dict[str, bytes], name: str = "plugins") -> Path:
        root = tmp_path / name
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return root

    return _make
