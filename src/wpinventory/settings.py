"""JSON-backed persistent settings and detector configuration."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from wpinventory.core.scanner import DEFAULT_EXTENSION
from wpinventory.utils import xdg_config_home

log = logging.getLogger(__name__)

SETTINGS_PATH_PARTS = ("wpinventory", "settings.json")

_MISSING = object()


def default_max_workers() -> int:
    """Worker count used when nothing is configured."""
    return min(8, (os.cpu_count() or 1) + 4)


def default_settings_path() -> Path:
    return xdg_config_home().joinpath(*SETTINGS_PATH_PARTS)


class Settings:
    """Tunables stored in ``$XDG_CONFIG_HOME/wpinventory/settings.json``.

    Keys are dotted paths into nested JSON objects, so ``detector.max_workers``
    lives at ``{"detector": {"max_workers": ...}}``.  A missing, unreadable or
    malformed file behaves like an empty one.
    """

    _instance: Settings | None = None

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_settings_path()
        self._data = self._read()

    @classmethod
    def instance(cls) -> Settings:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def get(self, key: str, default: Any = None) -> Any:
        """Value stored under *key*, or *default* when any segment is absent."""
        section: Any = self._data
        for segment in key.split("."):
            if not isinstance(section, dict):
                return default
            section = section.get(segment, _MISSING)
            if section is _MISSING:
                return default
        return section

    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* and write the file.

        Intermediate segments that are missing or hold a scalar are replaced
        by empty objects.
        """
        *parents, leaf = key.split(".")
        section = self._data
        for segment in parents:
            child = section.get(segment)
            if not isinstance(child, dict):
                child = section[segment] = {}
            section = child
        section[leaf] = value
        self._write()

    def _read(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            log.warning("Could not load settings from %s: %s", self.path, e)
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            log.warning("Could not load settings from %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            log.warning("Ignoring settings in %s: top level is not an object", self.path)
            return {}
        return data

    def _write(self) -> None:
        # Readers never see a partially written file.
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(self._data, indent=2, sort_keys=True) + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            log.warning("Could not save settings to %s: %s", self.path, e)


@dataclass(frozen=True, slots=True)
class DetectorConfig:
    """Tunables for a detection run."""

    max_workers: int = field(default_factory=default_max_workers)
    extension: str = DEFAULT_EXTENSION
    skip_hidden: bool = True

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> DetectorConfig:
        """Build a config from stored settings, ignoring invalid values."""
        settings = settings or Settings.instance()
        defaults = cls()

        max_workers = settings.get("detector.max_workers", defaults.max_workers)
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            log.warning("Invalid detector.max_workers %r, using %d", max_workers, defaults.max_workers)
            max_workers = defaults.max_workers

        extension = settings.get("scanner.extension", defaults.extension)
        if not isinstance(extension, str) or not extension.startswith("."):
            log.warning("Invalid scanner.extension %r, using %s", extension, defaults.extension)
            extension = defaults.extension

        skip_hidden = settings.get("scanner.skip_hidden", defaults.skip_hidden)
        if not isinstance(skip_hidden, bool):
            log.warning("Invalid scanner.skip_hidden %r, using %s", skip_hidden, defaults.skip_hidden)
            skip_hidden = defaults.skip_hidden

        return cls(max_workers=max_workers, extension=extension, skip_hidden=skip_hidden)
