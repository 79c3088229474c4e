"""Shared utility functions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable

from wpinventory.models.plugin_record import PluginRecord
from wpinventory.models.scan_result import Diagnostic, ScanResult


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def first_per_slug(records: Iterable[PluginRecord]) -> list[PluginRecord]:
    """Keep the first record seen for each slug.

    This is the reduction WordPress itself applies when one plugin directory
    holds several files with a valid header.  The detector never does it on
    its own; callers that want one record per plugin apply it to the sorted
    ``ScanResult.records``.
    """
    seen: set[str] = set()
    unique: list[PluginRecord] = []
    for record in records:
        if record.slug in seen:
            continue
        seen.add(record.slug)
        unique.append(record)
    return unique


def record_to_dict(record: PluginRecord) -> dict[str, Any]:
    """Serialize a record to JSON-compatible primitives."""
    return {
        "name": record.name,
        "version": record.version,
        "slug": record.slug,
        "relative_path": record.relative_path,
        "version_source": record.version_source.value,
        "version_mismatch": record.version_mismatch,
        "constant_version": record.constant_version,
        "other_fields": dict(record.other_fields),
    }


def diagnostic_to_dict(diagnostic: Diagnostic) -> dict[str, str]:
    return {
        "path": diagnostic.path,
        "kind": diagnostic.kind.value,
        "cause": diagnostic.cause,
    }


def result_to_dict(result: ScanResult, records: list[PluginRecord] | None = None) -> dict[str, Any]:
    """Serialize a scan result; *records* overrides ``result.records``."""
    return {
        "root": result.root,
        "cancelled": result.cancelled,
        "files_scanned": result.files_scanned,
        "records": [record_to_dict(r) for r in (result.records if records is None else records)],
        "diagnostics": [diagnostic_to_dict(d) for d in result.diagnostics],
    }


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
