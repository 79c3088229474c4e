"""Scan input and output dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from wpinventory.models.plugin_record import PluginRecord


@dataclass(frozen=True, slots=True)
class CandidatePath:
    """A source file found by the scanner.

    ``depth`` is 1 for files directly under the root and 2 for files
    inside one of its immediate subdirectories.
    """

    path: Path
    depth: int
    relative_path: str


class DiagnosticKind(str, Enum):
    """Non-fatal problems collected during a scan."""

    SUBDIRECTORY_ACCESS = "subdirectory_access"
    FILE_READ = "file_read"
    SYMLINK_ESCAPE = "symlink_escape"
    PROCESSING_ERROR = "processing_error"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """Something that went wrong for a single path without failing the scan."""

    path: str
    cause: str
    kind: DiagnosticKind


@dataclass(slots=True)
class ScanResult:
    """Result of detecting plugins under one root."""

    root: str
    records: list[PluginRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    cancelled: bool = False
    files_scanned: int = 0
    elapsed: float = 0.0
