"""Two-level plugin directory walk."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterator

from wpinventory.errors import FatalScanError
from wpinventory.models.scan_result import CandidatePath, Diagnostic, DiagnosticKind

log = logging.getLogger(__name__)

DiagnosticCallback = Callable[[Diagnostic], None]

DEFAULT_EXTENSION = ".php"


def _entry_kind(entry: os.DirEntry) -> str | None:
    """Return 'file', 'dir' or None, following symlinks."""
    try:
        if entry.is_file():
            return "file"
        if entry.is_dir():
            return "dir"
    except OSError:
        pass
    return None


class Scanner:
    """Lists plugin source files the way WordPress does.

    Only files directly in the root and files directly inside its immediate
    subdirectories are considered.  Anything deeper is never yielded, no
    matter what it contains.
    """

    def __init__(self, extension: str = DEFAULT_EXTENSION, skip_hidden: bool = True) -> None:
        self.extension = extension
        self.skip_hidden = skip_hidden

    def scan(
        self,
        root: str | os.PathLike,
        on_diagnostic: DiagnosticCallback | None = None,
    ) -> Iterator[CandidatePath]:
        """Start scanning *root* and return an iterator of candidates.

        The root is listed before this method returns, so an unreadable root
        raises here rather than on first iteration.

        Raises:
            FatalScanError: *root* is missing, not a directory or unreadable.
        """
        root_path = Path(root)
        try:
            real_root = root_path.resolve(strict=True)
            with os.scandir(root_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise FatalScanError(str(root_path), e.strerror or str(e)) from e

        log.debug("Scanning %s (%d entries)", root_path, len(entries))
        return self._walk(real_root, entries, on_diagnostic)

    def _walk(
        self,
        real_root: Path,
        entries: list[os.DirEntry],
        on_diagnostic: DiagnosticCallback | None,
    ) -> Iterator[CandidatePath]:
        for entry in entries:
            if self._is_hidden(entry.name):
                continue
            kind = _entry_kind(entry)
            if kind is None:
                continue
            if entry.is_symlink() and not self._inside_root(entry, real_root, entry.name, on_diagnostic):
                continue

            if kind == "file":
                if entry.name.endswith(self.extension):
                    yield CandidatePath(Path(entry.path), 1, entry.name)
            else:
                yield from self._walk_subdir(real_root, entry, on_diagnostic)

    def _walk_subdir(
        self,
        real_root: Path,
        directory: os.DirEntry,
        on_diagnostic: DiagnosticCallback | None,
    ) -> Iterator[CandidatePath]:
        try:
            with os.scandir(directory.path) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            log.warning("Cannot list %s: %s", directory.path, e)
            _emit(on_diagnostic, Diagnostic(directory.name, str(e), DiagnosticKind.SUBDIRECTORY_ACCESS))
            return

        for child in children:
            if self._is_hidden(child.name) or not child.name.endswith(self.extension):
                continue
            if _entry_kind(child) != "file":
                continue
            relative = f"{directory.name}/{child.name}"
            if child.is_symlink() and not self._inside_root(child, real_root, relative, on_diagnostic):
                continue
            yield CandidatePath(Path(child.path), 2, relative)

    def _is_hidden(self, name: str) -> bool:
        return self.skip_hidden and name.startswith(".")

    @staticmethod
    def _inside_root(
        entry: os.DirEntry,
        real_root: Path,
        relative: str,
        on_diagnostic: DiagnosticCallback | None,
    ) -> bool:
        """Check that a symlink resolves inside the scan root."""
        target = Path(entry.path).resolve()
        if target.is_relative_to(real_root):
            return True
        log.warning("Symlink %s points outside the scan root (%s), skipping", entry.path, target)
        _emit(
            on_diagnostic,
            Diagnostic(relative, f"symlink target {target} is outside the scan root", DiagnosticKind.SYMLINK_ESCAPE),
        )
        return False


def _emit(on_diagnostic: DiagnosticCallback | None, diagnostic: Diagnostic) -> None:
    if on_diagnostic:
        on_diagnostic(diagnostic)
