"""Plugin detection orchestration."""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from types import MappingProxyType
from typing import Callable, Iterable

from wpinventory.core.header_parser import HEADER_WINDOW, NAME_FIELD, VERSION_FIELD, parse_header
from wpinventory.core.scanner import Scanner
from wpinventory.core.version_resolver import resolve_version
from wpinventory.errors import MissingHeaderError
from wpinventory.models.plugin_record import PluginRecord
from wpinventory.models.scan_result import CandidatePath, Diagnostic, DiagnosticKind, ScanResult
from wpinventory.settings import DetectorConfig

log = logging.getLogger(__name__)

RecordCallback = Callable[[PluginRecord], None]
Outcome = PluginRecord | Diagnostic | None


def derive_slug(candidate: CandidatePath, extension: str) -> str:
    """Directory name for nested files, file name minus extension otherwise."""
    if candidate.depth == 2:
        return candidate.path.parent.name
    name = candidate.path.name
    return name[: -len(extension)] if extension and name.endswith(extension) else candidate.path.stem


def build_record(candidate: CandidatePath, data: bytes, extension: str) -> PluginRecord:
    """Parse a header window into a record.

    Raises:
        MissingHeaderError: *data* carries no valid plugin header.
    """
    fields = parse_header(data)
    resolution = resolve_version(fields, data)
    if resolution.mismatch:
        log.warning(
            "Version mismatch in %s: header says %s, constant says %s",
            candidate.relative_path,
            resolution.version,
            resolution.constant_version,
        )
    return PluginRecord(
        name=fields[NAME_FIELD],
        version=resolution.version,
        slug=derive_slug(candidate, extension),
        relative_path=candidate.relative_path,
        other_fields=MappingProxyType(
            {k: v for k, v in fields.items() if k not in (NAME_FIELD, VERSION_FIELD)}
        ),
        version_source=resolution.source,
        version_mismatch=resolution.mismatch,
        constant_version=resolution.constant_version,
    )


def detect_file(candidate: CandidatePath, extension: str) -> Outcome:
    """Read, parse and resolve a single candidate.

    Returns a record, a diagnostic when the file could not be handled, or
    None when it simply has no plugin header.
    """
    try:
        with open(candidate.path, "rb") as f:
            data = f.read(HEADER_WINDOW)
    except OSError as e:
        log.warning("Cannot read %s: %s", candidate.path, e)
        return Diagnostic(candidate.relative_path, str(e), DiagnosticKind.FILE_READ)

    try:
        return build_record(candidate, data, extension)
    except MissingHeaderError:
        return None
    except Exception as e:
        log.exception("Failed to process %s", candidate.path)
        return Diagnostic(candidate.relative_path, f"{type(e).__name__}: {e}", DiagnosticKind.PROCESSING_ERROR)


class Detector:
    """Builds a plugin inventory for a directory tree."""

    def __init__(self, config: DetectorConfig | None = None, scanner: Scanner | None = None) -> None:
        self.config = config or DetectorConfig()
        self.scanner = scanner or Scanner(self.config.extension, self.config.skip_hidden)

    def detect(
        self,
        root: str | os.PathLike,
        cancel: threading.Event | None = None,
        on_record: RecordCallback | None = None,
    ) -> ScanResult:
        """Detect every plugin header under *root*.

        Files are processed on a bounded thread pool, then records are sorted
        by relative path and diagnostics by path so the result does not
        depend on scheduling.

        Args:
            root: Plugin directory, e.g. ``wp-content/plugins``.
            cancel: Once set, no further files are dispatched and the
                    partial result is returned with ``cancelled=True``.
            on_record: Optional callback fired for each record as it is
                       produced, possibly from a worker thread.

        Returns:
            The scan result.  A non-empty diagnostics list is informational.

        Raises:
            FatalScanError: *root* cannot be opened.
        """
        started = time.monotonic()
        cancel = cancel or threading.Event()
        result = ScanResult(root=str(root))
        lock = threading.Lock()

        def add_diagnostic(diagnostic: Diagnostic) -> None:
            with lock:
                result.diagnostics.append(diagnostic)

        candidates = self.scanner.scan(root, on_diagnostic=add_diagnostic)

        if self.config.max_workers > 1:
            self._detect_parallel(candidates, result, lock, cancel, on_record)
        else:
            self._detect_sequential(candidates, result, lock, cancel, on_record)

        result.records.sort(key=lambda r: r.relative_path)
        result.diagnostics.sort(key=lambda d: (d.path, d.kind.value))
        result.elapsed = time.monotonic() - started
        log.info(
            "Scanned %d files under %s: %d plugin headers, %d diagnostics%s",
            result.files_scanned,
            root,
            len(result.records),
            len(result.diagnostics),
            " (cancelled)" if result.cancelled else "",
        )
        return result

    def _detect_sequential(
        self,
        candidates: Iterable[CandidatePath],
        result: ScanResult,
        lock: threading.Lock,
        cancel: threading.Event,
        on_record: RecordCallback | None,
    ) -> None:
        """Process candidates one at a time in the calling thread."""
        for candidate in candidates:
            if cancel.is_set():
                result.cancelled = True
                return
            self._merge(detect_file(candidate, self.scanner.extension), result, lock, on_record)

    def _detect_parallel(
        self,
        candidates: Iterable[CandidatePath],
        result: ScanResult,
        lock: threading.Lock,
        cancel: threading.Event,
        on_record: RecordCallback | None,
    ) -> None:
        """Process candidates on a thread pool.

        The pool size caps how many files are open at once.  The directory
        walk itself runs here, ahead of the workers.
        """

        def _work(candidate: CandidatePath) -> None:
            if cancel.is_set():
                with lock:
                    result.cancelled = True
                return
            self._merge(detect_file(candidate, self.scanner.extension), result, lock, on_record)

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = []
            for candidate in candidates:
                if cancel.is_set():
                    with lock:
                        result.cancelled = True
                    break
                futures.append(executor.submit(_work, candidate))
            for future in futures:
                future.result()

    @staticmethod
    def _merge(
        outcome: Outcome,
        result: ScanResult,
        lock: threading.Lock,
        on_record: RecordCallback | None,
    ) -> None:
        with lock:
            result.files_scanned += 1
            if isinstance(outcome, PluginRecord):
                result.records.append(outcome)
            elif isinstance(outcome, Diagnostic):
                result.diagnostics.append(outcome)
        if on_record and isinstance(outcome, PluginRecord):
            on_record(outcome)
