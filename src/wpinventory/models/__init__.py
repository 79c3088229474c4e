"""wpinventory data models."""

from wpinventory.models.plugin_record import HeaderFieldSet, PluginRecord, VersionSource
from wpinventory.models.scan_result import CandidatePath, Diagnostic, DiagnosticKind, ScanResult

__all__ = [
    "CandidatePath",
    "Diagnostic",
    "DiagnosticKind",
    "HeaderFieldSet",
    "PluginRecord",
    "ScanResult",
    "VersionSource",
]
