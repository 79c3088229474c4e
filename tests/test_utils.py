"""Tests for shared helpers."""

from __future__ import annotations

from types import MappingProxyType

from wpinventory.models.plugin_record import PluginRecord, VersionSource
from wpinventory.models.scan_result import Diagnostic, DiagnosticKind, ScanResult
from wpinventory.utils import first_per_slug, format_elapsed, record_to_dict, result_to_dict


def _record(name: str, slug: str, path: str, **kwargs) -> PluginRecord:
    return PluginRecord(name=name, version=kwargs.pop("version", "1.0"), slug=slug, relative_path=path, **kwargs)


class TestFirstPerSlug:
    def test_keeps_first_record_per_slug(self):
        records = [
            _record("First", "dup", "dup/a.php"),
            _record("Second", "dup", "dup/b.php"),
            _record("Other", "other", "other/other.php"),
        ]
        assert [r.name for r in first_per_slug(records)] == ["First", "Other"]

    def test_empty(self):
        assert first_per_slug([]) == []


class TestSerialization:
    def test_record_to_dict(self):
        record = _record(
            "Drift",
            "drift",
            "drift/drift.php",
            version="1.0",
            other_fields=MappingProxyType({"Author": "Someone"}),
            version_source=VersionSource.HEADER,
            version_mismatch=True,
            constant_version="1.0.1",
        )
        assert record_to_dict(record) == {
            "name": "Drift",
            "version": "1.0",
            "slug": "drift",
            "relative_path": "drift/drift.php",
            "version_source": "header",
            "version_mismatch": True,
            "constant_version": "1.0.1",
            "other_fields": {"Author": "Someone"},
        }

    def test_result_to_dict_with_record_override(self):
        result = ScanResult(
            root="/srv/plugins",
            records=[_record("A", "a", "a/a.php"), _record("B", "a", "a/b.php")],
            diagnostics=[Diagnostic("c", "Permission denied", DiagnosticKind.SUBDIRECTORY_ACCESS)],
            files_scanned=3,
        )
        data = result_to_dict(result, first_per_slug(result.records))

        assert data["root"] == "/srv/plugins"
        assert data["files_scanned"] == 3
        assert [r["name"] for r in data["records"]] == ["A"]
        assert data["diagnostics"] == [{"path": "c", "kind": "subdirectory_access", "cause": "Permission denied"}]


class TestFormatElapsed:
    def test_milliseconds(self):
        assert format_elapsed(0.25) == "250 ms"

    def test_seconds(self):
        assert format_elapsed(12.34) == "12.3s"

    def test_minutes(self):
        assert format_elapsed(125) == "2m 5s"
