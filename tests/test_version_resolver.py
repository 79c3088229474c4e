"""Tests for version resolution."""

from __future__ import annotations

from types import MappingProxyType

import pytest

from wpinventory.core.header_parser import parse_header
from wpinventory.core.version_resolver import find_version_constant, resolve_version
from wpinventory.models.plugin_record import VersionSource
from tests.plugin_samples import AKISMET, MISMATCHED_VERSION, NO_VERSION_HEADER


def _fields(**values: str):
    data = {"Plugin Name": "Test Plugin"}
    data.update({k.replace("_", " "): v for k, v in values.items()})
    return MappingProxyType(data)


class TestResolveVersion:
    def test_header_version_is_authoritative(self):
        resolution = resolve_version(_fields(Version="1.7.2"), b"<?php\n")
        assert resolution.version == "1.7.2"
        assert resolution.source is VersionSource.HEADER
        assert resolution.mismatch is False

    def test_constant_fallback(self):
        fields = parse_header(NO_VERSION_HEADER)
        resolution = resolve_version(fields, NO_VERSION_HEADER)
        assert resolution.version == "2.0-beta1"
        assert resolution.source is VersionSource.CONSTANT_FALLBACK
        assert resolution.mismatch is False

    def test_empty_header_version_falls_back(self):
        data = b"<?php\ndefine( 'MY_PLUGIN_VERSION', '3.0' );\n"
        resolution = resolve_version(_fields(Version=""), data)
        assert resolution.version == "3.0"
        assert resolution.source is VersionSource.CONSTANT_FALLBACK

    def test_mismatch_flagged_not_corrected(self):
        fields = parse_header(MISMATCHED_VERSION)
        resolution = resolve_version(fields, MISMATCHED_VERSION)
        assert resolution.version == "1.0"
        assert resolution.source is VersionSource.HEADER
        assert resolution.mismatch is True
        assert resolution.constant_version == "1.0.1"

    def test_matching_constant_is_not_a_mismatch(self):
        resolution = resolve_version(parse_header(AKISMET), AKISMET)
        assert resolution.version == "5.3"
        assert resolution.mismatch is False
        assert resolution.constant_version == "5.3"

    def test_no_version_anywhere(self):
        resolution = resolve_version(_fields(), b"<?php\n// nothing here\n")
        assert resolution.version == ""
        assert resolution.source is VersionSource.HEADER
        assert resolution.mismatch is False

    def test_unpacks_like_a_tuple(self):
        version, source, mismatch, _ = resolve_version(_fields(Version="2.1"), b"")
        assert (version, source, mismatch) == ("2.1", VersionSource.HEADER, False)


class TestFindVersionConstant:
    @pytest.mark.parametrize(
        "source, expected",
        [
            (b"define( 'AKISMET_VERSION', '5.3' );", "5.3"),
            (b'define("WPSEO_VERSION", "22.1");', "22.1"),
            (b"define('VERSION', '1.0.0-rc.1');", "1.0.0-rc.1"),
            (b"const VERSION = '4.5.6';", "4.5.6"),
            (b"\tconst PLUGIN_VERSION = \"3.1b2\";", "3.1b2"),
            (b"define( 'WC_VERSION' , '8.6.1' );", "8.6.1"),
        ],
    )
    def test_matches(self, source, expected):
        assert find_version_constant(b"<?php\n" + source + b"\n") == expected

    @pytest.mark.parametrize(
        "source",
        [
            b"define( 'VERSIONS', '1.0' );",
            b"define( 'MY_VERSION_NUMBER', '1.0' );",
            b"define( 'my_plugin_version', '1.0' );",
            b"define( 'FOOVERSION', '1.0' );",
            b"define( 'DB_VERSION', 'latest' );",
            b"$version = '1.0';",
        ],
    )
    def test_non_matches(self, source):
        assert find_version_constant(b"<?php\n" + source + b"\n") == ""

    def test_first_match_wins(self):
        data = b"<?php\ndefine( 'A_VERSION', '1.1' );\ndefine( 'B_VERSION', '2.2' );\n"
        assert find_version_constant(data) == "1.1"

    def test_constant_beyond_window_ignored(self):
        data = b"<?php\n" + b"x" * 9000 + b"\ndefine( 'LATE_VERSION', '9.9' );\n"
        assert find_version_constant(data) == ""
