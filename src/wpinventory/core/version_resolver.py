"""Reconcile the header version with an in-source version constant."""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from wpinventory.core.header_parser import VERSION_FIELD, decode_window
from wpinventory.models.plugin_record import HeaderFieldSet, VersionSource

log = logging.getLogger(__name__)

# define( 'AKISMET_VERSION', '5.3' ); or const VERSION = "2.0-beta1";
_CONSTANT_RE = re.compile(
    r"""(?:\bdefine\s*\(\s*(?P<dq>['"])(?P<define_name>(?:[A-Z0-9_]*_)?VERSION)(?P=dq)\s*,"""
    r"""|\bconst\s+(?P<const_name>(?:[A-Z0-9_]*_)?VERSION)\s*=)"""
    r"""\s*(?P<vq>['"])(?P<value>\d+(?:\.\d+)*(?:[-+]?[A-Za-z][0-9A-Za-z.]*)?)(?P=vq)"""
)


class Resolution(NamedTuple):
    """Outcome of version resolution for one file."""

    version: str
    source: VersionSource
    mismatch: bool
    constant_version: str = ""


def find_version_constant(data: bytes) -> str:
    """Return the first ``*_VERSION`` constant literal in the window, or ''."""
    match = _CONSTANT_RE.search(decode_window(data))
    return match.group("value") if match else ""


def resolve_version(fields: HeaderFieldSet, data: bytes) -> Resolution:
    """Decide the final version for a parsed header.

    A non-empty ``Version`` header always wins.  Without it the first
    ``VERSION``/``*_VERSION`` constant in the same window is used.  When
    both exist and differ the result is flagged, never corrected.
    """
    header_version = fields.get(VERSION_FIELD, "")
    constant_version = find_version_constant(data)

    if header_version:
        mismatch = bool(constant_version) and constant_version != header_version
        return Resolution(header_version, VersionSource.HEADER, mismatch, constant_version)

    if constant_version:
        log.debug("Header has no version, using constant %s", constant_version)
        return Resolution(constant_version, VersionSource.CONSTANT_FALLBACK, False, constant_version)

    return Resolution("", VersionSource.HEADER, False)
