"""Detected plugin record."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

HeaderFieldSet = Mapping[str, str]
"""Read-only, insertion-ordered mapping of header field name to value."""


class VersionSource(str, Enum):
    """Where a record's version string came from."""

    HEADER = "header"
    CONSTANT_FALLBACK = "constant-fallback"


@dataclass(frozen=True, slots=True)
class PluginRecord:
    """A plugin header found in one file of the scanned tree.

    ``slug`` is the parent directory name for files one level down and the
    file stem for files sitting directly in the scan root.
    ``version_mismatch`` is set when the header version and a ``*_VERSION``
    constant in the same file disagree; ``version`` keeps the header value.
    """

    name: str
    version: str
    slug: str
    relative_path: str
    other_fields: HeaderFieldSet = field(default_factory=lambda: MappingProxyType({}))
    version_source: VersionSource = VersionSource.HEADER
    version_mismatch: bool = False
    constant_version: str = ""
