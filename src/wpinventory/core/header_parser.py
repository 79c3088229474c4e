"""Plugin header extraction.

WordPress reads plugin metadata from a comment block near the top of a PHP
file, looking only at the first 8 KB::

    /*
     * Plugin Name: Hello Dolly
     * Version: 1.7.2
     */

This module reproduces that lookup on an in-memory byte window.  It never
touches the filesystem; callers hand it the bytes they read.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType

from wpinventory.errors import MissingHeaderError
from wpinventory.models.plugin_record import HeaderFieldSet

log = logging.getLogger(__name__)

HEADER_WINDOW = 8192
"""Number of leading bytes WordPress inspects for a plugin header."""

NAME_FIELD = "Plugin Name"
VERSION_FIELD = "Version"

STANDARD_HEADERS = frozenset({
    "Plugin Name",
    "Plugin URI",
    "Description",
    "Version",
    "Requires at least",
    "Requires PHP",
    "Tested up to",
    "Author",
    "Author URI",
    "License",
    "License URI",
    "Text Domain",
    "Domain Path",
    "Network",
    "Update URI",
    "Requires Plugins",
})

# Leading whitespace, an optional "<?php" opener and any run of comment
# markers, then "Name:" and the rest of the physical line.
_FIELD_LINE_RE = re.compile(
    r"^[ \t]*(?:<\?php)?[ \t/*#@]*"
    r"(?P<name>[A-Z][A-Za-z0-9]*(?: [A-Za-z][A-Za-z0-9]*)*)"
    r":(?P<value>[^\n]*)$",
    re.MULTILINE,
)
_CAPITALIZED_NAME_RE = re.compile(r"[A-Z][A-Za-z0-9]*(?: [A-Z][A-Za-z0-9]*)*")
_VALUE_CLEANUP_RE = re.compile(r"\s*(?:\*/|\?>).*")

# Outside a /* */ block a header is a run of "//" or "#" comment lines, or of
# bare "Name: value" lines. "Name::" is a PHP scope operator, not a field.
_LINE_COMMENT_RE = re.compile(r"[ \t]*(?:<\?php)?[ \t]*(?://|#)")
_BARE_FIELD_RE = re.compile(r"[ \t]*(?P<name>[A-Z][A-Za-z0-9]*(?: [A-Za-z][A-Za-z0-9]*)*):(?!:)")


def decode_window(data: bytes) -> str:
    """Decode the header window as UTF-8, replacing invalid sequences.

    Newlines are normalized to ``\\n`` so that line anchors behave the same
    for files saved with Windows or classic Mac line endings.
    """
    text = data[:HEADER_WINDOW].decode("utf-8", errors="replace")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def is_recognized_field(name: str) -> bool:
    """Whether *name* counts as a header field (case-sensitive)."""
    return name in STANDARD_HEADERS or _CAPITALIZED_NAME_RE.fullmatch(name) is not None


def clean_value(raw: str) -> str:
    """Cut a trailing ``*/`` or ``?>`` (and anything after it), then trim."""
    return _VALUE_CLEANUP_RE.sub("", raw).strip()


def _is_header_line(line: str) -> bool:
    """Whether *line* can belong to a header written without ``/* */``."""
    if _LINE_COMMENT_RE.match(line):
        return True
    match = _BARE_FIELD_RE.match(line)
    return match is not None and is_recognized_field(match.group("name"))


def _block_end(text: str, anchor: re.Match[str]) -> int:
    """End of a ``/* ... */`` block that encloses the *anchor* line."""
    value = anchor.group("value")
    close = value.find("*/")
    if close != -1 and value.rfind("/*", 0, close) == -1:
        return anchor.end()
    end = text.find("*/", anchor.end())
    return len(text) if end == -1 else end


def _line_run(text: str, anchor: re.Match[str], floor: int) -> tuple[int, int]:
    """Span of the contiguous header lines around an *anchor* outside ``/* */``.

    The run stops at a blank line, a line of code or a new ``/*`` comment,
    and never reaches back past *floor*.
    """
    start = anchor.start()
    while start > floor:
        prev = text.rfind("\n", 0, start - 1) + 1
        if prev < floor or not _is_header_line(text[prev:start - 1]):
            break
        start = prev

    end = anchor.end()
    while end < len(text):
        nxt = text.find("\n", end + 1)
        if nxt == -1:
            nxt = len(text)
        if not _is_header_line(text[end + 1:nxt]):
            break
        end = nxt
    return start, end


def _header_block(text: str, anchor: re.Match[str]) -> tuple[int, int]:
    """Return the (start, end) span of the header around the *anchor* line."""
    name_pos = anchor.start("name")
    opened = text.rfind("/*", 0, name_pos)
    closed = text.rfind("*/", 0, name_pos)
    if opened > closed:
        # Field lines are anchored at line starts.
        return text.rfind("\n", 0, opened) + 1, _block_end(text, anchor)
    return _line_run(text, anchor, closed + 2 if closed != -1 else 0)


def parse_header(data: bytes) -> HeaderFieldSet:
    """Extract plugin header fields from the first 8 KB of a file.

    Args:
        data: Leading bytes of the file.  Anything past ``HEADER_WINDOW``
              is ignored.

    Returns:
        Read-only mapping of field name to value, in the order the fields
        appear.  When a field repeats, the first occurrence is kept.

    Raises:
        MissingHeaderError: The window has no ``Plugin Name`` field, or the
            first one found is empty.
    """
    text = decode_window(data)

    anchor = None
    for match in _FIELD_LINE_RE.finditer(text):
        if match.group("name") == NAME_FIELD:
            anchor = match
            break
    if anchor is None:
        raise MissingHeaderError("no 'Plugin Name' field in header window")

    start, end = _header_block(text, anchor)
    fields: dict[str, str] = {}
    for match in _FIELD_LINE_RE.finditer(text, start, end):
        name = match.group("name")
        if name in fields or not is_recognized_field(name):
            continue
        fields[name] = clean_value(match.group("value"))

    if not fields.get(NAME_FIELD):
        raise MissingHeaderError("'Plugin Name' field is empty")

    log.debug("Parsed header '%s' with %d fields", fields[NAME_FIELD], len(fields))
    return MappingProxyType(fields)
