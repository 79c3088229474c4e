"""Exceptions raised by the detection engine."""

from __future__ import annotations


class WpInventoryError(Exception):
    """Base class for wpinventory errors."""


class FatalScanError(WpInventoryError):
    """The scan root itself could not be opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot scan {path}: {reason}")
        self.path = path
        self.reason = reason


class MissingHeaderError(WpInventoryError):
    """No plugin header with a non-empty ``Plugin Name`` in the window."""
