"""Error types raised by the board storage engine.

Filesystem read failures never surface through these: the engine recovers
from them silently. Only validation failures and writes that cannot
complete reach the caller.
"""

from __future__ import annotations


class BoardError(Exception):
    """Base class for errors reported to board callers."""


class BoardValidationError(BoardError, ValueError):
    """Input was missing, blank or referenced something that does not exist.

    Raised before any write, so the board on disk is unchanged.
    """


class BoardStorageError(BoardError):
    """A write or delete against the filesystem could not complete."""

    def __init__(self, message: str, path: object = None):
        super().__init__(message)
        self.path = path
