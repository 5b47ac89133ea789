"""
Error kinds raised by the upgrade ledger.

Nothing inside the ledger catches these. A failed read or write aborts the
current installation pass; retrying is the driver's decision.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for ledger failures."""


class StorageError(LedgerError):
    """The record store failed to read, create, or write a node or property."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class ConcurrentModificationError(StorageError):
    """A guarded write found a different node revision than the one it read."""

    def __init__(self, path: str, expected: int, actual: int):
        super().__init__(
            f"Concurrent modification of {path}: expected revision {expected}, found {actual}",
            path=path,
        )
        self.expected = expected
        self.actual = actual


class LedgerDataError(LedgerError):
    """Stored ledger data does not have the shape the ledger writes."""
