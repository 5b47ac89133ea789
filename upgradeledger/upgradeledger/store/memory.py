"""Process-local record store."""

from __future__ import annotations

from ..errors import ConcurrentModificationError, StorageError
from .base import NodeRecord, PropertyValue, RecordStore, parent_path


class MemoryRecordStore(RecordStore):
    """
    Record store kept in a dict keyed by node path.

    Not durable. Used for tests and dry runs; records are copied on the
    way in and out so callers never share mutable state with the store.
    """

    def __init__(self) -> None:
        self._records: dict[str, NodeRecord] = {}

    def _load(self, path: str) -> NodeRecord | None:
        record = self._records.get(path)
        return record.copy() if record is not None else None

    def _create(self, paths: list[str]) -> None:
        for path in paths:
            self._records.setdefault(path, NodeRecord())

    def _write(
        self,
        path: str,
        name: str,
        value: PropertyValue,
        expected_revision: int | None,
    ) -> int:
        record = self._records.get(path)
        if record is None:
            raise StorageError(f"Node not found: {path}", path=path)
        if expected_revision is not None and record.revision != expected_revision:
            raise ConcurrentModificationError(path, expected_revision, record.revision)
        record.properties[name] = list(value) if isinstance(value, list) else value
        record.revision += 1
        return record.revision

    def _children(self, path: str) -> list[str]:
        return [p for p in self._records if p != path and parent_path(p) == path]

    def __len__(self) -> int:
        return len(self._records)
