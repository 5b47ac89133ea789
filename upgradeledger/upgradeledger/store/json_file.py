"""
Record store persisted as a single JSON document.

Document layout::

    {
      "format": 1,
      "nodes": {
        "/var/upgrade": {
          "revision": 2,
          "properties": {
            "version": {"type": "string", "value": "1.2.0"},
            "time": {"type": "date", "value": "2024-01-01T00:00:00+00:00"}
          }
        },
        "/var/upgrade/setup": {
          "revision": 1,
          "properties": {
            "actions": {"type": "string[]", "value": ["addIndex_h1"]}
          }
        }
      }
    }

The document is re-read for every operation so a guarded write compares
against what is on disk, not against a cached copy. Writes go to a temp
file that is then renamed over the document.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from ..errors import ConcurrentModificationError, StorageError
from .base import NodeRecord, PropertyValue, RecordStore, parent_path

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1

TYPE_STRING = "string"
TYPE_STRING_ARRAY = "string[]"
TYPE_DATE = "date"


def encode_value(value: PropertyValue) -> dict[str, Any]:
    """Encode a property value with its type tag."""
    if isinstance(value, datetime):
        return {"type": TYPE_DATE, "value": value.isoformat()}
    if isinstance(value, list):
        return {"type": TYPE_STRING_ARRAY, "value": list(value)}
    return {"type": TYPE_STRING, "value": value}


def decode_value(data: Any) -> PropertyValue:
    """
    Decode a type-tagged property value.

    Raises:
        ValueError: the entry is not a valid typed value
    """
    if not isinstance(data, dict) or "type" not in data or "value" not in data:
        raise ValueError(f"expected a typed value, got {data!r}")
    kind, value = data["type"], data["value"]
    if kind == TYPE_STRING and isinstance(value, str):
        return value
    if kind == TYPE_STRING_ARRAY and isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    if kind == TYPE_DATE and isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            raise ValueError(f"date without timezone: {value!r}")
        return parsed
    raise ValueError(f"invalid {kind!r} value: {value!r}")


class JsonFileRecordStore(RecordStore):
    """Durable record store backed by one JSON file."""

    def __init__(self, path: Path):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document (created on first write)
        """
        self.path = Path(path)

    def _ensure_dir(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create store directory {self.path.parent}: {e}") from e

    def _read_document(self) -> dict[str, Any]:
        if not self.path.exists():
            return {"format": FORMAT_VERSION, "nodes": {}}
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Cannot read record store {self.path}: {e}") from e
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Record store {self.path} is not valid JSON: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("nodes"), dict):
            raise StorageError(f"Record store {self.path} has no 'nodes' table")
        if document.get("format") != FORMAT_VERSION:
            raise StorageError(
                f"Record store {self.path} has unsupported format {document.get('format')!r}"
            )
        return document

    def _write_document(self, document: dict[str, Any]) -> None:
        self._ensure_dir()
        serialized = json.dumps(document, indent=2, sort_keys=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            temp_path.write_text(serialized + "\n", encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Cannot write record store {self.path}: {e}") from e

    def _decode_record(self, path: str, data: Any) -> NodeRecord:
        if not isinstance(data, dict):
            raise StorageError(f"Malformed node entry in {self.path}", path=path)
        revision = data.get("revision", 0)
        properties = data.get("properties", {})
        if not isinstance(revision, int) or not isinstance(properties, dict):
            raise StorageError(f"Malformed node entry in {self.path}", path=path)
        record = NodeRecord(revision=revision)
        for name, raw in properties.items():
            try:
                record.properties[name] = decode_value(raw)
            except ValueError as e:
                raise StorageError(
                    f"Malformed property {name!r} of {path} in {self.path}: {e}", path=path
                ) from e
        return record

    def _load(self, path: str) -> NodeRecord | None:
        data = self._read_document()["nodes"].get(path)
        if data is None:
            return None
        return self._decode_record(path, data)

    def _create(self, paths: list[str]) -> None:
        document = self._read_document()
        nodes = document["nodes"]
        missing = [p for p in paths if p not in nodes]
        if not missing:
            return
        for path in missing:
            nodes[path] = {"revision": 0, "properties": {}}
        self._write_document(document)
        logger.debug("created nodes %s in %s", missing, self.path)

    def _write(
        self,
        path: str,
        name: str,
        value: PropertyValue,
        expected_revision: int | None,
    ) -> int:
        document = self._read_document()
        data = document["nodes"].get(path)
        if data is None:
            raise StorageError(f"Node not found: {path}", path=path)
        record = self._decode_record(path, data)
        if expected_revision is not None and record.revision != expected_revision:
            raise ConcurrentModificationError(path, expected_revision, record.revision)

        revision = record.revision + 1
        data["revision"] = revision
        data.setdefault("properties", {})[name] = encode_value(value)
        self._write_document(document)
        logger.debug("wrote %s.%s (revision %d)", path, name, revision)
        return revision

    def _children(self, path: str) -> list[str]:
        nodes = self._read_document()["nodes"]
        return [p for p in nodes if p != path and parent_path(p) == path]
