"""
Hierarchical record stores for the upgrade ledger.

- base: node handles, path rules, typed property checks
- memory: process-local store (tests, dry runs)
- json_file: durable single-document store
"""

from .base import (
    Node,
    NodeRecord,
    PropertyValue,
    RecordStore,
    join_path,
    normalize_path,
)
from .json_file import JsonFileRecordStore
from .memory import MemoryRecordStore

__all__ = [
    "Node",
    "NodeRecord",
    "PropertyValue",
    "RecordStore",
    "join_path",
    "normalize_path",
    "JsonFileRecordStore",
    "MemoryRecordStore",
]
