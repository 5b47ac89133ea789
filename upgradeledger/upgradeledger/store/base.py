"""
Hierarchical record store.

Nodes are addressed by absolute slash-separated paths and hold a small set
of typed properties:

- str
- list of str
- timezone-aware datetime

Lookup and creation are separate operations. ``get`` never writes;
``create`` makes the node and any missing ancestors. Every successful
property write bumps the node's revision, which guarded writes compare
against to detect concurrent modification.

Backends implement the record-level hooks (``_load``, ``_create``,
``_write``, ``_children``). ``Node`` is a handle: it holds a path, not
data, so two handles for the same path always see the same stored state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence, Union

from ..errors import StorageError

PropertyValue = Union[str, list[str], datetime]

SEPARATOR = "/"


def normalize_path(path: str) -> str:
    """
    Normalize an absolute node path.

    Collapses repeated and trailing separators. Relative paths and
    ``.``/``..`` segments are rejected.
    """
    if not path.startswith(SEPARATOR):
        raise ValueError(f"Node path must be absolute: {path!r}")
    segments = [s for s in path.split(SEPARATOR) if s]
    for segment in segments:
        if segment in (".", ".."):
            raise ValueError(f"Node path must not contain {segment!r}: {path!r}")
    return SEPARATOR + SEPARATOR.join(segments)


def join_path(parent: str, name: str) -> str:
    """Append a single segment to a node path."""
    if not name or SEPARATOR in name:
        raise ValueError(f"Invalid node name: {name!r}")
    parent = normalize_path(parent)
    if parent == SEPARATOR:
        return normalize_path(SEPARATOR + name)
    return normalize_path(parent + SEPARATOR + name)


def parent_path(path: str) -> str | None:
    """Return the parent path, or None for the root."""
    path = normalize_path(path)
    if path == SEPARATOR:
        return None
    head = path.rsplit(SEPARATOR, 1)[0]
    return head or SEPARATOR


def node_name(path: str) -> str:
    """Return the last segment of a path ("" for the root)."""
    return normalize_path(path).rsplit(SEPARATOR, 1)[-1]


def lineage(path: str) -> list[str]:
    """List the path and its ancestors, outermost first. "/" is only listed for itself."""
    path = normalize_path(path)
    if path == SEPARATOR:
        return [SEPARATOR]
    segments = path.strip(SEPARATOR).split(SEPARATOR)
    return [SEPARATOR + SEPARATOR.join(segments[: i + 1]) for i in range(len(segments))]


def check_property_value(value: object) -> PropertyValue:
    """
    Validate a property value and return the form that gets stored.

    Sequences of strings are stored as lists. Anything else that is not a
    string or an aware datetime is a programming error.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise TypeError("Datetime properties must be timezone-aware")
        return value
    if isinstance(value, (list, tuple)):
        items = list(value)
        for item in items:
            if not isinstance(item, str):
                raise TypeError(f"String array properties only hold strings, got {type(item).__name__}")
        return items
    raise TypeError(f"Unsupported property type: {type(value).__name__}")


@dataclass
class NodeRecord:
    """Stored state of one node."""

    revision: int = 0
    properties: dict[str, PropertyValue] = field(default_factory=dict)

    def copy(self) -> NodeRecord:
        return NodeRecord(
            revision=self.revision,
            properties={
                k: (list(v) if isinstance(v, list) else v) for k, v in self.properties.items()
            },
        )


class Node:
    """Handle to a stored node."""

    def __init__(self, store: RecordStore, path: str):
        self.store = store
        self.path = normalize_path(path)

    @property
    def name(self) -> str:
        return node_name(self.path)

    def _record(self) -> NodeRecord:
        record = self.store._load(self.path)
        if record is None:
            raise StorageError(f"Node not found: {self.path}", path=self.path)
        return record

    @property
    def revision(self) -> int:
        return self._record().revision

    def get_property(self, name: str) -> PropertyValue | None:
        """Return a property value, or None when the property is unset."""
        return self._record().properties.get(name)

    def has_property(self, name: str) -> bool:
        return name in self._record().properties

    def property_names(self) -> list[str]:
        return sorted(self._record().properties)

    def child_names(self) -> list[str]:
        return sorted(node_name(p) for p in self.store._children(self.path))

    def set_property(
        self,
        name: str,
        value: PropertyValue | Sequence[str],
        *,
        expected_revision: int | None = None,
    ) -> int:
        """
        Write a property and return the node's new revision.

        Raises:
            ConcurrentModificationError: expected_revision no longer matches
            StorageError: the backend failed to write
        """
        if not name:
            raise ValueError("Property name must not be empty")
        return self.store._write(self.path, name, check_property_value(value), expected_revision)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.store is other.store and self.path == other.path

    def __hash__(self) -> int:
        return hash((id(self.store), self.path))

    def __repr__(self) -> str:
        return f"Node({self.path!r})"


class RecordStore(ABC):
    """Key-addressed tree of typed nodes."""

    def get(self, path: str) -> Node | None:
        """Look up a node. Never creates anything."""
        path = normalize_path(path)
        if self._load(path) is None:
            return None
        return Node(self, path)

    def create(self, path: str) -> Node:
        """Create a node and its missing ancestors; existing nodes are kept as-is."""
        path = normalize_path(path)
        self._create(lineage(path))
        return Node(self, path)

    def get_or_create(self, path: str) -> Node:
        """Look the node up, creating it only when it is absent."""
        node = self.get(path)
        if node is None:
            node = self.create(path)
        return node

    @abstractmethod
    def _load(self, path: str) -> NodeRecord | None:
        """Return a copy of the stored record, or None if the node is absent."""

    @abstractmethod
    def _create(self, paths: list[str]) -> None:
        """Create every absent node in ``paths`` with an empty record."""

    @abstractmethod
    def _write(
        self,
        path: str,
        name: str,
        value: PropertyValue,
        expected_revision: int | None,
    ) -> int:
        """Set one property, bump the revision, return the new revision."""

    @abstractmethod
    def _children(self, path: str) -> list[str]:
        """Return the paths of the direct children of ``path``."""
