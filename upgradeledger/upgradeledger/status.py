"""
Group and global upgrade status.

Property names are shared with ledgers written by earlier installers and
must not change:

- ``time``: last successful update pass (root node)
- ``version``: package version of that pass (root node)
- ``actions``: executed action identifiers (one node per group)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from .collaborators import UpgradeAction, UpgradeInfo
from .errors import LedgerDataError
from .identity import ActionIdentifier, derive_id
from .store.base import Node, join_path

PN_UPGRADE_TIME = "time"
PN_VERSION = "version"
PN_ACTIONS = "actions"


class GroupStatus:
    """
    Executed actions of one upgrade group.

    The stored ``actions`` array only grows. Without ``dedupe`` an action
    reported twice is stored twice; membership checks are unaffected.
    """

    def __init__(self, node: Node, *, dedupe: bool = False):
        self.node = node
        self.dedupe = dedupe

    @classmethod
    def resolve(cls, root: Node, info: UpgradeInfo, *, dedupe: bool = False) -> GroupStatus:
        """Look up the group node under ``root``, creating it when absent."""
        path = join_path(root.path, info.name)
        node = root.store.get(path)
        if node is None:
            node = root.store.create(path)
        return cls(node, dedupe=dedupe)

    @property
    def name(self) -> str:
        return self.node.name

    def executed_actions(self) -> list[str]:
        """Stored identifiers in insertion order (empty when never written)."""
        value = self.node.get_property(PN_ACTIONS)
        if value is None:
            return []
        if not isinstance(value, list):
            raise LedgerDataError(
                f"{self.node.path}/{PN_ACTIONS} must be a string array, got {type(value).__name__}"
            )
        return value

    def contains(self, action_id: ActionIdentifier | str) -> bool:
        return str(action_id) in self.executed_actions()

    def is_executed(self, action: UpgradeAction) -> bool:
        return self.contains(derive_id(action))

    def record(self, actions: Sequence[UpgradeAction]) -> list[str]:
        """
        Append the identifiers of ``actions`` and write the array back.

        The write is guarded by the revision read here, so a concurrent
        update of the same group raises instead of being overwritten.

        Returns:
            The stored array after the write
        """
        revision = self.node.revision
        stored = self.executed_actions()
        seen = set(stored)
        for action in actions:
            action_id = str(derive_id(action))
            if self.dedupe and action_id in seen:
                continue
            stored.append(action_id)
            seen.add(action_id)
        self.node.set_property(PN_ACTIONS, stored, expected_revision=revision)
        return stored

    def __repr__(self) -> str:
        return f"GroupStatus({self.node.path!r})"


class GlobalStatus:
    """Time and version of the last update pass, kept on the ledger root."""

    def __init__(self, node: Node):
        self.node = node

    @property
    def last_update_time(self) -> datetime | None:
        value = self.node.get_property(PN_UPGRADE_TIME)
        if value is not None and not isinstance(value, datetime):
            raise LedgerDataError(f"{self.node.path}/{PN_UPGRADE_TIME} must be a date")
        return value

    @property
    def last_version(self) -> str | None:
        value = self.node.get_property(PN_VERSION)
        if value is not None and not isinstance(value, str):
            raise LedgerDataError(f"{self.node.path}/{PN_VERSION} must be a string")
        return value

    def record_update(self, timestamp: datetime, version: str) -> None:
        """Overwrite time and version; earlier values are not kept."""
        if not isinstance(timestamp, datetime):
            raise TypeError("timestamp must be a datetime")
        if not isinstance(version, str) or not version.strip():
            raise ValueError("version must be a non-empty string")
        self.node.set_property(PN_UPGRADE_TIME, timestamp)
        self.node.set_property(PN_VERSION, version)

    def to_dict(self) -> dict[str, Any]:
        last_update_time = self.last_update_time
        return {
            "path": self.node.path,
            "time": last_update_time.isoformat() if last_update_time else None,
            "version": self.last_version,
        }

    def __repr__(self) -> str:
        return f"GlobalStatus({self.node.path!r}, version={self.last_version!r})"
