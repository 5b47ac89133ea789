"""
Upgrade ledger: which actions ran for which group, and the last update pass.

One installation pass drives a ledger in this order:

1. ``is_executed`` for each candidate action (the driver runs the ones
   that return False)
2. ``update_group`` once per group with the actions that actually ran
3. ``update`` once at the end with the package version

There is no in-progress state. A pass that dies between 2 and 3 leaves
correct per-action history and a stale global version, which the next
pass does not depend on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Sequence

from .collaborators import InstallContext, UpgradeAction, UpgradeInfo
from .config import LedgerConfig
from .identity import derive_id
from .install_log import InstallLogger
from .status import GlobalStatus, GroupStatus
from .store.base import Node, join_path

LOG = InstallLogger(__name__)


@dataclass
class LedgerSnapshot:
    """Point-in-time view of a ledger root and its groups."""

    root_path: str
    last_update_time: datetime | None
    last_version: str | None
    groups: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            "root_path": self.root_path,
            "time": self.last_update_time.isoformat() if self.last_update_time else None,
            "version": self.last_version,
            "groups": {name: list(actions) for name, actions in self.groups.items()},
        }


class UpgradeLedger:
    """
    Idempotency ledger rooted at one node of a record store.

    ``previous_version`` and ``previous_update_time`` hold the global status
    as it was when the ledger was opened, before this pass updated it.
    """

    def __init__(self, root: Node, *, config: LedgerConfig | None = None):
        self.root = root
        self.config = config or LedgerConfig()
        status = GlobalStatus(root)
        self.previous_version = status.last_version
        self.previous_update_time = status.last_update_time

    @classmethod
    def open(
        cls,
        ctx: InstallContext,
        root_path: str | None = None,
        *,
        config: LedgerConfig | None = None,
    ) -> UpgradeLedger:
        """Load (or create) the ledger root at ``root_path``."""
        config = config or LedgerConfig()
        path = root_path or config.root_path
        LOG.debug(ctx, "loading status [%s]", path)
        ledger = cls(ctx.store.get_or_create(path), config=config)
        LOG.info(ctx, "loaded status [%s]", ledger)
        return ledger

    def group_status(self, info: UpgradeInfo) -> GroupStatus:
        return GroupStatus.resolve(self.root, info, dedupe=self.config.dedupe_actions)

    def global_status(self) -> GlobalStatus:
        return GlobalStatus(self.root)

    def is_executed(self, ctx: InstallContext, info: UpgradeInfo, action: UpgradeAction) -> bool:
        """Check whether ``action`` already ran for ``info``. Creates the group node if needed."""
        group = self.group_status(info)
        action_id = derive_id(action)
        if group.contains(action_id):
            LOG.debug(ctx, "action [%s] already executed: [%s]", action_id, group.node.path)
            return True
        LOG.debug(ctx, "action [%s] not executed yet: [%s]", action_id, group.node.path)
        return False

    def update_group(
        self,
        ctx: InstallContext,
        info: UpgradeInfo,
        executed_actions: Sequence[UpgradeAction],
    ) -> list[str]:
        """
        Append the actions that ran this pass to the group's history.

        Pass only this pass's actions; earlier history is kept as stored.

        Returns:
            The group's stored action identifiers after the write
        """
        group = self.group_status(info)
        stored = group.record(executed_actions)
        LOG.info(ctx, "stored status to [%s] actions: %s", group.node.path, stored)
        return stored

    def update(self, ctx: InstallContext, *, now: datetime | None = None) -> None:
        """Store the current time and the context's package version."""
        self.record_update(now or datetime.now(timezone.utc), ctx.package_version, ctx=ctx)

    def record_update(
        self,
        timestamp: datetime,
        version: str,
        *,
        ctx: InstallContext | None = None,
    ) -> None:
        """Overwrite the global status with ``timestamp`` and ``version``."""
        self.global_status().record_update(timestamp, version)
        LOG.info(ctx, "stored new status [%s]: [%s]", self.root.path, version)

    def group_names(self) -> list[str]:
        return self.root.child_names()

    def snapshot(self) -> LedgerSnapshot:
        """Read the global status and every group's stored actions."""
        status = self.global_status()
        snapshot = LedgerSnapshot(
            root_path=self.root.path,
            last_update_time=status.last_update_time,
            last_version=status.last_version,
        )
        for name in self.group_names():
            node = self.root.store.get(join_path(self.root.path, name))
            if node is not None:
                snapshot.groups[name] = GroupStatus(node).executed_actions()
        return snapshot

    def __repr__(self) -> str:
        return f"UpgradeLedger(root={self.root.path!r}, version={self.previous_version!r})"
