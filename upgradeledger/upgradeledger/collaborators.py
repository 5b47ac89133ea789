"""
Contracts for the objects an installation driver hands to the ledger.

The ledger never executes actions or discovers groups. It only reads the
attributes declared here. Drivers may pass their own objects as long as
they satisfy the protocols; the dataclasses below cover the simple cases
(CLI, tests, scripted passes).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Protocol, runtime_checkable

from .identity import compute_fingerprint

if TYPE_CHECKING:
    from .store.base import RecordStore


@runtime_checkable
class UpgradeAction(Protocol):
    """An action whose execution is tracked by the ledger."""

    @property
    def name(self) -> str: ...

    @property
    def content_fingerprint(self) -> str: ...


@runtime_checkable
class UpgradeInfo(Protocol):
    """A group of actions; its name is the group node name under the root."""

    @property
    def name(self) -> str: ...


@runtime_checkable
class InstallContext(Protocol):
    """
    The installation pass driving the ledger.

    Contexts may also expose ``progress(message)``; install log messages are
    mirrored to it when present.
    """

    @property
    def package_version(self) -> str: ...

    @property
    def store(self) -> RecordStore: ...


@dataclass(frozen=True)
class Action:
    """Plain upgrade action: a name plus the fingerprint of its definition."""

    name: str
    content_fingerprint: str

    @classmethod
    def from_definition(cls, name: str, definition: bytes | str | dict[str, Any]) -> Action:
        """Build an action whose fingerprint is the sha256 of its definition."""
        return cls(name=name, content_fingerprint=compute_fingerprint(definition))


@dataclass(frozen=True)
class Group:
    """Plain upgrade group."""

    name: str


@dataclass
class InstallSession:
    """Install context for drivers without a host installer."""

    package_version: str
    store: RecordStore
    listener: Callable[[str], None] | None = None

    def progress(self, message: str) -> None:
        if self.listener is not None:
            self.listener(message)
