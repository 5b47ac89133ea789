"""
Stable identifiers for upgrade actions.

An action identifier is the action name joined to a fingerprint of the
action's definition. Redefining an action changes its fingerprint, so the
ledger treats it as a new action that has never run.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .collaborators import UpgradeAction

ACTION_ID_SEPARATOR = "_"


@dataclass(frozen=True)
class ActionIdentifier:
    """
    Identifier stored in a group's ``actions`` property.

    Format: ``<action-name>_<content-fingerprint>``. A name that itself
    contains ``_`` can collide with another name/fingerprint pair; that is
    accepted, fingerprint collisions are out of scope as well.
    """

    name: str
    fingerprint: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Action name must not be empty")

    def __str__(self) -> str:
        return f"{self.name}{ACTION_ID_SEPARATOR}{self.fingerprint}"

    @classmethod
    def parse(cls, text: str) -> ActionIdentifier:
        """
        Split a stored identifier for display.

        Splits at the last separator. Names containing the separator
        round-trip only when the fingerprint itself has none.
        """
        name, sep, fingerprint = text.rpartition(ACTION_ID_SEPARATOR)
        if not sep or not name:
            raise ValueError(f"Not an action identifier: {text!r}")
        return cls(name=name, fingerprint=fingerprint)


def derive_id(action: UpgradeAction) -> ActionIdentifier:
    """Derive the identifier of an action from its name and fingerprint."""
    return ActionIdentifier(name=action.name, fingerprint=action.content_fingerprint)


def compute_fingerprint(definition: bytes | str | dict[str, Any]) -> str:
    """
    Compute the sha256 fingerprint of an action definition.

    Args:
        definition: Raw bytes, text, or a dict (hashed as canonical JSON)

    Returns:
        Hex-encoded sha256 hash
    """
    if isinstance(definition, dict):
        definition = json.dumps(definition, sort_keys=True, separators=(",", ":"))
    if isinstance(definition, str):
        definition = definition.encode("utf-8")
    return hashlib.sha256(definition).hexdigest()
