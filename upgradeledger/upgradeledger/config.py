"""
Ledger configuration.

Read from ``upgradeledger.toml``::

    [ledger]
    store_path = ".upgradeledger/ledger.json"
    root_path = "/var/upgrade"
    dedupe_actions = false

Relative store paths resolve against the directory holding the file.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

CONFIG_FILENAME = "upgradeledger.toml"
DEFAULT_STORE_PATH = Path(".upgradeledger") / "ledger.json"
DEFAULT_ROOT_PATH = "/var/upgrade"

_KEY_TYPES: dict[str, type] = {
    "store_path": str,
    "root_path": str,
    "dedupe_actions": bool,
}


@dataclass(frozen=True)
class LedgerConfig:
    """Where the ledger lives and how it records actions."""

    store_path: Path = DEFAULT_STORE_PATH
    root_path: str = DEFAULT_ROOT_PATH
    dedupe_actions: bool = False

    def with_overrides(self, **overrides: Any) -> LedgerConfig:
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {
            "store_path": str(self.store_path),
            "root_path": self.root_path,
            "dedupe_actions": self.dedupe_actions,
        }


def load_config(config_path: str | Path) -> LedgerConfig:
    """
    Load configuration from a TOML file.

    Args:
        config_path: Path to upgradeledger.toml

    Returns:
        Parsed configuration (defaults for missing keys)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the TOML is malformed or has unknown/mistyped keys
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Ledger config not found: {path}")

    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except Exception as e:
            raise ValueError(f"Failed to parse ledger config TOML: {e}") from e

    table = data.get("ledger", {})
    if not isinstance(table, dict):
        raise ValueError("[ledger] must be a table")

    unknown = sorted(set(table) - set(_KEY_TYPES))
    if unknown:
        raise ValueError(f"Unknown ledger config keys: {', '.join(unknown)}")
    for key, value in table.items():
        if not isinstance(value, _KEY_TYPES[key]):
            raise ValueError(f"ledger.{key} must be {_KEY_TYPES[key].__name__}")

    config = LedgerConfig()
    if "store_path" in table:
        store_path = Path(table["store_path"])
        if not store_path.is_absolute():
            store_path = path.parent / store_path
        config = replace(config, store_path=store_path)
    if "root_path" in table:
        config = replace(config, root_path=table["root_path"])
    if "dedupe_actions" in table:
        config = replace(config, dedupe_actions=table["dedupe_actions"])
    return config


def find_config(start: Path) -> Path | None:
    """Find upgradeledger.toml by walking up from ``start``."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
