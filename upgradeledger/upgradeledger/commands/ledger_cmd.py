"""Ledger inspection and recording commands."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..collaborators import Action, Group, InstallSession
from ..config import LedgerConfig
from ..identity import ActionIdentifier, compute_fingerprint
from ..ledger import UpgradeLedger
from ..store.json_file import JsonFileRecordStore


def parse_action_spec(spec: str) -> Action:
    """Parse ``NAME=FINGERPRINT`` into an action."""
    name, sep, fingerprint = spec.partition("=")
    if not sep or not name or not fingerprint:
        raise ValueError(f"Expected NAME=FINGERPRINT, got {spec!r}")
    return Action(name=name, content_fingerprint=fingerprint)


def _session(config: LedgerConfig, package_version: str = "") -> InstallSession:
    return InstallSession(package_version=package_version, store=JsonFileRecordStore(config.store_path))


def _open(config: LedgerConfig, package_version: str = "") -> tuple[InstallSession, UpgradeLedger]:
    ctx = _session(config, package_version)
    return ctx, UpgradeLedger.open(ctx, config=config)


def run_status(config: LedgerConfig, *, output_json: bool = False) -> int:
    console = Console()
    err = Console(stderr=True)

    ctx = _session(config)
    root = ctx.store.get(config.root_path)
    if root is None:
        err.print(f"No ledger at {config.root_path} in {config.store_path}", style="bold red")
        return 1

    snapshot = UpgradeLedger(root, config=config).snapshot()
    if output_json:
        print(json.dumps(snapshot.to_dict(), indent=2, sort_keys=True))
        return 0

    console.print(f"[bold]Ledger[/bold] {snapshot.root_path}")
    console.print(f"  Version: {snapshot.last_version or '[dim]never updated[/dim]'}")
    console.print(
        f"  Updated: {snapshot.last_update_time.isoformat() if snapshot.last_update_time else '[dim]never[/dim]'}"
    )

    table = Table(title="Groups")
    table.add_column("group", style="cyan", no_wrap=True)
    table.add_column("actions", justify="right")
    table.add_column("latest", style="dim")
    for name, actions in sorted(snapshot.groups.items()):
        latest = ActionIdentifier.parse(actions[-1]).name if actions else ""
        table.add_row(name, str(len(actions)), latest)
    console.print(table)
    return 0


def run_check(config: LedgerConfig, group: str, name: str, fingerprint: str) -> int:
    """Exit code 0 when the action already ran for the group, 1 otherwise."""
    console = Console()
    ctx, ledger = _open(config)
    action = Action(name=name, content_fingerprint=fingerprint)
    if ledger.is_executed(ctx, Group(group), action):
        console.print(f"[green]executed[/green] {group}: {name}")
        return 0
    console.print(f"[yellow]pending[/yellow] {group}: {name}")
    return 1


def run_record(config: LedgerConfig, group: str, actions: list[Action]) -> int:
    console = Console()
    ctx, ledger = _open(config)
    stored = ledger.update_group(ctx, Group(group), actions)
    console.print(f"Recorded {len(actions)} action(s) in {group} ({len(stored)} stored)")
    return 0


def run_stamp(config: LedgerConfig, version: str) -> int:
    console = Console()
    ctx, ledger = _open(config, package_version=version)
    ledger.update(ctx)
    previous = ledger.previous_version or "none"
    console.print(f"Stamped {config.root_path}: {previous} -> {version}")
    return 0


def run_fingerprint(path: Path) -> int:
    print(compute_fingerprint(path.read_bytes()))
    return 0
