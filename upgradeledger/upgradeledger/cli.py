"""CLI entrypoint for upgradeledger."""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import LedgerConfig, find_config, load_config
from .errors import LedgerError


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _action_specs(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list:
    from .commands.ledger_cmd import parse_action_spec

    try:
        return [parse_action_spec(v) for v in value]
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _run(fn, *args, **kwargs) -> None:
    try:
        code = fn(*args, **kwargs)
    except (LedgerError, ValueError) as e:
        raise click.ClickException(str(e)) from e
    sys.exit(code)


@click.group()
@click.version_option(__version__, prog_name="upgradeledger")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to upgradeledger.toml (defaults to the nearest one above the cwd)",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Ledger JSON file (overrides ledger.store_path)",
)
@click.option(
    "--root",
    "root_path",
    type=str,
    default=None,
    help="Ledger root node path (overrides ledger.root_path)",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    show_default=True,
    help="Logging level for ledger decisions",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    store_path: Path | None,
    root_path: str | None,
    log_level: str,
) -> None:
    """upgradeledger - track which upgrade actions already ran.

    Inspect and update the ledger an installer uses to skip actions that
    ran in an earlier installation pass.
    """
    _setup_logging(log_level)
    ctx.ensure_object(dict)

    if config_path is None:
        config_path = find_config(Path.cwd())
    try:
        config = load_config(config_path) if config_path else LedgerConfig()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    ctx.obj["config"] = config.with_overrides(store_path=store_path, root_path=root_path)


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output the ledger as JSON")
@click.pass_context
def status(ctx: click.Context, output_json: bool) -> None:
    """Show the last update pass and the actions recorded per group."""
    from .commands.ledger_cmd import run_status

    _run(run_status, ctx.obj["config"], output_json=output_json)


@cli.command()
@click.argument("group")
@click.argument("name")
@click.argument("fingerprint")
@click.pass_context
def check(ctx: click.Context, group: str, name: str, fingerprint: str) -> None:
    """Check whether an action already ran for GROUP.

    Exits 0 when it did, 1 when it still has to run.

    Examples:

        upgradeledger check setup addIndex 9f2c...
    """
    from .commands.ledger_cmd import run_check

    _run(run_check, ctx.obj["config"], group, name, fingerprint)


@cli.command()
@click.argument("group")
@click.argument("actions", nargs=-1, required=True, callback=_action_specs)
@click.pass_context
def record(ctx: click.Context, group: str, actions: list) -> None:
    """Record actions as executed for GROUP.

    Each action is given as NAME=FINGERPRINT.

    Examples:

        upgradeledger record setup addIndex=h1 seedUsers=h2
    """
    from .commands.ledger_cmd import run_record

    _run(run_record, ctx.obj["config"], group, actions)


@cli.command()
@click.argument("version")
@click.pass_context
def stamp(ctx: click.Context, version: str) -> None:
    """Record an update pass to VERSION at the current time."""
    from .commands.ledger_cmd import run_stamp

    _run(run_stamp, ctx.obj["config"], version)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def fingerprint(path: Path) -> None:
    """Print the sha256 fingerprint of an action definition file."""
    from .commands.ledger_cmd import run_fingerprint

    _run(run_fingerprint, path)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
