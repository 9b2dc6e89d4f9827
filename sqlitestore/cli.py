"""
sqlitestore CLI
===============

Command-line interface for inspecting and maintaining a session database.

Usage:
    sqlitestore run      : Run the cleanup daemon (foreground)
    sqlitestore sweep    : Delete expired sessions once
    sqlitestore get      : Print a session payload
    sqlitestore put      : Store a session payload
    sqlitestore delete   : Delete a session
    sqlitestore list     : List unexpired sessions
    sqlitestore config   : Show effective config
"""

from __future__ import annotations

import asyncio
import json
import sys
from datetime import timedelta

import click

from sqlitestore import __version__
from sqlitestore.config import StoreConfig, load_config
from sqlitestore.daemon import run_cleanup, setup_logging
from sqlitestore.models import utcnow
from sqlitestore.store import SessionStore


@click.group()
@click.version_option(version=__version__, prog_name="sqlitestore")
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.json (default: ~/.sqlitestore/config.json).",
)
@click.option("--debug", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, debug: bool) -> None:
    """Expiring session storage on SQLite."""
    config = load_config(config_path)
    if debug:
        config.debug = True
    ctx.obj = config


def _run(config: StoreConfig, op) -> object:
    """Open a store with background cleanup disabled and run ``op`` on it."""

    async def runner():
        store = SessionStore.sqlite(config.database.path, 0, table=config.database.table)
        async with store:
            return await op(store)

    return asyncio.run(runner())


# ── sqlitestore run ──────────────────────────────────────────────────────

@cli.command()
@click.option("--interval", type=float, default=None, help="Override cleanup interval (seconds).")
@click.option("--log-file", type=click.Path(dir_okay=False), default=None, help="Also log to this file.")
@click.pass_obj
def run(config: StoreConfig, interval: float | None, log_file: str | None) -> None:
    """Run the cleanup daemon in the foreground."""
    setup_logging(debug=config.debug, log_file=log_file)
    if interval is not None:
        config.cleanup.interval = interval
    try:
        asyncio.run(run_cleanup(config))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


# ── sqlitestore sweep ────────────────────────────────────────────────────

@cli.command()
@click.pass_obj
def sweep(config: StoreConfig) -> None:
    """Delete all expired sessions once."""
    removed = _run(config, lambda store: store.delete_expired())
    click.echo(f"Removed {removed} expired session(s).")


# ── sqlitestore get / put / delete ───────────────────────────────────────

@cli.command()
@click.argument("token")
@click.option("--raw", is_flag=True, help="Write the payload bytes unmodified.")
@click.pass_obj
def get(config: StoreConfig, token: str, raw: bool) -> None:
    """Print the payload stored for TOKEN."""
    data, found = _run(config, lambda store: store.find(token))
    if not found:
        click.echo(f"Session {token} not found.", err=True)
        sys.exit(1)
    if raw:
        click.get_binary_stream("stdout").write(data)
    else:
        click.echo(data.decode("utf-8", errors="replace"))


@cli.command()
@click.argument("token")
@click.argument("data")
@click.option("--ttl", type=float, default=3600.0, show_default=True, help="Seconds until expiry.")
@click.pass_obj
def put(config: StoreConfig, token: str, data: str, ttl: float) -> None:
    """Store DATA under TOKEN, expiring after --ttl seconds."""
    expiry = utcnow() + timedelta(seconds=ttl)
    _run(config, lambda store: store.commit(token, data.encode("utf-8"), expiry))
    click.echo(f"Session {token} stored (expires {expiry.isoformat()}).")


@cli.command()
@click.argument("token")
@click.pass_obj
def delete(config: StoreConfig, token: str) -> None:
    """Delete the session stored under TOKEN."""
    _run(config, lambda store: store.delete(token))
    click.echo(f"Session {token} deleted.")


# ── sqlitestore list ─────────────────────────────────────────────────────

@cli.command("list")
@click.pass_obj
def list_sessions(config: StoreConfig) -> None:
    """List unexpired sessions."""

    async def op(store: SessionStore):
        return await store.all(), await store.backend.count()

    live, total = _run(config, op)
    if not live:
        click.echo("No sessions.")
    else:
        click.echo(f"{'Token':<40} {'Bytes':>8}")
        click.echo("-" * 49)
        for token, data in live.items():
            click.echo(f"{token:<40} {len(data):>8}")
    click.echo(f"{len(live)} live / {total} stored")


# ── sqlitestore config ───────────────────────────────────────────────────

@cli.command("config")
@click.pass_obj
def show_config(config: StoreConfig) -> None:
    """Show the effective configuration."""
    click.echo(json.dumps(config.model_dump(), indent=2, default=str))


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
