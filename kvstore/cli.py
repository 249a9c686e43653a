"""kvctl — inspect and edit a kvstore file from the command line."""

from __future__ import annotations

import json
import os
from typing import NoReturn

import click

from kvstore.config import config_from_flags, store_options, with_config
from kvstore.exceptions import KVStoreError, RecordDecodeError, StoreWriteError
from kvstore.logging import bind_context, clear_context, configure_logging
from kvstore.records import RECORD_TYPES
from kvstore.store import Store


def _handle_error(e: KVStoreError) -> NoReturn:
    """Print a user-friendly error for store failures."""
    click.echo(f"Error [{type(e).__name__}]: {e}", err=True)
    raise SystemExit(1)


@click.group()
@store_options
@click.option(
    "--record",
    "record_type",
    default="phone_code",
    show_default=True,
    type=click.Choice(sorted(RECORD_TYPES)),
    help="Record type stored in the file.",
)
@click.option("--log-level", default="WARNING", show_default=True, help="Log level for store events")
@click.pass_context
def cli(ctx: click.Context, store_file: str, strict: bool, record_type: str, log_level: str) -> None:
    """Inspect and edit a kvstore JSON file."""
    configure_logging(log_level)
    clear_context()
    bind_context(store_file=store_file, command=ctx.invoked_subcommand, record_type=record_type)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = config_from_flags(store_file, strict)
    except KVStoreError as e:
        _handle_error(e)
    ctx.obj["record_type"] = RECORD_TYPES[record_type]


def _open_store(ctx: click.Context) -> Store:
    try:
        return Store(ctx.obj["record_type"](), with_config(ctx.obj["config"]))
    except KVStoreError as e:
        _handle_error(e)


@cli.command("keys")
@click.pass_context
def keys(ctx: click.Context) -> None:
    """List stored keys."""
    with _open_store(ctx) as store:
        for key in sorted(store.keys()):
            click.echo(key)


@cli.command("get")
@click.argument("key")
@click.pass_context
def get(ctx: click.Context, key: str) -> None:
    """Print the record stored under KEY."""
    with _open_store(ctx) as store:
        record, found = store.get(key)
    if not found:
        click.echo(f"{key}: not found", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(record.to_dict(), indent=2))


@cli.command("put")
@click.argument("key")
@click.argument("payload")
@click.pass_context
def put(ctx: click.Context, key: str, payload: str) -> None:
    """Store a record given as a JSON object under KEY."""
    store = _open_store(ctx)
    try:
        record = ctx.obj["record_type"]().reconstitute(payload.encode("utf-8"))
    except RecordDecodeError as e:
        _handle_error(e)
    replaced = store.set(key, record)
    try:
        store.save()
    except KVStoreError as e:
        _handle_error(e)
    click.echo("replaced" if replaced else "created")


@cli.command("delete")
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Delete KEY."""
    store = _open_store(ctx)
    deleted = store.delete(key)
    if deleted and not len(store):
        # save never writes an empty mapping
        try:
            os.remove(store.store_file)
        except OSError as e:
            _handle_error(StoreWriteError(store.store_file, str(e)))
        click.echo("deleted")
        return
    try:
        store.save()
    except KVStoreError as e:
        _handle_error(e)
    click.echo("deleted" if deleted else "not found")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
