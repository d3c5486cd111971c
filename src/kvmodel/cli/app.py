# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root.

The data commands talk to the configured backend directly (see
``KVMODEL_BACKEND``); with the default in-memory backend every invocation
starts from an empty store, so they are mostly useful with ``redis`` or
``sqlite``.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar

import typer

from kvmodel.core.constants import ABSENT, ABSENT_MARKER, NO_EXPIRATION
from kvmodel.core.exceptions import KeyValueError, KvModelError
from kvmodel.model import KeyValueModel

T = TypeVar("T")

app = typer.Typer(
    name="kvmodel",
    help="Key-value model: contract operations and REST server",
    no_args_is_help=True,
)


def _parse_value(raw: str) -> Any:
    """Interpret *raw* as JSON, falling back to the plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _run(operation: Callable[[KeyValueModel], Awaitable[T]]) -> T:
    """Run *operation* against the configured model and map errors to exit codes."""

    async def _runner() -> T:
        from kvmodel.manager import get_model

        model = get_model()
        try:
            return await operation(model)
        finally:
            await model.close()

    try:
        return asyncio.run(_runner())
    except KeyValueError as exc:
        typer.echo(f"Error [{exc.code}]: {exc.message}", err=True)
        raise typer.Exit(1) from exc
    except KvModelError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


@app.command()
def get(key: Annotated[str, typer.Argument(help="Key to look up")]) -> None:
    """Print the value stored under KEY as JSON."""
    value = _run(lambda model: model.get(key))
    if value is ABSENT:
        typer.echo(f"Key {key!r} not found.", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(value))


@app.command(name="set")
def set_(
    key: Annotated[str, typer.Argument(help="Key to write")],
    value: Annotated[str, typer.Argument(help="Value (JSON, or a plain string)")],
    ttl: Annotated[
        int | None, typer.Option("--ttl", help="Time to live in milliseconds")
    ] = None,
) -> None:
    """Store VALUE under KEY."""
    parsed = _parse_value(value)
    _run(lambda model: model.set(key, parsed, ttl=ttl))
    typer.echo(f"Stored {key!r}.")


@app.command()
def expire(
    key: Annotated[str, typer.Argument(help="Key to expire")],
    ttl: Annotated[int, typer.Argument(help="Time to live in milliseconds")],
) -> None:
    """Set the TTL of an existing KEY."""
    _run(lambda model: model.expire(key, ttl))
    typer.echo(f"{key!r} expires in {ttl} ms.")


@app.command()
def ttl(key: Annotated[str, typer.Argument(help="Key to inspect")]) -> None:
    """Print the remaining TTL of KEY in milliseconds."""
    remaining = _run(lambda model: model.ttl(key))
    if remaining is NO_EXPIRATION:
        typer.echo("null")
    elif remaining is ABSENT:
        typer.echo(ABSENT_MARKER)
    else:
        typer.echo(str(remaining))


@app.command()
def keys(
    key_filter: Annotated[
        str | None,
        typer.Option("--filter", "-f", help="Glob pattern or JSON object filter"),
    ] = None,
    stream: Annotated[
        bool, typer.Option("--stream", help="Print keys as they are fetched")
    ] = False,
) -> None:
    """List keys, optionally filtered."""
    if stream:

        async def _stream(model: KeyValueModel) -> None:
            iterator = model.iterate_keys(key_filter)
            try:
                async for key in iterator:
                    typer.echo(key)
            finally:
                await iterator.aclose()

        _run(_stream)
        return

    from rich.console import Console
    from rich.table import Table

    found = _run(lambda model: model.keys(key_filter))
    table = Table(title="Keys")
    table.add_column("Key", style="cyan")
    for key in found:
        table.add_row(key)
    Console().print(table)
    typer.echo(f"{len(found)} key(s)")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    workers: int = typer.Option(1, "--workers", "-w", help="Worker count"),
) -> None:
    """Start the key-value REST API server."""
    import uvicorn

    from kvmodel.core.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "kvmodel.api.app:_create_app_from_env",
        host=host or settings.api_host,
        port=port or settings.api_port,
        workers=workers,
        factory=True,
    )