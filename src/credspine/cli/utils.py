"""
CLI utility helpers: engine wiring, ``--field`` parsing and output formatting.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from credspine.core.errors import CredSpineError
from credspine.core.settings import CredSpineSettings
from credspine.engine.factory import build_engine
from credspine.engine.notifications import NullSink
from credspine.ops.context import OperationContext
from credspine.ops.result import OperationResult, PagedResult

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


def load_settings(database: str | None = None) -> CredSpineSettings:
    """Environment settings, with ``--database`` forcing the SQLite backend."""
    settings = CredSpineSettings()
    if database:
        settings = settings.model_copy(
            update={"store_backend": "sqlite", "database_path": Path(database)}
        )
    return settings


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
) -> OperationContext:
    """Create an ``OperationContext`` over a freshly wired engine."""
    try:
        engine = build_engine(load_settings(database), sink=NullSink())
    except CredSpineError as exc:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
        raise typer.Exit(code=2) from exc
    return OperationContext(engine=engine, caller="cli", dry_run=dry_run)


# ── Input helpers ────────────────────────────────────────────────────────


def parse_fields(pairs: list[str] | None) -> dict[str, Any]:
    """Turn ``["firstName=Ada", 'address={"city": "Austin"}']`` into a dict.

    Values that look like JSON objects or arrays are parsed; everything else
    is kept as text.
    """
    fields: dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got {pair!r}", param_hint="--field")
        if value[:1] in ("{", "["):
            try:
                fields[key.strip()] = json.loads(value)
            except ValueError as exc:
                raise typer.BadParameter(
                    f"Invalid JSON for {key.strip()}: {exc}", param_hint="--field"
                ) from exc
        else:
            fields[key.strip()] = value
    return fields


# ── Output helpers ───────────────────────────────────────────────────────


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult``; a failure exits with status 1."""
    if as_json:
        _emit_json(result)
        return
    if not result.success:
        _print_error(result)

    data = result.data
    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        _print_table(data, title=title)
    elif isinstance(data, dict):
        _print_dict(data, title=title or result.message)
    else:
        console.print(result.message)

    for warning in result.warnings:
        err_console.print(f"[yellow]Warning:[/yellow] {warning}")


def output_paged(
    result: PagedResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Like :func:`output_result`, with a "Showing n of total" footer."""
    if as_json:
        _emit_json(result)
        return
    if not result.success:
        _print_error(result)
    items = result.data or []
    if not items:
        console.print("[dim]No items.[/dim]")
        return

    _print_table(items, title=title)
    console.print(
        f"\n[dim]Showing {len(items)} of {result.total}"
        f" (offset {result.offset})[/dim]"
    )


# ── Private helpers ──────────────────────────────────────────────────────


def _emit_json(result: OperationResult) -> None:
    typer.echo(json.dumps(result.to_dict(), indent=2, default=str))
    if not result.success:
        raise typer.Exit(code=1)


def _print_error(result: OperationResult) -> None:
    code = result.error.code if result.error else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {result.message}")
    raise typer.Exit(code=1)


def _cell(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return "" if value is None else str(value)


def _print_table(items: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    columns: list[str] = []
    for item in items:
        columns.extend(k for k in item if k not in columns)
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for item in items:
        table.add_row(*(_cell(item.get(col)) for col in columns))
    console.print(table)


def _print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs; nested lists as tables."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    nested = {}
    for k, v in data.items():
        if isinstance(v, list) and v and all(isinstance(i, dict) for i in v):
            nested[k] = v
        else:
            console.print(f"  [cyan]{k}[/cyan]: {_cell(v)}")
    for k, v in nested.items():
        _print_table(v, title=k)
