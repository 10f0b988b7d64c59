"""
Root Typer application for the cred-spine CLI.

Every command opens the store named by ``--database`` (or the
``CREDSPINE_*`` environment), runs one operation from
:mod:`credspine.ops.records`, and renders its ``OperationResult`` as a Rich
table or, with ``--json``, as the raw envelope.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

import typer
from typer import Typer

from credspine.cli.utils import make_context, output_paged, output_result, parse_fields
from credspine.core.logging import configure_logging

app = Typer(
    name="credspine",
    help="cred-spine: schema-driven credentialing records over a tabular store.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DatabaseOption = typer.Option(None, "--database", "-d", help="SQLite file backing the store.")
JsonOption = typer.Option(False, "--json", help="Print the raw result envelope as JSON.")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        try:
            v = pkg_version("cred-spine")
        except PackageNotFoundError:
            from credspine import __version__ as v
        typer.echo(f"cred-spine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for stderr logs."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON."),
) -> None:
    """cred-spine CLI: manage providers, facilities, requests and their records."""
    configure_logging(level=log_level, json_format=json_logs)


# ── Tables ───────────────────────────────────────────────────────────────


@app.command()
def init(
    database: str | None = DatabaseOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would be created."),
    json_out: bool = JsonOption,
) -> None:
    """Create every registry table missing from the store."""
    from credspine.ops.records import initialize_tables

    ctx = make_context(database, dry_run=dry_run)
    output_result(initialize_tables(ctx), as_json=json_out, title="Init")


@app.command()
def tables(
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """List registry tables with their parents and row counts."""
    from credspine.ops.records import list_tables

    ctx = make_context(database)
    output_result(list_tables(ctx), as_json=json_out, title="Tables")


# ── Reads ────────────────────────────────────────────────────────────────


@app.command("list")
def list_cmd(
    table: str = typer.Argument(..., help="Table name, e.g. Providers"),
    filters: list[str] | None = typer.Option(None, "--filter", "-f", help="key=value equality filter"),
    limit: int = typer.Option(50, "--limit", "-n"),
    offset: int = typer.Option(0, "--offset"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """List records in a table."""
    from credspine.ops.records import list_records
    from credspine.ops.requests import ListRecordsRequest

    ctx = make_context(database)
    request = ListRecordsRequest(
        table=table, filters=parse_fields(filters), limit=limit, offset=offset
    )
    output_paged(list_records(ctx, request), as_json=json_out, title=table)


@app.command()
def show(
    name: str = typer.Argument(..., help="Entity type (Provider) or table (Licenses)"),
    record_id: str = typer.Argument(..., help="Record ID"),
    database: str | None = DatabaseOption,
    json_out: bool = JsonOption,
) -> None:
    """Show an entity with its children, or a single table record."""
    from credspine.ops.records import get_entity_details, get_record
    from credspine.ops.requests import GetEntityRequest

    ctx = make_context(database)
    if name in ctx.engine.registry.entity_types():
        result = get_entity_details(ctx, GetEntityRequest(entity_type=name, record_id=record_id))
    else:
        result = get_record(ctx, name, record_id)
    output_result(result, as_json=json_out, title=f"{name}: {record_id}")


# ── Mutations ────────────────────────────────────────────────────────────


@app.command()
def create(
    table: str = typer.Argument(..., help="Table name"),
    fields: list[str] | None = typer.Option(None, "--field", "-f", help="key=value"),
    parent: str | None = typer.Option(None, "--parent", "-p", help="Parent ID for child tables"),
    database: str | None = DatabaseOption,
    dry_run: bool = typer.Option(False, "--dry-run"),
    json_out: bool = JsonOption,
) -> None:
    """Create a record; child tables need --parent."""
    from credspine.ops.records import create_child_record, create_record
    from credspine.ops.requests import CreateChildRecordRequest, CreateRecordRequest

    ctx = make_context(database, dry_run=dry_run)
    values = parse_fields(fields)
    if ctx.engine.registry.parent_of(table) is not None:
        result = create_child_record(
            ctx, CreateChildRecordRequest(table=table, parent_id=parent or "", fields=values)
        )
    else:
        result = create_record(ctx, CreateRecordRequest(table=table, fields=values))
    output_result(result, as_json=json_out, title="Create")


@app.command()
def patch(
    table: str = typer.Argument(..., help="Table name"),
    record_id: str = typer.Argument(..., help="Record ID"),
    fields: list[str] | None = typer.Option(None, "--field", "-f", help="key=value"),
    replace: bool = typer.Option(False, "--replace", help="Clear every field not given."),
    database: str | None = DatabaseOption,
    dry_run: bool = typer.Option(False, "--dry-run"),
    json_out: bool = JsonOption,
) -> None:
    """Update a record (only the given fields unless --replace)."""
    from credspine.ops.records import replace_record, update_record
    from credspine.ops.requests import ReplaceRecordRequest, UpdateRecordRequest

    ctx = make_context(database, dry_run=dry_run)
    values = parse_fields(fields)
    if replace:
        result = replace_record(
            ctx, ReplaceRecordRequest(table=table, record_id=record_id, fields=values)
        )
    else:
        result = update_record(
            ctx, UpdateRecordRequest(table=table, record_id=record_id, fields=values)
        )
    output_result(result, as_json=json_out, title="Patch")


@app.command()
def delete(
    name: str = typer.Argument(..., help="Entity type (cascade) or table (single row)"),
    record_id: str = typer.Argument(..., help="Record ID"),
    database: str | None = DatabaseOption,
    dry_run: bool = typer.Option(False, "--dry-run"),
    json_out: bool = JsonOption,
) -> None:
    """Delete an entity and its related records, or a single table row."""
    from credspine.ops.records import delete_entity, delete_record
    from credspine.ops.requests import DeleteEntityRequest, DeleteRecordRequest

    ctx = make_context(database, dry_run=dry_run)
    if name in ctx.engine.registry.cascadable_types():
        result = delete_entity(ctx, DeleteEntityRequest(entity_type=name, record_id=record_id))
    else:
        result = delete_record(ctx, DeleteRecordRequest(table=name, record_id=record_id))
    output_result(result, as_json=json_out, title="Delete")


if __name__ == "__main__":  # pragma: no cover
    app()
