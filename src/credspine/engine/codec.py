"""
Row Codec - raw grids to typed records and back.

``decode`` treats the first row of a grid as the header row and turns every
following row into a ``dict`` keyed by the column keys (see
:mod:`credspine.engine.columns`). ``encode`` is the inverse, producing a grid
whose columns are exactly the given headers.

Coercion on read:
    - JSON columns: a non-empty string cell is parsed; a malformed one is
      logged as a ``DecodeError`` and replaced by ``{}``
    - Boolean columns: ``True`` or the text ``"true"`` (any case) → ``True``,
      anything else → ``False``
    - Everything else passes through unchanged

Coercion on write:
    - JSON columns: dicts/lists are serialized, other values pass through
    - Dates and datetimes are written as ISO 8601 text
    - Missing fields and ``None`` become ``""``

Round-trip law:
    ``decode(encode(records, headers)) == records`` whenever each record's
    fields are exactly the keys derived from ``headers`` (and JSON fields
    hold structured values).

Examples:
    >>> grid = encode([{"id": "p-1", "isActive": True, "address": {"city": "Austin"}}],
    ...               ["ID", "Is Active", "Address JSON"])
    >>> grid[1]
    ['p-1', True, '{"city": "Austin"}']
    >>> decode(grid)
    [{'id': 'p-1', 'isActive': True, 'address': {'city': 'Austin'}}]

Tags:
    codec, serialization, grid, spreadsheet, cred-spine
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from credspine.core.errors import DecodeError
from credspine.core.logging import get_logger
from credspine.engine.columns import ColumnKind, ColumnSpec, column_spec
from credspine.engine.registry import TableSchema
from credspine.store.protocols import Grid, Row

logger = get_logger(__name__)

Record = dict[str, Any]


# ── Cell coercion ────────────────────────────────────────────────────────


def decode_value(spec: ColumnSpec, raw: Any, *, table: str | None = None) -> Any:
    """Coerce one stored cell to its record value."""
    if spec.kind is ColumnKind.BOOLEAN:
        if raw is True:
            return True
        return isinstance(raw, str) and raw.strip().lower() == "true"

    if spec.kind is ColumnKind.JSON and isinstance(raw, str) and raw.strip():
        try:
            return json.loads(raw)
        except ValueError as exc:
            error = DecodeError(
                f"Malformed JSON in column {spec.label}",
                column=spec.label,
                raw=raw,
                cause=exc,
            ).with_context(table=table)
            logger.warning(
                "row_codec.decode_error",
                error_kind="DecodeError",
                table=table,
                column=spec.label,
                error=str(exc),
                detail=error.to_dict(),
            )
            return {}

    return raw


def encode_value(spec: ColumnSpec, value: Any) -> Any:
    """Coerce one record value to its stored cell."""
    if value is None:
        return ""
    if spec.kind is ColumnKind.JSON:
        if isinstance(value, (dict, list)):
            return json.dumps(value, default=str)
        if isinstance(value, str) and value.strip() and not _is_json_text(value):
            # Plain text is stored as a JSON string so it reads back unchanged.
            return json.dumps(value)
    if spec.kind is ColumnKind.BOOLEAN and isinstance(value, str):
        return value.strip().lower() == "true"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def canonical_value(spec: ColumnSpec, value: Any) -> Any:
    """The value a field would read back as after being written."""
    return decode_value(spec, encode_value(spec, value))


def _is_json_text(text: str) -> bool:
    try:
        json.loads(text)
    except ValueError:
        return False
    return True


# ── Header handling ──────────────────────────────────────────────────────


def header_specs(headers: Sequence[str], schema: TableSchema | None = None) -> list[ColumnSpec | None]:
    """Column specs for a stored header row (``None`` for blank labels)."""
    specs: list[ColumnSpec | None] = []
    for label in headers:
        if not isinstance(label, str) or not label.strip():
            specs.append(None)
        elif schema is not None:
            specs.append(schema.spec_for(label))
        else:
            specs.append(column_spec(label))
    return specs


@dataclass(frozen=True, slots=True)
class HeaderDrift:
    """Difference between a declared header row and the stored one."""

    missing: tuple[str, ...]
    unexpected: tuple[str, ...]

    def __bool__(self) -> bool:
        return bool(self.missing or self.unexpected)


def header_drift(expected: Iterable[str], actual: Iterable[str]) -> HeaderDrift:
    """Compare header rows by label; column order is irrelevant."""
    actual_labels = [a for a in actual if isinstance(a, str) and a.strip()]
    expected_labels = list(expected)
    return HeaderDrift(
        missing=tuple(label for label in expected_labels if label not in actual_labels),
        unexpected=tuple(label for label in actual_labels if label not in expected_labels),
    )


# ── Rows ─────────────────────────────────────────────────────────────────


def decode_row(
    specs: Sequence[ColumnSpec | None],
    row: Row,
    *,
    table: str | None = None,
) -> Record:
    record: Record = {}
    for position, spec in enumerate(specs):
        if spec is None:
            continue
        raw = row[position] if position < len(row) else ""
        record[spec.key] = decode_value(spec, raw, table=table)
    return record


def encode_row(specs: Sequence[ColumnSpec | None], record: Record) -> Row:
    return [
        "" if spec is None else encode_value(spec, record.get(spec.key))
        for spec in specs
    ]


# ── Grids ────────────────────────────────────────────────────────────────


def decode(
    grid: Grid,
    schema: TableSchema | None = None,
    *,
    table: str | None = None,
) -> list[Record]:
    """Decode a raw grid (header row first) into records."""
    if not grid:
        return []
    specs = header_specs(grid[0], schema)
    table = table or (schema.table if schema is not None else None)
    return [decode_row(specs, row, table=table) for row in grid[1:]]


def encode(
    records: Iterable[Record],
    headers: Sequence[str],
    schema: TableSchema | None = None,
) -> Grid:
    """Encode records into a raw grid whose columns are exactly ``headers``."""
    specs = header_specs(headers, schema)
    return [list(headers)] + [encode_row(specs, record) for record in records]


__all__ = [
    "Record",
    "HeaderDrift",
    "canonical_value",
    "decode",
    "decode_row",
    "decode_value",
    "encode",
    "encode_row",
    "encode_value",
    "header_drift",
    "header_specs",
]
