"""Header mapping and cell coercion for raw spreadsheet grids."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..errors import SchemaError
from .aliases import (
    MANDATORY_FIELDS,
    NULLABLE_FIELDS,
    Schema,
    example_alias,
    field_type,
    find_field,
)
from .time_codec import decode_date, decode_time, parse_number

Grid = Sequence[Sequence[Any]]


@dataclass(slots=True)
class NormalizedSheet:
    """Canonical rows of one sheet plus bookkeeping counters."""

    schema: str
    columns: dict[str, int]
    rows: list[dict[str, Any]] = field(default_factory=list)
    blank_rows: int = 0
    rejected_rows: int = 0


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    text = str(value).strip()
    return text == "" or text.lower() == "null"


def map_headers(headers: Sequence[Any], schema: Schema) -> tuple[dict[str, int], dict[str, str]]:
    """Map canonical fields to column indexes; extra columns are ignored.

    Returns the column map and the raw header text of every mapped column.
    """
    columns: dict[str, int] = {}
    raw_headers: dict[str, str] = {}
    for index, header in enumerate(headers):
        canonical = find_field(header, schema)
        if canonical is None or canonical in columns:
            continue
        columns[canonical] = index
        raw_headers[canonical] = str(header).strip()
    return columns, raw_headers


def validate_headers(columns: dict[str, int], schema: Schema) -> None:
    missing = [name for name in MANDATORY_FIELDS[schema] if name not in columns]
    if missing:
        raise SchemaError(schema, missing, [example_alias(name, schema) for name in missing])


def coerce_cell(canonical: str, value: Any, header: str = "") -> Any:
    """Coerce one non-blank cell according to its field type. Never raises."""
    kind = field_type(canonical)
    if kind == "date":
        return decode_date(value)
    if kind == "time":
        return decode_time(value)
    if kind == "numeric":
        number = parse_number(value)
        if number is None:
            return None if canonical in NULLABLE_FIELDS else 0.0
        if canonical == "planned_distance" and "(m)" in header.lower():
            number = number / 1000
        return number
    if isinstance(value, float) and value.is_integer():
        # Postal codes and names typed as numbers.
        return str(int(value))
    return str(value).strip()


def _blank_default(canonical: str) -> Any:
    if canonical in NULLABLE_FIELDS:
        return None
    kind = field_type(canonical)
    if kind == "time":
        return decode_time(None)
    if kind == "text":
        return ""
    if kind == "date":
        return ""
    return 0.0


def normalize_grid(grid: Grid, schema: Schema) -> NormalizedSheet:
    """Turn a header row plus data rows into canonical field dictionaries.

    Raises SchemaError before any row is read when a mandatory header is
    missing. Rows that are fully blank or lack a mandatory value are skipped;
    every other cell problem degrades to a default value.
    """
    if not grid:
        return NormalizedSheet(schema=schema, columns={})

    headers = list(grid[0] or [])
    columns, raw_headers = map_headers(headers, schema)
    validate_headers(columns, schema)

    mandatory = MANDATORY_FIELDS[schema]
    sheet = NormalizedSheet(schema=schema, columns=columns)
    for row in grid[1:]:
        cells = list(row or [])
        if all(_is_blank(cell) for cell in cells):
            sheet.blank_rows += 1
            continue

        def cell(canonical: str) -> Any:
            index = columns[canonical]
            return cells[index] if index < len(cells) else None

        if any(_is_blank(cell(name)) for name in mandatory):
            sheet.rejected_rows += 1
            continue

        record: dict[str, Any] = {}
        for canonical in columns:
            value = cell(canonical)
            if _is_blank(value):
                record[canonical] = _blank_default(canonical)
            else:
                record[canonical] = coerce_cell(canonical, value, raw_headers[canonical])
        sheet.rows.append(record)

    logging.info(
        f"Normalized {schema} sheet: {len(sheet.rows)} rows kept, "
        f"{sheet.blank_rows} blank, {sheet.rejected_rows} missing mandatory values, "
        f"{len(headers) - len(columns)} unmapped columns"
    )
    return sheet
