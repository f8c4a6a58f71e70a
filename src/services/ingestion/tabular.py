"""Row-addressable chunking for CSV and spreadsheet uploads.

Every data row becomes one chunk of the form::

    Row {i} from {filename}: {header1}: {cell1} | {header2}: {cell2} | ...

Spreadsheet rows are additionally prefixed with ``Sheet: {name} | ``.  Row 0
of each table is the header; ``i`` is the row's index within its table, so
skipped blank rows leave gaps rather than renumbering later rows.
"""

from __future__ import annotations

import csv
import io
import math
from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd
import structlog

from src.services.ingestion.text_decoder import decode_text

logger = structlog.get_logger(logger_name=__name__)


def format_cell(value: Any) -> str:
    """Render one cell; ``None``/NaN become ``""`` and ``30.0`` becomes ``30``."""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if value is pd.NaT:
        return ""
    return str(value).strip()


def _header_names(header_row: Sequence[Any], width: int) -> list[str]:
    names: list[str] = []
    for position in range(width):
        raw = header_row[position] if position < len(header_row) else None
        name = format_cell(raw)
        names.append(name or f"Column {position + 1}")
    return names


def rows_to_chunks(
    rows: Iterable[Sequence[Any]],
    filename: str,
    sheet: str | None = None,
) -> list[str]:
    """Convert a header row plus data rows into one chunk per non-blank row."""
    table = [list(row) for row in rows]
    if len(table) < 2:
        return []

    width = max(len(row) for row in table)
    headers = _header_names(table[0], width)
    prefix = f"Sheet: {sheet} | " if sheet is not None else ""

    chunks: list[str] = []
    skipped = 0
    for index, row in enumerate(table[1:], start=1):
        cells = [format_cell(value) for value in row]
        if not any(cells):
            skipped += 1
            continue
        fields = " | ".join(
            f"{headers[position]}: {cell}" for position, cell in enumerate(cells)
        )
        chunks.append(f"{prefix}Row {index} from {filename}: {fields}")

    logger.debug(
        "rows_chunked",
        filename=filename,
        sheet=sheet,
        num_chunks=len(chunks),
        blank_rows_skipped=skipped,
    )
    return chunks


def csv_rows_to_chunks(data: bytes, filename: str) -> list[str]:
    """Decode and parse a CSV upload; empty lines are dropped before indexing."""
    reader = csv.reader(io.StringIO(decode_text(data), newline=""))
    rows = [row for row in reader if row]
    return rows_to_chunks(rows, filename)


def spreadsheet_to_chunks(data: bytes, filename: str) -> list[str]:
    """Chunk every sheet of an XLS/XLSX workbook, in workbook order."""
    chunks: list[str] = []
    with pd.ExcelFile(io.BytesIO(data)) as workbook:
        for sheet_name in workbook.sheet_names:
            frame = workbook.parse(sheet_name, header=None, dtype=object)
            rows = list(frame.itertuples(index=False, name=None))
            # The header is the first non-blank row of the sheet.
            while rows and not any(format_cell(value) for value in rows[0]):
                rows.pop(0)
            chunks.extend(rows_to_chunks(rows, filename, sheet=str(sheet_name)))
    return chunks
