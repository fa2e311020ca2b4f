from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from decimal import Decimal
from typing import Any

from ..errors import EmptySheet, InputTooLarge
from ..excel.columns import detect_columns
from ..excel.reader import read_statement, to_raw_sheet
from ..models.column_map import ColumnMap
from ..models.config_models import DEFAULT_CONFIG, IngestConfig
from ..models.ingest_result import IngestResult
from ..models.normalized_row import NormalizedRow, ValidationStatus
from ..models.parse_report import ParseReport, ParseStats
from ..models.raw_sheet import RawSheet
from ..models.transaction_record import TransactionRecord
from .fields import (
    classify_payment_type,
    combine_credit_debit,
    extract_identifier,
    parse_date,
    parse_value,
    value_to_cents,
)
from .hashing import origin_hash
from .progress import ProgressReporter, processing_percent
from .validation import validate_row
from .value_index import build_value_index

logger = logging.getLogger(__name__)

"""The ingestion pipeline proper: bytes -> report, records, index.

A pure, blocking computation shared by both execution paths. The orchestrator
runs it either on the caller's thread or inside a background context; the
output only depends on ``data``, ``operation_date`` and ``config``.

``checkpoint`` is polled at every stage boundary and between row chunks. It
raises IngestCancelled to abort; nothing built so far is returned.
"""

__all__ = [
    "NO_VALUE_COLUMN_WARNING",
    "parse_row",
    "build_report",
    "build_records",
    "run_pipeline",
]

NO_VALUE_COLUMN_WARNING = "no value, credit or debit column detected; values default to 0"

Checkpoint = Callable[[], None]


def _noop() -> None:
    return None


def _text(cell: Any) -> str:
    return "" if cell is None else str(cell)


def parse_row(sheet: RawSheet, row_index: int, columns: ColumnMap) -> NormalizedRow:
    """Parse one data row with the detected column map (not yet validated)."""

    def cell(column: int | None) -> Any:
        return sheet.cell(row_index, column)

    description = _text(cell(columns.description))
    if columns.has_value:
        value = parse_value(cell(columns.value))
    elif columns.has_split_value:
        value = combine_credit_debit(cell(columns.credit), cell(columns.debit))
    else:
        value = Decimal(0)

    return NormalizedRow(
        row_number=row_index + 1,
        date=parse_date(cell(columns.date)),
        payment_type=classify_payment_type(description).value,
        identifier=extract_identifier(description),
        value=value,
        original_description=description,
    )


def _is_blank(cells: Sequence[Any]) -> bool:
    return all(c is None or (isinstance(c, str) and not c.strip()) for c in cells)


def build_report(
    sheet: RawSheet,
    columns: ColumnMap,
    *,
    reporter: ProgressReporter | None = None,
    checkpoint: Checkpoint = _noop,
    chunk_size: int = DEFAULT_CONFIG.chunk_size,
) -> ParseReport:
    """Parse and validate every data row below the header row, in order."""
    first_data = columns.header_row + 1
    total = len(sheet) - first_data
    if total <= 0:
        raise EmptySheet("sheet has a header row but no data rows")

    rows: list[NormalizedRow] = []
    errors: list[str] = []
    warnings: list[str] = []
    if not columns.has_value and not columns.has_split_value:
        warnings.append(NO_VALUE_COLUMN_WARNING)

    total_rows = valid_rows = rows_with_warnings = rows_with_errors = 0
    total_value = Decimal(0)
    step = max(1, chunk_size)

    for chunk_start in range(first_data, len(sheet), step):
        checkpoint()
        for row_index in range(chunk_start, min(chunk_start + step, len(sheet))):
            if _is_blank(sheet.rows[row_index]):
                continue
            row_number = row_index + 1
            total_rows += 1
            try:
                row = validate_row(parse_row(sheet, row_index, columns))
            except (ValueError, TypeError, ArithmeticError) as e:
                rows_with_errors += 1
                errors.append(f"Row {row_number}: processing failed - {e}")
                logger.debug("row %d failed: %s", row_number, e)
                continue

            if row.validation_status is ValidationStatus.VALID:
                valid_rows += 1
                total_value += abs(row.value)
                rows.append(row)
            elif row.validation_status is ValidationStatus.WARNING:
                rows_with_warnings += 1
                warnings.append(f"Row {row_number}: {row.validation_message}")
                rows.append(row)
            else:
                rows_with_errors += 1
                errors.append(f"Row {row_number}: {row.validation_message}")

        if reporter is not None:
            done = min(chunk_start + step, len(sheet)) - first_data
            reporter.emit(processing_percent(done, total), "processing", f"{done}/{total} rows")

    return ParseReport(
        rows=tuple(rows),
        errors=tuple(errors),
        warnings=tuple(warnings),
        stats=ParseStats(
            total_rows=total_rows,
            valid_rows=valid_rows,
            rows_with_warnings=rows_with_warnings,
            rows_with_errors=rows_with_errors,
            total_value=total_value,
        ),
    )


def build_records(
    rows: Sequence[NormalizedRow],
    operation_date: str,
    *,
    hash_length: int = DEFAULT_CONFIG.hash_length,
) -> tuple[TransactionRecord, ...]:
    """Tag surviving rows with origin hash and cents; ids follow row order."""
    return tuple(
        TransactionRecord(
            record_id=record_id,
            origin_hash=origin_hash(
                row.date,
                row.identifier,
                row.value,
                row.original_description,
                length=hash_length,
            ),
            value_cents=value_to_cents(row.value),
            operation_date=operation_date,
            row=row,
        )
        for record_id, row in enumerate(rows)
        if not row.is_error
    )


def run_pipeline(
    data: bytes,
    operation_date: str,
    *,
    reporter: ProgressReporter | None = None,
    checkpoint: Checkpoint = _noop,
    config: IngestConfig = DEFAULT_CONFIG,
) -> IngestResult:
    """Run every stage over ``data`` and return the (path-less) result.

    Raises StructuralError subclasses for unusable input and IngestCancelled
    when ``checkpoint`` trips. Row problems are reported, not raised.
    """
    reporter = reporter or ProgressReporter()
    operation_day = parse_date(operation_date) or operation_date.strip()

    checkpoint()
    if len(data) > config.max_file_size_bytes:
        raise InputTooLarge(len(data), config.max_file_size_bytes)
    reporter.stage("reading", f"{len(data)} bytes")

    checkpoint()
    df = read_statement(data)
    reporter.stage("parsing", f"sheet '{df.attrs.get('sheet_name', '')}'")

    checkpoint()
    sheet = to_raw_sheet(df)
    reporter.stage("converting", f"{len(sheet)} rows")

    checkpoint()
    columns = detect_columns(sheet, k=config.header_scan_rows)
    reporter.stage("analyzing", f"header on row {columns.header_row + 1}")
    logger.debug("column map: %s", columns)

    reporter.stage("processing")
    report = build_report(
        sheet,
        columns,
        reporter=reporter,
        checkpoint=checkpoint,
        chunk_size=config.chunk_size,
    )

    checkpoint()
    records = build_records(report.rows, operation_day, hash_length=config.hash_length)
    reporter.stage("normalizing", f"{len(records)} records")

    checkpoint()
    index = build_value_index(records)
    reporter.stage("indexing", f"{len(index)} distinct values")

    checkpoint()
    reporter.stage("done")
    return IngestResult(report=report, index=index, records=records)
