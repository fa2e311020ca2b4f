from __future__ import annotations

from decimal import Decimal

from ..models.ingest_result import IngestResult

"""SUMMARY line rendering for one ingestion call.

Format:
    SUMMARY rows={total} valid={valid} warnings={warn} errors={err}
    total_value={amount} records={n} path={sync|background|fallback}
    elapsed_sec={secs}
"""

__all__ = [
    "SUMMARY_PREFIX",
    "format_elapsed",
    "render_summary_line",
]

SUMMARY_PREFIX = "SUMMARY "
_CENT = Decimal("0.01")


def format_elapsed(seconds: float) -> str:
    """Render seconds without scientific notation or trailing zeros."""
    if seconds <= 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    return f"{seconds:.6f}".rstrip("0").rstrip(".")


def render_summary_line(result: IngestResult) -> str:
    """Render the SUMMARY line of a successful ingestion.

    >>> from statement_ingest.models import ParseReport, ParseStats, IngestResult
    >>> from statement_ingest.services.value_index import ValueCentsIndex
    >>> from decimal import Decimal
    >>> report = ParseReport((), (), (), ParseStats(0, 0, 0, 0, Decimal(0)))
    >>> render_summary_line(IngestResult(report, ValueCentsIndex(), ()))
    'SUMMARY rows=0 valid=0 warnings=0 errors=0 total_value=0.00 records=0 path=sync elapsed_sec=0'
    """
    stats = result.report.stats
    total_value = f"{stats.total_value.quantize(_CENT)}"
    return (
        f"{SUMMARY_PREFIX}rows={stats.total_rows} "
        f"valid={stats.valid_rows} "
        f"warnings={stats.rows_with_warnings} "
        f"errors={stats.rows_with_errors} "
        f"total_value={total_value} "
        f"records={len(result.records)} "
        f"path={result.path.value} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
