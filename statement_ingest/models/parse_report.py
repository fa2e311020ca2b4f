from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from .normalized_row import NormalizedRow

"""ParseReport and ParseStats models.

One report is returned per ingestion call. ``rows`` holds only rows that
survived validation (valid + warning); rows with errors are represented by
their messages in ``errors``.
"""

__all__ = [
    "ParseReport",
    "ParseStats",
]


@dataclass(frozen=True)
class ParseStats:
    total_rows: int = 0  # non-empty source rows examined
    valid_rows: int = 0
    rows_with_warnings: int = 0
    rows_with_errors: int = 0
    total_value: Decimal = Decimal(0)  # sum of |value| over valid rows only


@dataclass(frozen=True)
class ParseReport:
    rows: tuple[NormalizedRow, ...] = ()
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    stats: ParseStats = field(default_factory=ParseStats)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0
