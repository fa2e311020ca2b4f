from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RawSheet model: the decoded single sheet, before any interpretation.

Cells are plain Python values (str, int, float, datetime or None). Missing
spreadsheet cells are represented as None; rows keep their source order.
"""

__all__ = [
    "RawSheet",
]


@dataclass(frozen=True)
class RawSheet:
    """Ordered, immutable grid of untyped cells."""
    rows: tuple[tuple[Any, ...], ...]
    sheet_name: str = ""

    def __len__(self) -> int:
        return len(self.rows)

    def head(self, k: int) -> tuple[tuple[Any, ...], ...]:
        """First ``k`` rows (candidate header rows)."""
        return self.rows[:k]

    def cell(self, row_index: int, column: int | None) -> Any:
        """Cell value or None when the column is absent or the row is short."""
        if column is None:
            return None
        row = self.rows[row_index]
        if column >= len(row):
            return None
        return row[column]
