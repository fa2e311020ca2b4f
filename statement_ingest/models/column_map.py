from __future__ import annotations

from dataclasses import dataclass

"""ColumnMap model: result of header detection.

Each semantic field holds a 0-based column index or None when absent.
``date`` and ``description`` are required; ``value`` may be replaced by the
``credit``/``debit`` pair.
"""

__all__ = [
    "ColumnMap",
    "REQUIRED_FIELDS",
]

REQUIRED_FIELDS = ("date", "description")


@dataclass(frozen=True)
class ColumnMap:
    header_row: int  # 0-based index of the accepted header row, -1 if none
    date: int | None = None
    description: int | None = None
    value: int | None = None
    credit: int | None = None
    debit: int | None = None

    def required_missing(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if getattr(self, name) is None]

    @property
    def is_complete(self) -> bool:
        return not self.required_missing()

    @property
    def has_value(self) -> bool:
        return self.value is not None

    @property
    def has_split_value(self) -> bool:
        """True when in/out flows come from separate credit/debit columns."""
        return self.value is None and (self.credit is not None or self.debit is not None)
