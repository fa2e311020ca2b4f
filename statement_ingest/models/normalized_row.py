from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

"""NormalizedRow model: one parsed statement row.

Created once per source row by the field parsers and validator, immutable
afterwards. ``row_number`` is the 1-based spreadsheet row the values came
from (used in report messages).
"""

__all__ = [
    "NormalizedRow",
    "ValidationStatus",
]


class ValidationStatus(Enum):
    """Row classification produced by the validator.

    - VALID: row passes schema and business rules
    - WARNING: row kept, issue reported in ``ParseReport.warnings``
    - ERROR: row excluded from records/index, issue kept in ``ParseReport.errors``
    """
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class NormalizedRow:
    row_number: int
    date: str  # DD-MM-YYYY, "" when unparseable
    payment_type: str  # label from the payment-type table
    identifier: str  # CPF digits or ""
    value: Decimal
    original_description: str
    validation_status: ValidationStatus = ValidationStatus.VALID
    validation_message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.validation_status is ValidationStatus.ERROR
