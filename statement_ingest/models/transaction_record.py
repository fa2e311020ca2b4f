from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from .normalized_row import NormalizedRow, ValidationStatus

"""TransactionRecord model: a tagged row ready for persistence and indexing.

``to_mapping``/``from_mapping`` use the storage column names of the bank entry
table, so records persisted by the storage collaborator can be rebuilt and
re-indexed without the original spreadsheet.
"""

__all__ = [
    "RecordStatus",
    "TransactionRecord",
]


class RecordStatus(Enum):
    """Reconciliation lifecycle. Only PENDING is assigned by ingestion;
    the other states are set by the reconciliation collaborator."""
    PENDING = "pending"
    CONFERRED = "conferred"
    NOT_FOUND = "not_found"
    TRANSFERRED = "transferred"


@dataclass(frozen=True)
class TransactionRecord:
    record_id: int  # position within the ingested batch
    origin_hash: str  # dedup key
    value_cents: int
    operation_date: str  # day the batch is filed under (DD-MM-YYYY)
    row: NormalizedRow
    status: RecordStatus = RecordStatus.PENDING

    # Convenience accessors so callers can treat records as flat rows
    @property
    def date(self) -> str:
        return self.row.date

    @property
    def identifier(self) -> str:
        return self.row.identifier

    @property
    def value(self) -> Decimal:
        return self.row.value

    @property
    def payment_type(self) -> str:
        return self.row.payment_type

    @property
    def description(self) -> str:
        return self.row.original_description

    def to_mapping(self) -> dict[str, Any]:
        """Storage row for the persistence collaborator (keyed by ``source_id``)."""
        return {
            "id": self.record_id,
            "source_id": self.origin_hash,
            "document_number": self.row.identifier or None,
            "date": self.row.date,
            "description": self.row.original_description,
            "value": str(self.row.value),
            "value_cents": self.value_cents,
            "transaction_type": self.row.payment_type,
            "status": self.status.value,
            "day": self.operation_date,
        }

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> TransactionRecord:
        """Rebuild a record from a storage row.

        ``value`` may come back from storage as str, int, float or Decimal;
        it is normalised through ``str`` so floats keep their shortest repr.
        """
        raw_value = data.get("value")
        value = Decimal(str(raw_value)) if raw_value is not None else Decimal(0)
        row = NormalizedRow(
            row_number=int(data.get("row_number", -1)),
            date=str(data.get("date") or ""),
            payment_type=str(data.get("transaction_type") or ""),
            identifier=str(data.get("document_number") or ""),
            value=value,
            original_description=str(data.get("description") or ""),
            validation_status=ValidationStatus.VALID,
        )
        value_cents = data.get("value_cents")
        return TransactionRecord(
            record_id=int(data["id"]),
            origin_hash=str(data.get("source_id") or ""),
            value_cents=int(value_cents) if value_cents is not None else 0,
            operation_date=str(data.get("day") or ""),
            row=row,
            status=RecordStatus(data.get("status", RecordStatus.PENDING.value)),
        )
