from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from decimal import Decimal
from typing import Any

from ..models.transaction_record import TransactionRecord
from .fields import normalize_amount, value_to_cents

"""Value-cents index: integer cents -> record ids, for exact-value lookup.

Keys are always ``int`` cents; floats never appear as keys. Ids under a key
keep record insertion order, and keys keep first-seen order, so building the
index from the same records always yields identical content (``to_json``
output included).
"""

__all__ = [
    "ValueCentsIndex",
    "build_value_index",
    "extend_value_index",
    "reindex",
]

RecordLike = TransactionRecord | Mapping[str, Any]


class ValueCentsIndex:
    """Insertion-ordered multimap ``value_cents -> [record_id, ...]``."""

    def __init__(self, entries: Mapping[int, Iterable[int]] | None = None) -> None:
        self._entries: dict[int, list[int]] = {}
        if entries:
            for cents, ids in entries.items():
                for record_id in ids:
                    self.add(int(cents), int(record_id))

    def add(self, value_cents: int, record_id: int) -> None:
        if not isinstance(value_cents, int) or isinstance(value_cents, bool):
            raise TypeError(f"value_cents must be int, got {type(value_cents).__name__}")
        self._entries.setdefault(value_cents, []).append(record_id)

    def lookup(self, value_cents: int) -> list[int]:
        """Record ids with exactly this cents value (empty list if none)."""
        return list(self._entries.get(value_cents, ()))

    def lookup_amount(self, amount: str | int | float | Decimal) -> list[int]:
        """Lookup by a user-typed amount such as "R$ 1.234,56" or 150.5."""
        return self.lookup(value_to_cents(normalize_amount(amount)))

    def to_dict(self) -> dict[int, list[int]]:
        return {cents: list(ids) for cents, ids in self._entries.items()}

    def to_json(self) -> str:
        return json.dumps({str(cents): ids for cents, ids in self._entries.items()})

    def copy(self) -> ValueCentsIndex:
        return ValueCentsIndex(self._entries)

    def __contains__(self, value_cents: object) -> bool:
        return value_cents in self._entries

    def __iter__(self) -> Iterator[int]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueCentsIndex):
            return NotImplemented
        # ordered comparison: key order and id order are part of the content
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"ValueCentsIndex({self._entries!r})"


def _as_record(item: RecordLike) -> TransactionRecord:
    if isinstance(item, TransactionRecord):
        return item
    return TransactionRecord.from_mapping(item)


def extend_value_index(index: ValueCentsIndex, records: Iterable[RecordLike]) -> ValueCentsIndex:
    """Return a new index: ``index`` plus ``records`` appended in order.

    Cents are recomputed from each record's value, so records rebuilt from
    storage index exactly like freshly ingested ones.
    """
    merged = index.copy()
    for item in records:
        record = _as_record(item)
        merged.add(value_to_cents(record.value), record.record_id)
    return merged


def build_value_index(records: Iterable[RecordLike]) -> ValueCentsIndex:
    return extend_value_index(ValueCentsIndex(), records)


def reindex(records: Iterable[RecordLike]) -> ValueCentsIndex:
    """Rebuild the index from previously persisted records (no re-parsing)."""
    return build_value_index(records)
