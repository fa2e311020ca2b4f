from __future__ import annotations

import json
from decimal import Decimal

import pytest

from statement_ingest.models import NormalizedRow, TransactionRecord
from statement_ingest.services.value_index import (
    ValueCentsIndex,
    build_value_index,
    extend_value_index,
    reindex,
)


def _record(record_id: int, value: str) -> TransactionRecord:
    row = NormalizedRow(
        row_number=record_id + 2,
        date="15-01-2024",
        payment_type="OUTROS",
        identifier="",
        value=Decimal(value),
        original_description=f"row {record_id}",
    )
    return TransactionRecord(
        record_id=record_id,
        origin_hash=f"origin_{record_id:016x}",
        value_cents=int(Decimal(value) * 100),
        operation_date="15-01-2024",
        row=row,
    )


def test_lookup_groups_ids_in_insertion_order():
    index = build_value_index([_record(0, "10.00"), _record(1, "5.00"), _record(2, "10.00")])
    assert index.lookup(1000) == [0, 2]
    assert index.lookup(500) == [1]
    assert index.lookup(1) == []
    assert list(index) == [1000, 500]
    assert len(index) == 2


def test_lookup_returns_copy():
    index = build_value_index([_record(0, "10.00")])
    index.lookup(1000).append(99)
    assert index.lookup(1000) == [0]


def test_keys_must_be_int():
    index = ValueCentsIndex()
    with pytest.raises(TypeError):
        index.add(10.5, 0)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        index.add(True, 0)  # type: ignore[arg-type]


def test_lookup_amount_normalizes_typed_amounts():
    index = build_value_index([_record(0, "1234.56"), _record(1, "150.50")])
    assert index.lookup_amount("R$ 1.234,56") == [0]
    assert index.lookup_amount("1,234.56") == [0]
    assert index.lookup_amount(150.5) == [1]
    assert index.lookup_amount("999") == []


def test_negative_values_keep_sign():
    index = build_value_index([_record(0, "-42.10")])
    assert index.lookup(-4210) == [0]
    assert 4210 not in index


def test_extend_does_not_mutate_input():
    history = build_value_index([_record(0, "10.00")])
    merged = extend_value_index(history, [_record(1, "10.00"), _record(2, "3.00")])
    assert history.lookup(1000) == [0]
    assert merged.lookup(1000) == [0, 1]
    assert merged.lookup(300) == [2]


def test_reindex_from_storage_mappings_matches_built_index():
    records = [_record(0, "10.00"), _record(1, "-5.25"), _record(2, "10.00")]
    built = build_value_index(records)
    assert reindex(r.to_mapping() for r in records) == built
    assert reindex(records) == built


def test_equality_is_order_sensitive():
    a = ValueCentsIndex({100: [0, 1]})
    b = ValueCentsIndex({100: [1, 0]})
    assert a != b
    assert a == ValueCentsIndex({100: [0, 1]})


def test_to_json_uses_string_keys():
    index = build_value_index([_record(0, "10.00"), _record(1, "10.00")])
    assert json.loads(index.to_json()) == {"1000": [0, 1]}
    assert index.to_dict() == {1000: [0, 1]}
