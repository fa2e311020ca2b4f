from __future__ import annotations

import hashlib
from decimal import Decimal

from statement_ingest.services.hashing import ORIGIN_PREFIX, normalization_key, origin_hash


def test_normalization_key_format():
    key = normalization_key("15-01-2024", "123.456.789-01", Decimal("150.50"), "  PIX Recebido ")
    assert key == "15-01-2024|12345678901|15050|pix recebido"


def test_origin_hash_is_prefixed_sha256():
    key = "15-01-2024|12345678901|15050|pix recebido"
    expected = ORIGIN_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]
    assert origin_hash("15-01-2024", "12345678901", Decimal("150.50"), "PIX RECEBIDO") == expected


def test_hash_stable_under_whitespace_and_case():
    a = origin_hash("15-01-2024", "12345678901", Decimal("150.50"), "PIX RECEBIDO DE JOAO")
    b = origin_hash("15-01-2024", "12345678901", Decimal("150.50"), "   pix recebido de joao  ")
    assert a == b


def test_hash_uses_cents_not_value_repr():
    assert origin_hash("15-01-2024", "", Decimal("150.5"), "x") == origin_hash("15-01-2024", "", 150.50, "x")


def test_hash_distinguishes_fields():
    base = origin_hash("15-01-2024", "12345678901", Decimal("10"), "x")
    assert base != origin_hash("16-01-2024", "12345678901", Decimal("10"), "x")
    assert base != origin_hash("15-01-2024", "10987654321", Decimal("10"), "x")
    assert base != origin_hash("15-01-2024", "12345678901", Decimal("10.01"), "x")
    assert base != origin_hash("15-01-2024", "12345678901", Decimal("10"), "y")


def test_hash_length():
    assert len(origin_hash("d", "", 1, "x")) == len(ORIGIN_PREFIX) + 16
    assert len(origin_hash("d", "", 1, "x", length=32)) == len(ORIGIN_PREFIX) + 32
