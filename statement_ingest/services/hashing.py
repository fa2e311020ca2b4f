from __future__ import annotations

import hashlib
import re
from decimal import Decimal

from .fields import value_to_cents

"""Deterministic origin hash (deduplication key).

Contract:
    key    = f"{date}|{identifier digits}|{round(value * 100)}|{description.strip().lower()}"
    digest = sha256(key.encode("utf-8")).hexdigest()[:length]
    hash   = "origin_" + digest

SHA-256 is the only strategy, on every execution path, so the same logical
row always yields the same hash whether it was processed synchronously or in
the background context.
"""

__all__ = [
    "ORIGIN_PREFIX",
    "DEFAULT_HASH_LENGTH",
    "normalization_key",
    "origin_hash",
]

ORIGIN_PREFIX = "origin_"
DEFAULT_HASH_LENGTH = 16

_NON_DIGIT_RE = re.compile(r"\D")


def normalization_key(date: str, identifier: str, value: Decimal | int | float, description: str) -> str:
    return "|".join(
        (
            (date or "").strip(),
            _NON_DIGIT_RE.sub("", identifier or ""),
            str(value_to_cents(value)),
            (description or "").strip().lower(),
        )
    )


def origin_hash(
    date: str,
    identifier: str,
    value: Decimal | int | float,
    description: str,
    *,
    length: int = DEFAULT_HASH_LENGTH,
) -> str:
    key = normalization_key(date, identifier, value, description)
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"{ORIGIN_PREFIX}{digest[:length]}"
