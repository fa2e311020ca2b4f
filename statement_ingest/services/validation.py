from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any

import jsonschema
from jsonschema.exceptions import ValidationError

from ..models.normalized_row import NormalizedRow, ValidationStatus
from .fields import PaymentType

"""Row validation: schema check followed by business rules.

Schema (JSON Schema, checked with jsonschema):
- date: DD-MM-YYYY with plausible day/month
- description: string
- value: number
- identifier: "" or 11 digits
- payment_type: one of the known labels

Classification:
- schema failure on date or value -> ERROR
- schema failure on any other field -> WARNING
- non-finite value -> ERROR
- zero value -> WARNING ("zero value")
- blank description -> WARNING ("empty description")

All applicable messages are joined with ", " in ``validation_message``.
"""

__all__ = [
    "ROW_SCHEMA",
    "CRITICAL_FIELDS",
    "validate_row",
]

ROW_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["date", "description", "value", "identifier", "payment_type"],
    "properties": {
        "date": {
            "type": "string",
            "pattern": r"^(0[1-9]|[12]\d|3[01])-(0[1-9]|1[0-2])-\d{4}$",
        },
        "description": {"type": "string"},
        "value": {"type": "number"},
        "identifier": {"type": "string", "pattern": r"^(\d{11})?$"},
        "payment_type": {"enum": [p.value for p in PaymentType]},
    },
}

CRITICAL_FIELDS = frozenset({"date", "value"})

_FIELD_MESSAGES = {
    "date": "invalid date",
    "value": "invalid value",
    "identifier": "invalid identifier",
    "payment_type": "unknown payment type",
    "description": "invalid description",
}

_validator = jsonschema.Draft7Validator(ROW_SCHEMA)


def _schema_issues(row: NormalizedRow) -> list[tuple[str, str]]:
    """(field, message) pairs from the JSON schema check, in field order."""
    instance = {
        "date": row.date,
        "description": row.original_description,
        "value": row.value,
        "identifier": row.identifier,
        "payment_type": row.payment_type,
    }
    issues: dict[str, str] = {}
    error: ValidationError
    for error in _validator.iter_errors(instance):
        field_name = str(error.path[0]) if error.path else "row"
        issues.setdefault(field_name, _FIELD_MESSAGES.get(field_name, error.message))
    ordered = [name for name in ROW_SCHEMA["properties"] if name in issues]
    return [(name, issues[name]) for name in ordered]


def validate_row(row: NormalizedRow) -> NormalizedRow:
    """Return a copy of ``row`` carrying its validation status and message."""
    status = ValidationStatus.VALID
    messages: list[str] = []

    for field_name, message in _schema_issues(row):
        messages.append(message)
        if field_name in CRITICAL_FIELDS:
            status = ValidationStatus.ERROR
        elif status is ValidationStatus.VALID:
            status = ValidationStatus.WARNING

    value = row.value
    if isinstance(value, Decimal) and not value.is_finite():
        if "invalid value" not in messages:
            messages.append("invalid value")
        status = ValidationStatus.ERROR
    elif value == 0:
        messages.append("zero value")
        if status is ValidationStatus.VALID:
            status = ValidationStatus.WARNING

    if not row.original_description.strip():
        messages.append("empty description")
        if status is ValidationStatus.VALID:
            status = ValidationStatus.WARNING

    return replace(
        row,
        validation_status=status,
        validation_message=", ".join(messages) if messages else None,
    )
