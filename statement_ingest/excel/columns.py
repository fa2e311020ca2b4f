from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..errors import MissingRequiredColumns
from ..models.column_map import ColumnMap
from ..models.raw_sheet import RawSheet
from ..services.fields import canonical_text

"""Column detection: map spreadsheet columns to semantic fields.

The first ``k`` rows are header candidates. A cell matches a field when its
canonical text (accents removed, casefolded) contains one of the field's
aliases. Per field the first matching column wins; overall the first row in
which both ``date`` and ``description`` resolve is the header row.

Aliases are stored in canonical form only, so "Histórico", "HISTORICO" and
"histórico" all match "historico".
"""

__all__ = [
    "COLUMN_ALIASES",
    "DETECTED_FIELDS",
    "match_header_row",
    "detect_columns",
]

DETECTED_FIELDS = ("date", "description", "value", "credit", "debit")

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "date": (
        "data",
        "date",
        "data do lancamento",
        "dt",
        "data mov",
        "data movimento",
    ),
    "description": (
        "historico",
        "historico original",
        "descricao",
        "historico/descricao",
        "descricao/historico",
        "desc",
    ),
    "value": ("valor", "valor (r$)", "valor r$", "vlr", "val"),
    "credit": ("credito", "entrada", "receita"),
    "debit": ("debito", "saida", "despesa"),
}


def match_header_row(cells: Sequence[Any]) -> ColumnMap:
    """Resolve field -> column index for a single candidate row.

    ``header_row`` of the returned map is -1; ``detect_columns`` fills it in.
    """
    found: dict[str, int] = {}
    for index, cell in enumerate(cells):
        text = canonical_text(cell)
        if not text:
            continue
        for field_name in DETECTED_FIELDS:
            if field_name in found:
                continue
            if any(alias in text for alias in COLUMN_ALIASES[field_name]):
                found[field_name] = index
    return ColumnMap(header_row=-1, **found)


def detect_columns(sheet: RawSheet, k: int = 5) -> ColumnMap:
    """Scan the first ``k`` rows and return the accepted header mapping.

    Raises
    ------
    MissingRequiredColumns: no candidate row resolves both date and description.
        ``missing`` lists the required fields absent from the best candidate
        (the one resolving the most required fields, earliest on ties).
    """
    best_missing: list[str] | None = None
    for row_index, cells in enumerate(sheet.head(k)):
        candidate = match_header_row(cells)
        if candidate.is_complete:
            return ColumnMap(
                header_row=row_index,
                date=candidate.date,
                description=candidate.description,
                value=candidate.value,
                credit=candidate.credit,
                debit=candidate.debit,
            )
        missing = candidate.required_missing()
        if best_missing is None or len(missing) < len(best_missing):
            best_missing = missing
    raise MissingRequiredColumns(
        best_missing if best_missing is not None else ["date", "description"],
        scanned_rows=min(k, len(sheet)),
    )
