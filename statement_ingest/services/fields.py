from __future__ import annotations

import re
import unicodedata
import warnings
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

import pandas as pd

"""Field parsers: raw spreadsheet cell -> normalized field value.

All parsers are pure and never raise on bad input:
- ``parse_date`` returns "" when the cell cannot be read as a date
- ``parse_value`` returns Decimal(0) for empty or non-numeric cells
- ``classify_payment_type`` returns PaymentType.OTHER when nothing matches
- ``extract_identifier`` returns "" when no CPF-shaped number is present

Text matching is done on a canonical form (NFKD, accents removed, casefolded)
so "HISTÓRICO", "Historico" and "histórico" are the same word.
"""

__all__ = [
    "PaymentType",
    "canonical_text",
    "parse_date",
    "parse_value",
    "combine_credit_debit",
    "classify_payment_type",
    "extract_identifier",
    "normalize_amount",
    "value_to_cents",
]

# Spreadsheet day-serial epoch (serial 1 == 1900-01-01 with the 1900 leap-year quirk)
EXCEL_EPOCH = date(1899, 12, 30)
MAX_DAY_SERIAL = 100_000

_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})$")
_YEAR_FIRST_RE = re.compile(r"^(\d{4})[/.-](\d{1,2})[/.-](\d{1,2})$")
_CPF_RE = re.compile(r"(?<!\d)(\d{3}\.?\d{3}\.?\d{3}-?\d{2})(?!\d)")
_NON_NUMERIC_RE = re.compile(r"[^\d,.\-]")
_NON_DIGIT_RE = re.compile(r"\D")


class PaymentType(str, Enum):
    """Payment-type labels as shown to reconciliation users."""
    PIX_RECEIVED = "PIX RECEBIDO"
    PIX_SENT = "PIX ENVIADO"
    TED = "TED"
    DOC = "DOC"
    CARD = "CARTÃO"
    CASH = "DINHEIRO"
    BOLETO = "BOLETO"
    TRANSFER = "TRANSFERÊNCIA"
    DEPOSIT = "DEPÓSITO"
    WITHDRAWAL = "SAQUE"
    OTHER = "OUTROS"


# Ordered: first match wins. PIX patterns precede TRANSFER since a PIX
# description often also says "transferencia". Patterns run on canonical text.
PAYMENT_PATTERNS: tuple[tuple[PaymentType, re.Pattern[str]], ...] = (
    (PaymentType.PIX_RECEIVED, re.compile(r"pix\s*recebid")),
    (PaymentType.PIX_SENT, re.compile(r"pix\s*enviad")),
    (PaymentType.TED, re.compile(r"\bted\b")),
    (PaymentType.DOC, re.compile(r"\bdoc\b")),
    (PaymentType.CARD, re.compile(r"cartao")),
    (PaymentType.CASH, re.compile(r"dinheiro")),
    (PaymentType.BOLETO, re.compile(r"boleto")),
    (PaymentType.TRANSFER, re.compile(r"transferencia")),
    (PaymentType.DEPOSIT, re.compile(r"deposito")),
    (PaymentType.WITHDRAWAL, re.compile(r"saque")),
)


def canonical_text(value: Any) -> str:
    """NFKD-fold, strip combining marks, casefold and trim."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFKD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return text.casefold().strip()


def _format_date(d: date) -> str:
    return f"{d.day:02d}-{d.month:02d}-{d.year:04d}"


def _safe_date(year: int, month: int, day: int) -> str:
    try:
        return _format_date(date(year, month, day))
    except ValueError:
        return ""


def parse_date(value: Any) -> str:
    """Return the cell as canonical DD-MM-YYYY, or "" when unreadable.

    Accepted shapes:
    - datetime/date (native workbook dates, pandas Timestamps)
    - numeric day-serial (0 < serial < 100000)
    - "DD/MM/YYYY", "DD-MM-YYYY", "DD.MM.YYYY" (day first, never locale-sniffed)
    - "YYYY/MM/DD", "YYYY-MM-DD"
    - anything else pandas can parse as a timestamp
    """
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, datetime):
        if pd.isna(value):
            return ""
        return _format_date(value.date())
    if isinstance(value, date):
        return _format_date(value)
    if isinstance(value, (int, float)):
        if value != value or not 0 < value < MAX_DAY_SERIAL:  # NaN or out of range
            return ""
        return _format_date(EXCEL_EPOCH + timedelta(days=int(value)))

    text = str(value).strip()
    if not text:
        return ""
    m = _DAY_FIRST_RE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        return _safe_date(year, month, day)
    m = _YEAR_FIRST_RE.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _safe_date(year, month, day)

    with warnings.catch_warnings():
        # pandas warns when it has to guess a format; the guess is what we want here
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return ""
    if parsed is None or pd.isna(parsed):
        return ""
    return _format_date(parsed.date())


def parse_value(value: Any) -> Decimal:
    """Monetary cell -> Decimal.

    Numbers are taken as-is (through ``str`` so floats keep their shortest
    repr). Strings lose currency symbols and whitespace, the first comma becomes
    the decimal point. Anything else, or a string that still is not a number,
    yields Decimal(0).
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            return Decimal(0)
        return Decimal(str(value))

    cleaned = _NON_NUMERIC_RE.sub("", str(value))
    if not cleaned:
        return Decimal(0)
    if "," in cleaned and cleaned.rfind(",") > cleaned.rfind("."):
        cleaned = cleaned.replace(".", "")  # 1.234,56: dots are thousands separators
    cleaned = cleaned.replace(",", ".", 1)
    if len(cleaned) > 1 and cleaned.endswith("-"):
        cleaned = "-" + cleaned[:-1]  # trailing-minus debit notation
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        return Decimal(0)
    return parsed if parsed.is_finite() else Decimal(0)


def combine_credit_debit(credit: Any, debit: Any) -> Decimal:
    """Signed value from split columns: credit if nonzero, else -|debit|."""
    credit_value = parse_value(credit)
    if credit_value != 0:
        return credit_value
    debit_value = parse_value(debit)
    return -abs(debit_value) if debit_value != 0 else Decimal(0)


def classify_payment_type(description: str) -> PaymentType:
    text = canonical_text(description)
    if not text:
        return PaymentType.OTHER
    for payment_type, pattern in PAYMENT_PATTERNS:
        if pattern.search(text):
            return payment_type
    return PaymentType.OTHER


def extract_identifier(description: str) -> str:
    """First 11-digit CPF (optionally punctuated) in the text, digits only."""
    if not description:
        return ""
    m = _CPF_RE.search(description)
    return _NON_DIGIT_RE.sub("", m.group(1)) if m else ""


def value_to_cents(value: Decimal | int | float) -> int:
    """round(value * 100) with half-up rounding, as an int."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int((value * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def normalize_amount(amount: Any) -> Decimal:
    """Normalize a user-typed amount ("R$ 1.234,56", "1,234.56", 150.5).

    Unlike ``parse_value`` this guesses the thousands separator: whichever of
    ',' and '.' appears last is the decimal separator. Used for cash amounts
    typed during reconciliation, not for spreadsheet cells.
    """
    if isinstance(amount, (int, float, Decimal)) and not isinstance(amount, bool):
        return parse_value(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if not isinstance(amount, str):
        return Decimal("0.00")
    cleaned = _NON_NUMERIC_RE.sub("", amount.strip())
    comma, dot = cleaned.rfind(","), cleaned.rfind(".")
    if comma > dot:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif dot > comma:
        cleaned = cleaned.replace(",", "")
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0.00")
    if not parsed.is_finite():
        return Decimal("0.00")
    return parsed.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
