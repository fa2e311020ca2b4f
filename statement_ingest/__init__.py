"""Bank-statement spreadsheet ingestion.

Decode a single-sheet statement, detect its columns, parse and validate
every row, tag records with a stable origin hash and index them by value in
cents for exact-value reconciliation lookups.
"""

from .errors import (
    EmptySheet,
    ExecutionError,
    FallbackFailed,
    IngestCancelled,
    IngestError,
    IngestTimeoutError,
    InputTooLarge,
    MissingRequiredColumns,
    StructuralError,
    UndecodableInput,
)
from .models import IngestConfig, IngestResult, TransactionRecord
from .services.cancellation import CancelToken
from .services.orchestrator import ExecutionMode, IngestOptions, ingest, reindex
from .services.value_index import ValueCentsIndex, extend_value_index

__all__ = [
    "ingest",
    "reindex",
    "extend_value_index",
    "IngestOptions",
    "ExecutionMode",
    "CancelToken",
    "IngestConfig",
    "IngestResult",
    "TransactionRecord",
    "ValueCentsIndex",
    # Errors
    "IngestError",
    "StructuralError",
    "MissingRequiredColumns",
    "EmptySheet",
    "UndecodableInput",
    "InputTooLarge",
    "ExecutionError",
    "IngestTimeoutError",
    "IngestCancelled",
    "FallbackFailed",
]

__version__ = "0.1.0"
