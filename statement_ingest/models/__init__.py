"""Domain models for bank-statement ingestion.

Plain frozen dataclasses shared by the parsers, the pipeline and the
orchestrator. Nothing here performs I/O.
"""

from .column_map import ColumnMap
from .config_models import DEFAULT_CONFIG, IngestConfig
from .error_record import IssueRecord
from .ingest_result import ExecutionPath, IngestResult, IngestState
from .normalized_row import NormalizedRow, ValidationStatus
from .parse_report import ParseReport, ParseStats
from .raw_sheet import RawSheet
from .transaction_record import RecordStatus, TransactionRecord

__all__ = [
    # Configuration
    "IngestConfig",
    "DEFAULT_CONFIG",
    # Sheet / detection
    "RawSheet",
    "ColumnMap",
    # Rows and records
    "NormalizedRow",
    "ValidationStatus",
    "TransactionRecord",
    "RecordStatus",
    # Results
    "ParseReport",
    "ParseStats",
    "IngestResult",
    "IngestState",
    "ExecutionPath",
    # Logging
    "IssueRecord",
]
