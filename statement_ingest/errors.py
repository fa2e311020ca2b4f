from __future__ import annotations

"""Exception taxonomy for statement ingestion.

Structural errors abort an ingestion before any row output. Execution and
timeout errors are recovered once through the synchronous fallback path;
cancellation is always terminal. Row-level problems are never raised, they
are returned inside the ParseReport.
"""

__all__ = [
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


class IngestError(Exception):
    """Base exception for everything ``ingest`` raises."""


class StructuralError(IngestError):
    """Fatal problem with the input itself; never retried via fallback."""

    code = "STRUCTURAL_ERROR"


class MissingRequiredColumns(StructuralError):
    code = "MISSING_REQUIRED_COLUMNS"

    def __init__(self, missing: list[str], scanned_rows: int) -> None:
        self.missing = list(missing)
        self.scanned_rows = scanned_rows
        super().__init__(
            f"required columns not found in the first {scanned_rows} rows: {', '.join(self.missing)}"
        )


class EmptySheet(StructuralError):
    code = "EMPTY_SHEET"


class UndecodableInput(StructuralError):
    code = "UNDECODABLE_INPUT"


class InputTooLarge(StructuralError):
    code = "INPUT_TOO_LARGE"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"input has {size} bytes, limit is {limit}")


class ExecutionError(IngestError):
    """The background context crashed or reported a transport-level error."""

    code = "EXECUTION_ERROR"


class IngestTimeoutError(ExecutionError):
    code = "TIMEOUT"

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"background ingestion exceeded {timeout_ms} ms")


class IngestCancelled(IngestError):
    """Cooperative cancellation observed at a checkpoint."""

    code = "CANCELLED"

    def __init__(self, message: str = "ingestion cancelled") -> None:
        super().__init__(message)


class FallbackFailed(IngestError):
    """Both the background run and the synchronous fallback failed."""

    code = "FALLBACK_FAILED"

    def __init__(self, primary: BaseException, fallback: BaseException) -> None:
        self.primary = primary
        self.fallback = fallback
        super().__init__(
            f"background run failed ({type(primary).__name__}: {primary}); "
            f"synchronous fallback failed ({type(fallback).__name__}: {fallback})"
        )
