from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any

"""Config dataclass for statement ingestion.

Loaded from YAML by ``statement_ingest.config.loader`` and overridable from
environment variables. Defaults are usable without any config file.
"""

__all__ = [
    "IngestConfig",
    "DEFAULT_CONFIG",
]


@dataclass(frozen=True)
class IngestConfig:
    """Tunables for the ingestion pipeline and orchestrator."""
    background_threshold_bytes: int = 100 * 1024  # AUTO: smaller inputs run synchronously
    timeout_ms: int = 30_000  # background wall-clock budget
    max_file_size_bytes: int = 10 * 1024 * 1024  # larger inputs are rejected
    header_scan_rows: int = 5  # candidate header rows (K)
    chunk_size: int = 500  # rows per processing chunk (progress + cancellation)
    hash_length: int = 16  # hex chars kept from the digest
    teardown_grace_ms: int = 2_000  # join budget for a worker still running after teardown
    error_log_dir: str | None = None  # JSON Lines issue log directory (disabled when None)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_overrides(self, **overrides: Any) -> IngestConfig:
        """Copy with the given keys replaced (unknown keys raise TypeError)."""
        return replace(self, **overrides)


DEFAULT_CONFIG = IngestConfig()
