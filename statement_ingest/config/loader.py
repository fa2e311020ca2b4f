from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from dotenv import load_dotenv
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_CONFIG, IngestConfig

"""Config loader.

Resolution order (later wins):
1. IngestConfig defaults
2. YAML file (``config/ingest.yml`` or an explicit path)
3. ``STATEMENT_INGEST_<KEY>`` environment variables (e.g.
   STATEMENT_INGEST_TIMEOUT_MS=5000); a ``.env`` file only fills keys the
   process environment does not already set

The merged mapping is validated against ``ingest_schema.json`` before the
dataclass is built, so unknown keys and wrong types are rejected.
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("ingest_schema.json")
DEFAULT_CONFIG_PATH = Path("config/ingest.yml")
ENV_PREFIX = "STATEMENT_INGEST_"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate merged config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/invalid, or data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    return data


def _env_overrides(env_file: Path | None) -> dict[str, Any]:
    """Collect STATEMENT_INGEST_* variables (after loading ``env_file``)."""
    if env_file is not None and env_file.exists():
        load_dotenv(dotenv_path=env_file, override=False)
    overrides: dict[str, Any] = {}
    for name in IngestConfig.field_names():
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        if name == "error_log_dir":
            overrides[name] = raw or None
            continue
        try:
            overrides[name] = int(raw)
        except ValueError as e:
            raise ConfigError(f"{ENV_PREFIX}{name.upper()} must be an integer: {raw!r}") from e
    return overrides


def load_config(path: Path | None = None, *, env_file: Path | None = Path(".env")) -> IngestConfig:
    """Build an IngestConfig from defaults, YAML and environment.

    With ``path=None`` the default location is used when it exists; an
    explicit ``path`` that does not exist is an error.
    """
    data: dict[str, Any] = {}
    if path is not None:
        if not path.exists():
            raise ConfigError(f"config file not found: {path}")
        data = _read_yaml(path)
    elif DEFAULT_CONFIG_PATH.exists():
        data = _read_yaml(DEFAULT_CONFIG_PATH)

    data.update(_env_overrides(env_file))
    _validate_config_schema(data)
    return DEFAULT_CONFIG.with_overrides(**data)
