from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DatabaseConfig,
    ImportConfig,
    ReferenceTablesConfig,
    TargetConfig,
)
from ..targets import TARGETS

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against contracts/config_schema.json
- Check that timezone names an IANA zone
- Apply defaults (timezone=UTC, page_size=500, revalidate_on_commit=True,
  table names from the target schemas) for anything omitted
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "load_config",
    "default_config",
]

SCHEMA_PATH = Path(__file__).resolve().parent.parent / "contracts" / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_TIMEZONE = "UTC"
DEFAULT_PAGE_SIZE = 500
DEFAULT_REJECTION_LOG_DIR = "./logs"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
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


def _check_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {name}") from e
    return name


def _build_config(data: dict[str, Any]) -> ImportConfig:
    targets_raw = data.get("targets") or {}
    targets: dict[str, TargetConfig] = {}
    for name, schema in TARGETS.items():
        raw = targets_raw.get(name) or {}
        targets[name] = TargetConfig(
            name=name,
            table=raw.get("table", schema.default_table),
            timestamp_columns=tuple(raw.get("timestamp_columns", schema.timestamp_columns)),
        )

    ref_raw = data.get("reference_tables") or {}
    reference_tables = ReferenceTablesConfig(**ref_raw)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        targets=targets,
        reference_tables=reference_tables,
        timezone=_check_timezone(data.get("timezone", DEFAULT_TIMEZONE)),
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        revalidate_on_commit=data.get("revalidate_on_commit", True),
        rejection_log_dir=data.get("rejection_log_dir", DEFAULT_REJECTION_LOG_DIR),
        database=db,
    )


def default_config() -> ImportConfig:
    """Configuration used when no config file exists."""
    return _build_config({})


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)
    return _build_config(data)
