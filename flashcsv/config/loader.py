from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.options import ImportOptions

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the bundled JSON schema (unknown keys rejected)
- Apply defaults for every optional section
- Let FLASHCSV_STORE override the JSON store path
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "StorageConfig",
    "ImportConfig",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("import_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_STORE_PATH = "./flashcards.json"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class StorageConfig:
    backend: str  # json | postgres
    path: str = DEFAULT_STORE_PATH
    dsn: str | None = None
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    source_directory: str
    storage: StorageConfig
    errors_directory: str = "./errors"
    logs_directory: str = "./logs"
    delimiter: str = "auto"
    has_header_row: bool = True
    mapping_overrides: dict[str, Any] = field(default_factory=dict)  # field -> header name / index / None
    options: ImportOptions = field(default_factory=ImportOptions)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: The schema file is missing or broken, or the data fails
            validation (missing required keys, wrong types, unknown keys)
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

    st_raw = data["storage"]
    storage = StorageConfig(
        backend=st_raw["backend"],
        path=os.getenv("FLASHCSV_STORE") or st_raw.get("path") or DEFAULT_STORE_PATH,
        dsn=st_raw.get("dsn"),
        host=st_raw.get("host"),
        port=st_raw.get("port"),
        user=st_raw.get("user"),
        password=st_raw.get("password"),
        database=st_raw.get("database"),
    )

    parse_raw = data.get("parse") or {}
    opts_raw = data.get("options") or {}
    try:
        options = ImportOptions(**opts_raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid options: {e}") from e

    return ImportConfig(
        source_directory=data["source_directory"],
        storage=storage,
        errors_directory=data.get("errors_directory", "./errors"),
        logs_directory=data.get("logs_directory", "./logs"),
        delimiter=parse_raw.get("delimiter", "auto"),
        has_header_row=parse_raw.get("has_header_row", True),
        mapping_overrides=dict(data.get("mapping") or {}),
        options=options,
    )
