from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from tabular_import.models.config_models import (
    DEFAULT_DATE_FORMATS,
    ApiConfig,
    DatabaseConfig,
    ImportConfig,
    KindConfig,
    SubmissionConfig,
    ValidationConfig,
)
from tabular_import.models.reference import ReferenceEntity

"""Config loader.

Responsibilities:
- Load YAML config (default: config/import.yml)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults for omitted optional sections
- Apply environment overrides for API credentials
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation.
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


def _build_kind(raw: dict[str, Any]) -> KindConfig:
    entities = tuple(
        ReferenceEntity(id=int(item["id"]), display_name=str(item["name"]))
        for item in raw.get("reference_entities") or []
    )
    return KindConfig(
        create_endpoint=raw.get("create_endpoint"),
        reference_endpoint=raw.get("reference_endpoint"),
        table=raw.get("table"),
        reference_table=raw.get("reference_table"),
        reference_entities=entities,
    )


def apply_env_overrides(cfg: ImportConfig) -> ImportConfig:
    """Return ``cfg`` with IMPORT_API_URL / IMPORT_API_TOKEN applied.

    Environment variables win over YAML values. Database variables are resolved
    later by the PostgreSQL gateway itself.
    """
    base_url = os.getenv("IMPORT_API_URL") or cfg.api.base_url
    token = os.getenv("IMPORT_API_TOKEN") or cfg.api.token
    if base_url == cfg.api.base_url and token == cfg.api.token:
        return cfg
    return replace(cfg, api=replace(cfg.api, base_url=base_url, token=token))


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    api_raw = data.get("api") or {}
    db_raw = data.get("database") or {}
    sub_raw = data.get("submission") or {}
    val_raw = data.get("validation") or {}

    api = ApiConfig(
        base_url=api_raw.get("base_url"),
        token=api_raw.get("token"),
        timeout_seconds=float(api_raw.get("timeout_seconds", 30.0)),
    )
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    validation = ValidationConfig(
        date_formats=tuple(val_raw.get("date_formats") or DEFAULT_DATE_FORMATS),
        min_year=int(val_raw.get("min_year", 1900)),
        max_years_ahead=int(val_raw.get("max_years_ahead", 10)),
    )
    cfg = ImportConfig(
        api=api,
        database=db,
        kinds={name: _build_kind(raw or {}) for name, raw in data["kinds"].items()},
        submission=SubmissionConfig(pause_seconds=float(sub_raw.get("pause_seconds", 0.0))),
        validation=validation,
        logs_directory=data.get("logs_directory", "./logs"),
    )
    return apply_env_overrides(cfg)
