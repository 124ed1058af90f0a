from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from colrecon.models.config_models import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_PREVIEW_ROWS,
    DEFAULT_SETTLE_MS,
    EngineSettings,
    RegistryConfig,
)
from colrecon.models.schema import SchemaRegistry, TargetField

"""Schema registry loader.

Responsibilities:
- Load the registry YAML (target fields + optional engine settings)
- Validate it against registry_schema.json (shipped next to this module)
- Reject duplicate field ids
- Apply defaults (description="", required=false, timing defaults)
"""

SCHEMA_PATH = Path(__file__).parent / "registry_schema.json"


class ConfigError(Exception):
    pass


def _validate_registry_schema(data: Any) -> None:
    """Validate registry data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            registry data fails validation (missing keys, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"registry schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def parse_registry(data: Any) -> RegistryConfig:
    """Build a RegistryConfig from already-parsed YAML/JSON data."""
    _validate_registry_schema(data)

    fields: list[TargetField] = []
    seen: set[str] = set()
    for raw in data["fields"]:
        fid = raw["id"]
        if fid in seen:
            raise ConfigError(f"config validation failed: duplicate field id '{fid}'")
        seen.add(fid)
        fields.append(
            TargetField(
                id=fid,
                display_name=raw["display_name"],
                description=raw.get("description", ""),
                required=bool(raw.get("required", False)),
            )
        )

    s_raw = data.get("settings") or {}
    settings = EngineSettings(
        preview_rows=s_raw.get("preview_rows", DEFAULT_PREVIEW_ROWS),
        debounce_ms=s_raw.get("debounce_ms", DEFAULT_DEBOUNCE_MS),
        settle_ms=s_raw.get("settle_ms", DEFAULT_SETTLE_MS),
        fuzzy_threshold=s_raw.get("fuzzy_threshold"),
    )
    return RegistryConfig(schema=SchemaRegistry.of(fields), settings=settings)


def load_registry(path: Path) -> RegistryConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    return parse_registry(data)
