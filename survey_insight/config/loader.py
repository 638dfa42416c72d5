from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.column_mapping import ColumnType
from ..models.config_models import (
    DEFAULT_MAX_SCALE_ITEMS,
    DEFAULT_SCALE_HEADER_MIN_LENGTH,
    DecoderConfig,
    MappingOverride,
    QualityThresholds,
    SurveyConfig,
)
from ..models.project import DEFAULT_PROJECT_NAME

"""Config loader.

Responsibilities:
- Load YAML config (config/survey.yml unless overridden)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults for every missing key
"""

__all__ = [
    "ConfigError",
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "resolve_config_path",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/survey.yml")
CONFIG_ENV_VAR = "SURVEY_INSIGHT_CONFIG"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if
            the config data fails schema validation (unknown keys, wrong
            types, out-of-range thresholds).
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


def resolve_config_path(explicit: str | None = None) -> tuple[Path, bool]:
    """Pick the config path: --config, then $SURVEY_INSIGHT_CONFIG, then default.

    Returns (path, required). The default path may be absent (defaults apply);
    explicitly requested paths must exist.
    """
    if explicit:
        return Path(explicit), True
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path), True
    return DEFAULT_CONFIG_PATH, False


def _parse_overrides(raw: dict[str, Any]) -> dict[str, MappingOverride]:
    overrides: dict[str, MappingOverride] = {}
    for header, entry in raw.items():
        col_type = entry.get("type")
        overrides[str(header)] = MappingOverride(
            type=ColumnType(col_type) if col_type else None,
            variable_code=entry.get("variable_code"),
        )
    return overrides


def load_config(path: Path, *, required: bool = True) -> SurveyConfig:
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return SurveyConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    decoder_raw = data.get("decoder", {})
    sentinels = decoder_raw.get("null_sentinels")
    decoder = DecoderConfig(
        keep_na_strings=decoder_raw.get("keep_na_strings"),
        null_sentinels={s.strip().upper() for s in sentinels} if sentinels else None,
    )
    quality_raw = data.get("quality", {})
    defaults = QualityThresholds()
    quality = QualityThresholds(
        straightlining_min_items=quality_raw.get(
            "straightlining_min_items", defaults.straightlining_min_items
        ),
        straightlining_variance=float(
            quality_raw.get("straightlining_variance", defaults.straightlining_variance)
        ),
        speeder_seconds=float(quality_raw.get("speeder_seconds", defaults.speeder_seconds)),
    )
    return SurveyConfig(
        project_name=data.get("project_name", DEFAULT_PROJECT_NAME),
        source_file=data.get("source_file"),
        decoder=decoder,
        scale_header_min_length=data.get("inference", {}).get(
            "scale_header_min_length", DEFAULT_SCALE_HEADER_MIN_LENGTH
        ),
        quality=quality,
        mapping_overrides=_parse_overrides(data.get("mapping_overrides", {})),
        auto_exclude_flagged=data.get("cleaning", {}).get("auto_exclude_flagged", False),
        max_scale_items=data.get("dashboard", {}).get("max_scale_items", DEFAULT_MAX_SCALE_ITEMS),
    )
