from __future__ import annotations

from dataclasses import dataclass, field

from .column_mapping import ColumnType
from .project import DEFAULT_PROJECT_NAME

"""Config dataclasses for the survey quality pipeline.

These are the typed, defaulted views of config/survey.yml produced by
survey_insight.config.loader. Every field has a default so that a missing
or partial config file still yields a complete configuration.
"""

__all__ = [
    "DecoderConfig",
    "QualityThresholds",
    "MappingOverride",
    "SurveyConfig",
]

DEFAULT_SCALE_HEADER_MIN_LENGTH = 15
DEFAULT_MAX_SCALE_ITEMS = 5


@dataclass(frozen=True)
class DecoderConfig:
    """Options passed through to the tabular decoder."""
    keep_na_strings: list[str] | None = None  # pandas 既定の NaN 変換から除外する文字列
    null_sentinels: set[str] | None = None  # 空セル扱いにする文字列 (大文字化済)


@dataclass(frozen=True)
class QualityThresholds:
    """Thresholds of the row quality heuristics."""
    straightlining_min_items: int = 5  # Fewer scale answers -> never flagged
    straightlining_variance: float = 0.2  # Population variance below this -> flagged
    speeder_seconds: float = 60.0  # Duration below this -> flagged


@dataclass(frozen=True)
class MappingOverride:
    """User edit applied to an inferred column mapping before commit."""
    type: ColumnType | None = None
    variable_code: str | None = None


@dataclass(frozen=True)
class SurveyConfig:
    """Root configuration object."""
    project_name: str = DEFAULT_PROJECT_NAME
    source_file: str | None = None
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    scale_header_min_length: int = DEFAULT_SCALE_HEADER_MIN_LENGTH
    quality: QualityThresholds = field(default_factory=QualityThresholds)
    mapping_overrides: dict[str, MappingOverride] = field(default_factory=dict)
    auto_exclude_flagged: bool = False
    max_scale_items: int = DEFAULT_MAX_SCALE_ITEMS
