from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import pandas as pd

from ..models.column_mapping import ColumnMapping, ColumnType
from ..models.config_models import DEFAULT_MAX_SCALE_ITEMS
from ..models.project import ProjectState
from ..models.row_record import RowRecord, RowStatus
from .inference import GENDER_CODE
from .quality import coerce_number

"""Derived, read-only views over a ProjectState.

All functions recompute from the row sequence on each call; nothing is cached
on the rows. ProjectState.version can be used as a cache key by callers that
need memoization.
"""

__all__ = [
    "UNKNOWN_CATEGORY",
    "RELIABILITY_PLACEHOLDER",
    "ScaleMean",
    "DashboardSnapshot",
    "active_rows",
    "flagged_active_count",
    "excluded_count",
    "status_counts",
    "scale_means",
    "category_counts",
    "demographic_counts",
    "dashboard_snapshot",
]

UNKNOWN_CATEGORY = "Unknown"
# 固定値: 信頼性係数は計算していない (表示用プレースホルダ)
RELIABILITY_PLACEHOLDER = 0.87


@dataclass(frozen=True)
class ScaleMean:
    variable_code: str
    original_header: str
    mean: float | None  # None: no numeric answer among active rows


@dataclass(frozen=True)
class DashboardSnapshot:
    """Figures shown on the analysis dashboard."""
    valid_n: int
    filtered_n: int
    gender_distribution: dict[str, int]
    scale_means: list[ScaleMean]
    analysed_variables: int
    reliability_placeholder: float = RELIABILITY_PLACEHOLDER


def active_rows(project: ProjectState) -> list[RowRecord]:
    return [r for r in project.rows if not r.is_excluded]


def flagged_active_count(project: ProjectState) -> int:
    """Rows still active with at least one flag (the cleaning badge count)."""
    return sum(1 for r in project.rows if not r.is_excluded and r.flags)


def excluded_count(project: ProjectState) -> int:
    return sum(1 for r in project.rows if r.is_excluded)


def status_counts(project: ProjectState) -> dict[RowStatus, int]:
    counts = Counter(r.status for r in project.rows)
    return {status: counts.get(status, 0) for status in RowStatus}


def _column_frame(rows: list[RowRecord], headers: list[str]) -> pd.DataFrame:
    return pd.DataFrame(
        [[r.values.get(h) for h in headers] for r in rows],
        columns=headers,
        dtype=object,
    )


def _round_mean(value: float) -> float:
    """Round to 2 decimals with ties away from zero (2.125 -> 2.13)."""
    return float(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def scale_means(project: ProjectState, limit: int | None = None) -> list[ScaleMean]:
    """Mean of numeric answers per scale column over active rows (2 decimals).

    Non-numeric and missing answers are left out of both sum and count.
    """
    scale_maps = [m for m in project.mappings if m.type is ColumnType.SCALE]
    if limit is not None:
        scale_maps = scale_maps[:limit]
    if not scale_maps:
        return []
    frame = _column_frame(active_rows(project), [m.original_header for m in scale_maps])
    results: list[ScaleMean] = []
    for mapping in scale_maps:
        numeric = pd.to_numeric(frame[mapping.original_header].map(coerce_number), errors="coerce")
        column = numeric.dropna()
        mean = _round_mean(float(column.mean())) if not column.empty else None
        results.append(ScaleMean(mapping.variable_code, mapping.original_header, mean))
    return results


def _category_label(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN_CATEGORY
    if isinstance(value, float):
        if pd.isna(value):
            return UNKNOWN_CATEGORY
        if value.is_integer():
            return str(int(value))
    return str(value)


def category_counts(project: ProjectState, mapping: ColumnMapping) -> dict[str, int]:
    """Count active rows per category of one column, in first-seen order."""
    rows = active_rows(project)
    if not rows:
        return {}
    labels = _column_frame(rows, [mapping.original_header])[mapping.original_header].map(_category_label)
    return dict(Counter(labels.tolist()))


def demographic_counts(project: ProjectState) -> dict[str, dict[str, int]]:
    """Category counts for every demographic column, keyed by variable code."""
    return {
        m.variable_code: category_counts(project, m)
        for m in project.mappings
        if m.type is ColumnType.DEMOGRAPHIC
    }


def dashboard_snapshot(project: ProjectState, max_scale_items: int = DEFAULT_MAX_SCALE_ITEMS) -> DashboardSnapshot:
    valid = len(active_rows(project))
    gender_map = next((m for m in project.mappings if m.variable_code == GENDER_CODE), None)
    means = scale_means(project, limit=max_scale_items)
    return DashboardSnapshot(
        valid_n=valid,
        filtered_n=len(project.rows) - valid,
        gender_distribution=category_counts(project, gender_map) if gender_map else {},
        scale_means=means,
        analysed_variables=len(means),
    )
