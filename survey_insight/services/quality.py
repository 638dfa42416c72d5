from __future__ import annotations

import math
import numbers
import statistics
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..models.column_mapping import ColumnMapping, ColumnType
from ..models.config_models import QualityThresholds
from ..models.row_record import QualityFlag
from .inference import DURATION_CODE

"""Row quality analyzer.

Two heuristics, both pure functions of (row values, column mapping):

STRAIGHTLINING
    Numeric answers of every scale column on the row are collected (missing or
    non-numeric cells are skipped, never treated as zero). At least
    `straightlining_min_items` answers are required. Identical answers, or a
    population variance (divisor n) below `straightlining_variance`, raise the
    flag. This is a proxy for low response variability, not a reliability
    statistic.

SPEEDER
    The first column coded DURATION is coerced to a number; a value below
    `speeder_seconds` raises the flag. A value that does not coerce raises
    nothing, and without a DURATION column the check is skipped.

MISSING_DATA is part of the flag set but no rule raises it.
"""

__all__ = [
    "DEFAULT_THRESHOLDS",
    "coerce_number",
    "scale_values",
    "find_duration_mapping",
    "is_straightlining",
    "is_speeder",
    "analyze_row",
]

DEFAULT_THRESHOLDS = QualityThresholds()


def coerce_number(value: Any) -> float | None:
    """Coerce a cell value to a float, or None when it is not numeric.

    - real numbers pass through (bool and NaN are rejected)
    - strings are stripped and parsed ("45" -> 45.0, "45 sec" -> None)
    - empty strings and anything else -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        result = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(result):
        return None
    return result


def scale_values(values: Mapping[str, Any], mappings: Iterable[ColumnMapping]) -> list[float]:
    """Numeric answers of the scale-typed columns present on the row."""
    collected: list[float] = []
    for mapping in mappings:
        if mapping.type is not ColumnType.SCALE:
            continue
        number = coerce_number(values.get(mapping.original_header))
        if number is not None:
            collected.append(number)
    return collected


def find_duration_mapping(mappings: Iterable[ColumnMapping]) -> ColumnMapping | None:
    return next((m for m in mappings if m.variable_code == DURATION_CODE), None)


def is_straightlining(answers: Sequence[float], thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> bool:
    if len(answers) < thresholds.straightlining_min_items:
        return False
    if all(a == answers[0] for a in answers):
        return True
    return statistics.pvariance(answers) < thresholds.straightlining_variance


def is_speeder(duration: Any, thresholds: QualityThresholds = DEFAULT_THRESHOLDS) -> bool:
    seconds = coerce_number(duration)
    return seconds is not None and seconds < thresholds.speeder_seconds


def analyze_row(
    values: Mapping[str, Any],
    mappings: Sequence[ColumnMapping],
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
) -> frozenset[QualityFlag]:
    """Return the quality flags of one row. Never raises for well-typed input."""
    flags: set[QualityFlag] = set()

    if is_straightlining(scale_values(values, mappings), thresholds):
        flags.add(QualityFlag.STRAIGHTLINING)

    duration_mapping = find_duration_mapping(mappings)
    if duration_mapping is not None and is_speeder(values.get(duration_mapping.original_header), thresholds):
        flags.add(QualityFlag.SPEEDER)

    return frozenset(flags)
