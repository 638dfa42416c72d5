from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence

from ..models.column_mapping import ColumnMapping, ColumnType
from ..models.config_models import DEFAULT_SCALE_HEADER_MIN_LENGTH, MappingOverride

"""Column role inference from header text.

Heuristic, not ground truth: rules are matched against the lower-cased header
in a fixed priority order and the first match wins. The length rule treats
long question text as a Likert item, which misfires for short scale items and
long demographic questions, so the result is only a starting point for the
mapping review step (see apply_mapping_overrides).
"""

__all__ = [
    "DURATION_CODE",
    "ID_CODE",
    "GENDER_CODE",
    "AGE_CODE",
    "infer_column",
    "infer_mappings",
    "apply_mapping_overrides",
]

logger = logging.getLogger(__name__)

DURATION_CODE = "DURATION"
ID_CODE = "ID"
GENDER_CODE = "GENDER"
AGE_CODE = "AGE"

DURATION_TERMS = ("time", "duration", "seconds", "時間", "秒")
ID_TERMS = ("id", "ip", "編號")
GENDER_TERMS = ("gender", "sex", "性別")
AGE_TERMS = ("age", "年齡")


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def infer_column(
    header: str,
    index: int,
    scale_min_length: int = DEFAULT_SCALE_HEADER_MIN_LENGTH,
) -> ColumnMapping:
    """Infer the mapping of one header (index is 0-based)."""
    lower = header.lower()
    if _contains_any(lower, DURATION_TERMS):
        return ColumnMapping(header, DURATION_CODE, ColumnType.META)
    if _contains_any(lower, ID_TERMS):
        return ColumnMapping(header, ID_CODE, ColumnType.META)
    if _contains_any(lower, GENDER_TERMS):
        return ColumnMapping(header, GENDER_CODE, ColumnType.DEMOGRAPHIC)
    if _contains_any(lower, AGE_TERMS):
        return ColumnMapping(header, AGE_CODE, ColumnType.DEMOGRAPHIC)

    code = f"VAR_{index + 1}"
    # len() は文字数 (バイト数ではない)
    if len(header) > scale_min_length:
        return ColumnMapping(header, code, ColumnType.SCALE)
    return ColumnMapping(header, code, ColumnType.IGNORE)


def infer_mappings(
    headers: Sequence[str],
    scale_min_length: int = DEFAULT_SCALE_HEADER_MIN_LENGTH,
) -> list[ColumnMapping]:
    """Return one mapping per header, in header order."""
    return [infer_column(h, idx, scale_min_length) for idx, h in enumerate(headers)]


def apply_mapping_overrides(
    mappings: Sequence[ColumnMapping],
    overrides: Mapping[str, MappingOverride],
) -> list[ColumnMapping]:
    """Apply user edits keyed by original header.

    Overrides naming a header that is not in the dataset are logged and ignored.
    """
    known = {m.original_header for m in mappings}
    for header in overrides:
        if header not in known:
            logger.warning(f"mapping override for unknown column ignored: {header!r}")

    result: list[ColumnMapping] = []
    for mapping in mappings:
        override = overrides.get(mapping.original_header)
        if override is not None:
            if override.type is not None:
                mapping = mapping.with_type(override.type)
            if override.variable_code is not None:
                mapping = mapping.with_variable_code(override.variable_code)
        result.append(mapping)
    return result
