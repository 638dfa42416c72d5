from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

"""ColumnMapping model and ColumnType enum.

A ColumnMapping assigns a semantic role and an analysis variable code to one
source column. Mappings are created by header inference at import time and
replaced (never mutated) when the user edits them during mapping review.
"""

__all__ = [
    "ColumnType",
    "ColumnMapping",
]


class ColumnType(Enum):
    """Semantic role of a source column.

    - DEMOGRAPHIC: grouping variable (gender, age) shown as category counts
    - SCALE: Likert-style rating item, used for straightlining and means
    - META: system information (duration, respondent id)
    - IGNORE: not analysed
    """
    DEMOGRAPHIC = "demographic"
    SCALE = "scale"
    META = "meta"
    IGNORE = "ignore"


@dataclass(frozen=True)
class ColumnMapping:
    """Role assignment for a single source column."""
    original_header: str  # Source header text, unique within a dataset
    variable_code: str  # User-editable code (e.g. PEOU1, DURATION); may repeat
    type: ColumnType = ColumnType.IGNORE

    def with_type(self, column_type: ColumnType | str) -> ColumnMapping:
        return replace(self, type=ColumnType(column_type))

    def with_variable_code(self, code: str) -> ColumnMapping:
        return replace(self, variable_code=code)

    def to_dict(self) -> dict[str, str]:
        return {
            "original_header": self.original_header,
            "variable_code": self.variable_code,
            "type": self.type.value,
        }
