from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

"""RowRecord model, QualityFlag and RowStatus enums.

RowRecord represents one survey response after import. The cell values are
kept as decoded (opaque for display); numeric coercion happens only where the
quality analyzer or the aggregate views need numeric semantics.
"""

__all__ = [
    "QualityFlag",
    "RowStatus",
    "RowRecord",
    "ordered_flags",
]


class QualityFlag(Enum):
    """Data quality flags raised by the row analyzer.

    Values are the bilingual labels shown in the cleaning table.
    MISSING_DATA is declared but never raised by the current analyzer.
    """
    STRAIGHTLINING = "填答一致 (Straightlining)"
    SPEEDER = "填答過快 (Speeder)"
    MISSING_DATA = "缺漏值 (Missing Data)"

    @property
    def label(self) -> str:
        return self.value


_FLAG_ORDER = {flag: idx for idx, flag in enumerate(QualityFlag)}


def ordered_flags(flags: Iterable[QualityFlag]) -> list[QualityFlag]:
    """Return flags in declaration order (stable display order)."""
    return sorted(flags, key=_FLAG_ORDER.__getitem__)


class RowStatus(Enum):
    """Per-row cleaning status.

    State transitions: clean | flagged → excluded (terminal)
    """
    CLEAN = "clean"
    FLAGGED = "flagged"
    EXCLUDED = "excluded"


@dataclass(frozen=True)
class RowRecord:
    """A single survey response with its quality state."""
    id: str  # Assigned at commit (row_<index>), stable across filtering
    values: dict[str, Any]  # Header -> raw cell value (absent key = empty cell)
    flags: frozenset[QualityFlag] = field(default_factory=frozenset)
    is_excluded: bool = False

    def __hash__(self) -> int:
        # values は dict のため id でハッシュ (等価な行は同じ id を持つ)
        return hash(self.id)

    @property
    def status(self) -> RowStatus:
        if self.is_excluded:
            return RowStatus.EXCLUDED
        if self.flags:
            return RowStatus.FLAGGED
        return RowStatus.CLEAN

    @property
    def is_active(self) -> bool:
        return not self.is_excluded

    def get(self, header: str, default: Any = None) -> Any:
        return self.values.get(header, default)

    def excluded(self) -> RowRecord:
        """Return an excluded copy (self when already excluded)."""
        if self.is_excluded:
            return self
        return replace(self, is_excluded=True)
