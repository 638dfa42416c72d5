from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .column_mapping import ColumnMapping
from .row_record import RowRecord

"""Project and application state models.

ProjectState is the committed dataset (rows + mapping + counts). AppState is
the single state value owned by the ProjectController; every transition
replaces it as a whole, so readers never observe a half-applied update.
"""

__all__ = [
    "AppStep",
    "FailureKind",
    "ImportFailure",
    "PendingImport",
    "ProjectState",
    "AppState",
]

DEFAULT_PROJECT_NAME = "New Project"


class AppStep(Enum):
    """Workflow steps: import → mapping → cleaning → dashboard."""
    IMPORT = "import"
    MAPPING = "mapping"
    CLEANING = "cleaning"
    DASHBOARD = "dashboard"


class FailureKind(Enum):
    DECODE = "DECODE_FAILURE"
    EMPTY_FILE = "EMPTY_FILE"


@dataclass(frozen=True)
class ImportFailure:
    """User-visible, retryable import error."""
    kind: FailureKind
    source_name: str
    message: str


@dataclass(frozen=True)
class PendingImport:
    """Decoded batch awaiting mapping review and confirmation."""
    source_name: str
    headers: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    mappings: tuple[ColumnMapping, ...]


@dataclass(frozen=True)
class ProjectState:
    """Committed project (in memory only)."""
    name: str = DEFAULT_PROJECT_NAME
    rows: tuple[RowRecord, ...] = ()
    mappings: tuple[ColumnMapping, ...] = ()
    total_respondents: int = 0  # Row count at commit, not recomputed after exclusion
    version: int = 0  # Bumped on every row-sequence replacement

    @property
    def valid_respondents(self) -> int:
        return sum(1 for r in self.rows if not r.is_excluded)

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class AppState:
    step: AppStep = AppStep.IMPORT
    project: ProjectState = field(default_factory=ProjectState)
    pending: PendingImport | None = None
    error: ImportFailure | None = None
