from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .project import ImportFailure, ProjectState

"""ImportResult: outcome of one orchestrated import run.

Aggregates the committed project (or the failure that prevented it) with
timing metrics for the SUMMARY line.
"""

__all__ = [
    "ImportResult",
]


@dataclass(frozen=True)
class ImportResult:
    source_name: str  # 取込元ファイル名 (mock の場合は sample_survey.xlsx)
    project: ProjectState
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    failure: ImportFailure | None = None
    issue_log: Path | None = None  # None: nothing was written

    @property
    def succeeded(self) -> bool:
        return self.failure is None and not self.project.is_empty
