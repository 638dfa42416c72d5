"""Domain models for the survey response quality pipeline.

This package contains the domain model classes shared by the decoder,
the quality services and the project state machine.
"""

from .column_mapping import ColumnMapping, ColumnType
from .project import AppState, AppStep, FailureKind, ImportFailure, PendingImport, ProjectState
from .row_record import QualityFlag, RowRecord, RowStatus, ordered_flags

__all__ = [
    # Mapping models
    "ColumnMapping",
    "ColumnType",
    # Row models
    "QualityFlag",
    "RowRecord",
    "RowStatus",
    "ordered_flags",
    # State models
    "AppState",
    "AppStep",
    "FailureKind",
    "ImportFailure",
    "PendingImport",
    "ProjectState",
]
