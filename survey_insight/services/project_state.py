from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Union

from ..models.column_mapping import ColumnMapping, ColumnType
from ..models.config_models import DEFAULT_SCALE_HEADER_MIN_LENGTH, MappingOverride, QualityThresholds
from ..models.project import (
    DEFAULT_PROJECT_NAME,
    AppState,
    AppStep,
    FailureKind,
    ImportFailure,
    PendingImport,
    ProjectState,
)
from ..models.row_record import RowRecord
from ..tabular.reader import DecodedTable, DecodeError, EmptyFileError, decode_bytes
from .inference import apply_mapping_overrides, infer_mappings
from .progress import ProgressTracker
from .quality import DEFAULT_THRESHOLDS, analyze_row

"""Project state machine.

Row states:  clean | flagged  ->  excluded (terminal)

All transitions go through reduce(state, action), which returns a new
AppState and never mutates the old one. ProjectController owns the single
current AppState, turns decoder failures into ImportFailure values and
notifies read-only subscribers after every replacement.

The quality analysis runs once, at commit. Mapping edits after commit are not
an exposed action, so existing flags are never recomputed.
"""

__all__ = [
    "InvalidTransitionError",
    "FileDecoded",
    "ImportFailed",
    "MappingEdited",
    "ApplyMappingOverrides",
    "ConfirmImport",
    "ExcludeRow",
    "ExcludeAllFlagged",
    "ReplaceRows",
    "GoToStep",
    "ResetSession",
    "commit_import",
    "exclude_all_flagged",
    "reduce",
    "ProjectController",
]

logger = logging.getLogger(__name__)

MAPPING_FIELDS = ("type", "variable_code")


class InvalidTransitionError(Exception):
    """Raised when an action is not allowed in the current state."""


@dataclass(frozen=True)
class FileDecoded:
    source_name: str
    headers: tuple[str, ...]
    rows: tuple[dict[str, Any], ...]
    scale_min_length: int = DEFAULT_SCALE_HEADER_MIN_LENGTH


@dataclass(frozen=True)
class ImportFailed:
    source_name: str
    kind: FailureKind
    message: str


@dataclass(frozen=True)
class MappingEdited:
    index: int
    field: str  # "type" | "variable_code"
    value: str


@dataclass(frozen=True)
class ApplyMappingOverrides:
    overrides: Mapping[str, MappingOverride]


@dataclass(frozen=True)
class ConfirmImport:
    project_name: str = DEFAULT_PROJECT_NAME
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS


@dataclass(frozen=True)
class ExcludeRow:
    row_id: str


@dataclass(frozen=True)
class ExcludeAllFlagged:
    pass


@dataclass(frozen=True)
class ReplaceRows:
    rows: tuple[RowRecord, ...]


@dataclass(frozen=True)
class GoToStep:
    step: AppStep


@dataclass(frozen=True)
class ResetSession:
    pass


Action = Union[
    FileDecoded,
    ImportFailed,
    MappingEdited,
    ApplyMappingOverrides,
    ConfirmImport,
    ExcludeRow,
    ExcludeAllFlagged,
    ReplaceRows,
    GoToStep,
    ResetSession,
]


def commit_import(
    rows: Sequence[Mapping[str, Any]],
    mappings: Sequence[ColumnMapping],
    *,
    name: str = DEFAULT_PROJECT_NAME,
    thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
    progress: ProgressTracker | None = None,
) -> ProjectState:
    """Analyze every row and build a fresh ProjectState.

    Raises:
        EmptyFileError: when there are no rows to commit
    """
    if not rows:
        raise EmptyFileError("no data rows to import")
    mapping_tuple = tuple(mappings)
    records: list[RowRecord] = []
    for idx, values in enumerate(rows):
        records.append(
            RowRecord(
                id=f"row_{idx}",
                values=dict(values),
                flags=analyze_row(values, mapping_tuple, thresholds),
                is_excluded=False,
            )
        )
        if progress is not None:
            progress.advance()
    return ProjectState(
        name=name,
        rows=tuple(records),
        mappings=mapping_tuple,
        total_respondents=len(records),
        version=1,
    )


def exclude_all_flagged(rows: Sequence[RowRecord]) -> tuple[RowRecord, ...]:
    """Exclude every flagged row; clean and already-excluded rows are kept as-is."""
    return tuple(r.excluded() if r.flags else r for r in rows)


def _with_rows(state: AppState, rows: tuple[RowRecord, ...]) -> AppState:
    project = state.project
    if rows == project.rows:
        return state
    return replace(state, project=replace(project, rows=rows, version=project.version + 1))


def _check_replacement(current: Sequence[RowRecord], new: Sequence[RowRecord]) -> None:
    if [r.id for r in current] != [r.id for r in new]:
        raise InvalidTransitionError("row sequence replacement must keep the same rows in the same order")
    for old, updated in zip(current, new):
        if old.is_excluded and not updated.is_excluded:
            raise InvalidTransitionError(f"row {old.id} is excluded and cannot be restored")


def _edit_mapping(pending: PendingImport, action: MappingEdited) -> PendingImport:
    if not 0 <= action.index < len(pending.mappings):
        raise InvalidTransitionError(f"mapping index out of range: {action.index}")
    if action.field not in MAPPING_FIELDS:
        raise InvalidTransitionError(f"unknown mapping field: {action.field}")
    mappings = list(pending.mappings)
    current = mappings[action.index]
    if action.field == "type":
        try:
            mappings[action.index] = current.with_type(action.value)
        except ValueError as e:
            raise InvalidTransitionError(f"unknown column type: {action.value}") from e
    else:
        mappings[action.index] = current.with_variable_code(action.value)
    return replace(pending, mappings=tuple(mappings))


def _require_pending(state: AppState) -> PendingImport:
    if state.pending is None:
        raise InvalidTransitionError("no decoded file awaiting confirmation")
    return state.pending


def _require_project(state: AppState) -> ProjectState:
    if state.project.is_empty:
        raise InvalidTransitionError("no project has been imported yet")
    return state.project


def reduce(state: AppState, action: Action, *, progress: ProgressTracker | None = None) -> AppState:
    """Apply one action and return the next AppState."""
    if isinstance(action, FileDecoded):
        if not action.rows:
            failure = ImportFailure(FailureKind.EMPTY_FILE, action.source_name, "file contains no data rows")
            return replace(state, step=AppStep.IMPORT, pending=None, error=failure)
        pending = PendingImport(
            source_name=action.source_name,
            headers=tuple(action.headers),
            rows=tuple(action.rows),
            mappings=tuple(infer_mappings(action.headers, action.scale_min_length)),
        )
        # 新しいファイル選択は未確定の取込を置き換える (last-write-wins)
        return replace(state, step=AppStep.MAPPING, pending=pending, error=None)

    if isinstance(action, ImportFailed):
        failure = ImportFailure(action.kind, action.source_name, action.message)
        return replace(state, step=AppStep.IMPORT, pending=None, error=failure)

    if isinstance(action, MappingEdited):
        return replace(state, pending=_edit_mapping(_require_pending(state), action))

    if isinstance(action, ApplyMappingOverrides):
        pending = _require_pending(state)
        mappings = tuple(apply_mapping_overrides(pending.mappings, action.overrides))
        return replace(state, pending=replace(pending, mappings=mappings))

    if isinstance(action, ConfirmImport):
        pending = _require_pending(state)
        try:
            project = commit_import(
                pending.rows,
                pending.mappings,
                name=action.project_name,
                thresholds=action.thresholds,
                progress=progress,
            )
        except EmptyFileError as e:
            failure = ImportFailure(FailureKind.EMPTY_FILE, pending.source_name, str(e))
            return replace(state, step=AppStep.IMPORT, pending=None, error=failure)
        return AppState(step=AppStep.CLEANING, project=project, pending=None, error=None)

    if isinstance(action, ExcludeRow):
        project = _require_project(state)
        if not any(r.id == action.row_id for r in project.rows):
            raise InvalidTransitionError(f"unknown row id: {action.row_id}")
        rows = tuple(r.excluded() if r.id == action.row_id else r for r in project.rows)
        return _with_rows(state, rows)

    if isinstance(action, ExcludeAllFlagged):
        project = _require_project(state)
        return _with_rows(state, exclude_all_flagged(project.rows))

    if isinstance(action, ReplaceRows):
        project = _require_project(state)
        _check_replacement(project.rows, action.rows)
        return _with_rows(state, tuple(action.rows))

    if isinstance(action, GoToStep):
        if action.step is AppStep.MAPPING:
            _require_pending(state)
        elif action.step in (AppStep.CLEANING, AppStep.DASHBOARD):
            _require_project(state)
        return replace(state, step=action.step)

    if isinstance(action, ResetSession):
        return AppState()

    raise InvalidTransitionError(f"unsupported action: {type(action).__name__}")


Listener = Callable[[AppState], None]


class ProjectController:
    """Owns the application state and is the only mutation path.

    The presentation layer reads `state` and subscribes for updates; it never
    mutates rows or mappings directly.
    """

    def __init__(
        self,
        *,
        decoder: Callable[..., DecodedTable] = decode_bytes,
        scale_min_length: int = DEFAULT_SCALE_HEADER_MIN_LENGTH,
        thresholds: QualityThresholds = DEFAULT_THRESHOLDS,
        project_name: str = DEFAULT_PROJECT_NAME,
        progress_factory: Callable[[int], ProgressTracker] | None = None,
    ) -> None:
        self._decoder = decoder
        self._scale_min_length = scale_min_length
        self._thresholds = thresholds
        self._project_name = project_name
        self._progress_factory = progress_factory
        self._state = AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def project(self) -> ProjectState:
        return self._state.project

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a read-only listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, action: Action, *, progress: ProgressTracker | None = None) -> AppState:
        new_state = reduce(self._state, action, progress=progress)
        if new_state is not self._state:
            logger.debug(f"transition {type(action).__name__}: {self._state.step.value} -> {new_state.step.value}")
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    # --- import step ---

    def load_table(self, table: DecodedTable) -> AppState:
        return self.dispatch(
            FileDecoded(
                source_name=table.source_name,
                headers=tuple(table.headers),
                rows=tuple(table.rows),
                scale_min_length=self._scale_min_length,
            )
        )

    def load_bytes(self, data: bytes, file_name: str, **decoder_options: Any) -> AppState:
        """Decode an uploaded file; failures are recorded in state, not raised."""
        try:
            table = self._decoder(data, file_name, **decoder_options)
        except EmptyFileError as e:
            logger.warning(f"empty file: {e}")
            return self.dispatch(ImportFailed(file_name, FailureKind.EMPTY_FILE, str(e)))
        except DecodeError as e:
            logger.warning(f"decode failed: {e}")
            return self.dispatch(ImportFailed(file_name, FailureKind.DECODE, str(e)))
        return self.load_table(table)

    def load_file(self, path: Path, **decoder_options: Any) -> AppState:
        try:
            data = path.read_bytes()
        except OSError as e:
            logger.warning(f"cannot read {path}: {e}")
            return self.dispatch(ImportFailed(path.name, FailureKind.DECODE, f"cannot read '{path}': {e}"))
        return self.load_bytes(data, path.name, **decoder_options)

    # --- mapping step ---

    def edit_mapping(self, index: int, field: str, value: str | ColumnType) -> AppState:
        if isinstance(value, ColumnType):
            value = value.value
        return self.dispatch(MappingEdited(index, field, value))

    def apply_overrides(self, overrides: Mapping[str, MappingOverride]) -> AppState:
        return self.dispatch(ApplyMappingOverrides(overrides))

    def confirm_import(self) -> AppState:
        pending = self._state.pending
        action = ConfirmImport(project_name=self._project_name, thresholds=self._thresholds)
        if pending is None or self._progress_factory is None:
            return self.dispatch(action)
        with self._progress_factory(len(pending.rows)) as progress:
            return self.dispatch(action, progress=progress)

    # --- cleaning step ---

    def exclude_row(self, row_id: str) -> AppState:
        return self.dispatch(ExcludeRow(row_id))

    def exclude_all_flagged(self) -> AppState:
        return self.dispatch(ExcludeAllFlagged())

    def replace_rows(self, rows: Sequence[RowRecord]) -> AppState:
        return self.dispatch(ReplaceRows(tuple(rows)))

    # --- navigation ---

    def go_to(self, step: AppStep) -> AppState:
        return self.dispatch(GoToStep(step))

    def reset(self) -> AppState:
        return self.dispatch(ResetSession())
