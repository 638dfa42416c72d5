from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..logging.error_log import IssueLogBuffer
from ..models.config_models import SurveyConfig
from ..models.import_result import ImportResult
from ..models.issue_record import IssueRecord
from ..models.project import AppState, ImportFailure
from ..models.row_record import ordered_flags
from .mock_data import generate_mock_survey
from .progress import ProgressTracker
from .project_state import ProjectController

logger = logging.getLogger(__name__)

"""Import orchestration.

Drives one ProjectController through the whole workflow:
1. Decode the source file (or generate the sample survey)
2. Infer column roles, then apply mapping overrides from config
3. Confirm the import (quality analysis of every row)
4. Optionally exclude every flagged row
5. Record flagged rows / failures in the issue log
"""


class ProcessingError(Exception):
    """Raised for fatal problems that prevent an import from starting."""


def build_controller(config: SurveyConfig) -> ProjectController:
    return ProjectController(
        scale_min_length=config.scale_header_min_length,
        thresholds=config.quality,
        project_name=config.project_name,
        progress_factory=ProgressTracker,
    )


def _record_flagged_rows(state: AppState, source_name: str, issue_log: IssueLogBuffer) -> int:
    count = 0
    for idx, row in enumerate(state.project.rows):
        for flag in ordered_flags(row.flags):
            issue_log.append(
                IssueRecord.create(
                    file=source_name,
                    row=idx + 1,
                    row_id=row.id,
                    issue_type=flag.name,
                    message=flag.label,
                )
            )
            count += 1
    return count


def _failed(
    controller: ProjectController,
    failure: ImportFailure,
    start_time: datetime,
    issue_log: IssueLogBuffer,
) -> ImportResult:
    logger.error(f"{failure.kind.value.lower()}: {failure.message}")
    issue_log.append(IssueRecord.file_level(failure.source_name, failure.kind.value, failure.message))
    return _finish(controller, failure.source_name, start_time, issue_log, failure=failure)


def _finish(
    controller: ProjectController,
    source_name: str,
    start_time: datetime,
    issue_log: IssueLogBuffer,
    failure: ImportFailure | None = None,
) -> ImportResult:
    log_path: Path | None = None
    try:
        log_path = issue_log.flush()
    except OSError as e:
        # Don't fail the import if the issue log cannot be written
        logger.warning(f"issue log flush failed: {e}")
    end_time = datetime.now(UTC)
    return ImportResult(
        source_name=source_name,
        project=controller.project,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        failure=failure,
        issue_log=log_path,
    )


def run_import(
    config: SurveyConfig,
    source: Path | None = None,
    *,
    use_mock: bool = False,
    mock_seed: int | None = None,
    exclude_flagged: bool | None = None,
    issue_log: IssueLogBuffer | None = None,
    controller: ProjectController | None = None,
) -> ImportResult:
    """Run the import workflow for one file.

    Args:
        config: Survey configuration
        source: File to import (falls back to config.source_file)
        use_mock: Import the generated sample survey instead of a file
        mock_seed: Seed for the sample survey
        exclude_flagged: Exclude flagged rows after commit
            (None = config.auto_exclude_flagged)
        issue_log: Issue log buffer (a new one is created if None)
        controller: Controller to drive (a new one is built from config if None)

    Returns:
        ImportResult; decode and empty-file failures are reported in
        ImportResult.failure rather than raised

    Raises:
        ProcessingError: if neither a source file nor mock data was requested
    """
    start_time = datetime.now(UTC)
    issue_log = issue_log if issue_log is not None else IssueLogBuffer()
    controller = controller if controller is not None else build_controller(config)

    if use_mock:
        table = generate_mock_survey(seed=mock_seed)
        source_name = table.source_name
        logger.info(f"Using generated sample survey ({len(table.rows)} rows)")
        controller.load_table(table)
    else:
        path = source if source is not None else (Path(config.source_file) if config.source_file else None)
        if path is None:
            raise ProcessingError("no source file given (pass a file or set source_file in config)")
        source_name = path.name
        logger.info(f"Importing: {path}")
        controller.load_file(
            path,
            keep_na_strings=config.decoder.keep_na_strings,
            null_sentinels=config.decoder.null_sentinels,
        )

    state = controller.state
    if state.error is not None:
        return _failed(controller, state.error, start_time, issue_log)

    pending = state.pending
    if pending is not None:
        logger.info(f"decoded {len(pending.rows)} rows x {len(pending.headers)} columns")
    if config.mapping_overrides:
        controller.apply_overrides(config.mapping_overrides)

    state = controller.confirm_import()
    if state.error is not None:
        return _failed(controller, state.error, start_time, issue_log)

    flagged = _record_flagged_rows(state, source_name, issue_log)
    logger.debug(f"recorded {flagged} quality issues")

    if exclude_flagged is None:
        exclude_flagged = config.auto_exclude_flagged
    if exclude_flagged:
        controller.exclude_all_flagged()
        logger.info(f"excluded flagged rows: {controller.project.total_respondents - controller.project.valid_respondents}")

    return _finish(controller, source_name, start_time, issue_log)
