from __future__ import annotations

from ..models.import_result import ImportResult
from .views import excluded_count, flagged_active_count

"""Summary line rendering.

Format:
SUMMARY rows={total} active={active} flagged={flagged} excluded={excluded} elapsed_sec={elapsed}

`rows` is the committed row count (never reduced by exclusion); `flagged`
counts rows that are flagged and still active.
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for an import result.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from survey_insight.models.project import ProjectState
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> result = ImportResult("a.csv", ProjectState(), t, t, 2.0)
        >>> render_summary_line(result)
        'SUMMARY rows=0 active=0 flagged=0 excluded=0 elapsed_sec=2'
    """
    project = result.project
    return (
        f"SUMMARY rows={project.total_respondents} "
        f"active={project.valid_respondents} "
        f"flagged={flagged_active_count(project)} "
        f"excluded={excluded_count(project)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
