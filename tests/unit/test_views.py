from __future__ import annotations

import pytest

from survey_insight.models.column_mapping import ColumnMapping, ColumnType
from survey_insight.models.project import ProjectState
from survey_insight.models.row_record import RowRecord, RowStatus
from survey_insight.services.inference import infer_mappings
from survey_insight.services.project_state import commit_import, exclude_all_flagged
from survey_insight.services.views import (
    RELIABILITY_PLACEHOLDER,
    UNKNOWN_CATEGORY,
    active_rows,
    category_counts,
    dashboard_snapshot,
    demographic_counts,
    excluded_count,
    flagged_active_count,
    scale_means,
    status_counts,
)


@pytest.fixture()
def project(survey_table) -> ProjectState:
    return commit_import(survey_table.rows, infer_mappings(survey_table.headers))


@pytest.fixture()
def cleaned(project) -> ProjectState:
    return ProjectState(
        name=project.name,
        rows=exclude_all_flagged(project.rows),
        mappings=project.mappings,
        total_respondents=project.total_respondents,
        version=2,
    )


def test_counts_before_cleaning(project):
    assert len(active_rows(project)) == 5
    assert flagged_active_count(project) == 3
    assert excluded_count(project) == 0
    assert status_counts(project) == {RowStatus.CLEAN: 2, RowStatus.FLAGGED: 3, RowStatus.EXCLUDED: 0}


def test_counts_after_cleaning(cleaned):
    assert [r.id for r in active_rows(cleaned)] == ["row_0", "row_4"]
    assert flagged_active_count(cleaned) == 0
    assert excluded_count(cleaned) == 3
    assert status_counts(cleaned) == {RowStatus.CLEAN: 2, RowStatus.FLAGGED: 0, RowStatus.EXCLUDED: 3}


def test_status_counts_partition_rows(cleaned):
    assert sum(status_counts(cleaned).values()) == len(cleaned.rows)


def test_scale_means(project, cleaned):
    before = scale_means(project)
    after = scale_means(cleaned)

    assert [m.variable_code for m in before] == ["VAR_4", "VAR_5", "VAR_6", "VAR_7", "VAR_8"]
    assert before[0].mean == 2.8
    assert before[1].mean == 3.2
    assert after[0].mean == 3.0


def test_scale_means_limit(project):
    assert len(scale_means(project, limit=3)) == 3


def test_scale_means_skip_non_numeric_answers():
    mappings = (ColumnMapping("q", "Q", ColumnType.SCALE),)
    rows = (
        RowRecord("row_0", {"q": 4}),
        RowRecord("row_1", {"q": "n/a"}),
        RowRecord("row_2", {}),
        RowRecord("row_3", {"q": "1"}),
    )
    project = ProjectState(rows=rows, mappings=mappings, total_respondents=4)
    # (4 + 1) / 2, unparseable and missing answers are not counted as zero
    assert scale_means(project)[0].mean == 2.5


def test_scale_means_without_answers_is_none():
    mappings = (ColumnMapping("q", "Q", ColumnType.SCALE),)
    rows = (RowRecord("row_0", {"other": 1}),)
    project = ProjectState(rows=rows, mappings=mappings, total_respondents=1)
    assert scale_means(project)[0].mean is None


def test_scale_means_rounding():
    mappings = (ColumnMapping("q", "Q", ColumnType.SCALE),)
    rows = tuple(RowRecord(f"row_{i}", {"q": v}) for i, v in enumerate([1, 2, 2]))
    project = ProjectState(rows=rows, mappings=mappings, total_respondents=3)
    assert scale_means(project)[0].mean == 1.67


def test_scale_means_round_half_up():
    mappings = (ColumnMapping("q", "Q", ColumnType.SCALE),)
    # 17 / 8 = 2.125 exactly
    rows = tuple(RowRecord(f"row_{i}", {"q": v}) for i, v in enumerate([2, 2, 2, 2, 2, 2, 2, 3]))
    project = ProjectState(rows=rows, mappings=mappings, total_respondents=8)
    assert scale_means(project)[0].mean == 2.13


def test_category_counts(project, cleaned):
    gender = project.mappings[2]
    assert category_counts(project, gender) == {"F": 2, "M": 2, UNKNOWN_CATEGORY: 1}
    assert category_counts(cleaned, gender) == {"F": 1, UNKNOWN_CATEGORY: 1}


def test_category_counts_labels_integral_floats():
    mapping = ColumnMapping("Age", "AGE", ColumnType.DEMOGRAPHIC)
    rows = (
        RowRecord("row_0", {"Age": 30.0}),
        RowRecord("row_1", {"Age": 30}),
        RowRecord("row_2", {"Age": ""}),
    )
    project = ProjectState(rows=rows, mappings=(mapping,), total_respondents=3)
    assert category_counts(project, mapping) == {"30": 2, UNKNOWN_CATEGORY: 1}


def test_demographic_counts_keyed_by_code(project):
    assert demographic_counts(project) == {"GENDER": {"F": 2, "M": 2, UNKNOWN_CATEGORY: 1}}


def test_dashboard_snapshot(cleaned):
    snap = dashboard_snapshot(cleaned, max_scale_items=3)

    assert snap.valid_n == 2
    assert snap.filtered_n == 3
    assert snap.gender_distribution == {"F": 1, UNKNOWN_CATEGORY: 1}
    assert snap.analysed_variables == 3
    assert [m.mean for m in snap.scale_means] == [3.0, 3.0, 3.0]
    assert snap.reliability_placeholder == RELIABILITY_PLACEHOLDER


def test_dashboard_snapshot_without_gender_column():
    snap = dashboard_snapshot(ProjectState())
    assert snap.gender_distribution == {}
    assert snap.scale_means == []
    assert snap.valid_n == 0
