from __future__ import annotations

import pytest

from survey_insight.models.column_mapping import ColumnType
from survey_insight.services.inference import infer_mappings
from survey_insight.services.mock_data import (
    MOCK_DURATION_HEADER,
    MOCK_GENDER_HEADER,
    MOCK_ID_HEADER,
    MOCK_SCALE_HEADERS,
    MOCK_SOURCE_NAME,
    generate_mock_survey,
)


def test_default_shape():
    table = generate_mock_survey(seed=1)

    assert table.source_name == MOCK_SOURCE_NAME
    assert len(table.rows) == 50
    assert table.headers == [MOCK_ID_HEADER, MOCK_DURATION_HEADER, MOCK_GENDER_HEADER, *MOCK_SCALE_HEADERS[:3]]
    assert all(set(row) == set(table.headers) for row in table.rows)


def test_value_ranges():
    table = generate_mock_survey(rows=200, scale_items=5, seed=7)

    ids = [r[MOCK_ID_HEADER] for r in table.rows]
    assert ids[:2] == ["RES_1001", "RES_1002"]
    assert len(set(ids)) == 200

    for row in table.rows:
        duration = row[MOCK_DURATION_HEADER]
        assert 10 <= duration < 40 or 120 <= duration < 420
        assert row[MOCK_GENDER_HEADER] in ("男", "女")
        assert all(1 <= row[h] <= 5 for h in MOCK_SCALE_HEADERS)


def test_distribution_contains_speeders():
    table = generate_mock_survey(rows=500, seed=3)
    speeders = [r for r in table.rows if r[MOCK_DURATION_HEADER] < 60]
    # ~10 % of 500
    assert 20 <= len(speeders) <= 90


def test_seed_is_reproducible():
    assert generate_mock_survey(seed=42).rows == generate_mock_survey(seed=42).rows


@pytest.mark.parametrize("items", [0, 6])
def test_scale_items_out_of_range(items):
    with pytest.raises(ValueError):
        generate_mock_survey(scale_items=items)


def test_inferred_roles_of_mock_headers():
    mappings = {m.original_header: m for m in infer_mappings(generate_mock_survey(scale_items=5, seed=0).headers)}

    assert mappings[MOCK_ID_HEADER].variable_code == "ID"
    assert mappings[MOCK_DURATION_HEADER].variable_code == "DURATION"
    assert mappings[MOCK_GENDER_HEADER].variable_code == "GENDER"
    # Length heuristic: 14 and 15 character items stay unmapped
    assert mappings[MOCK_SCALE_HEADERS[0]].type is ColumnType.IGNORE
    assert mappings[MOCK_SCALE_HEADERS[1]].type is ColumnType.SCALE
    assert mappings[MOCK_SCALE_HEADERS[2]].type is ColumnType.IGNORE
