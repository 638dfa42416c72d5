# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from survey_insight.logging.init import reset_logging
from survey_insight.tabular.reader import DecodedTable

SCALE_HEADERS = [f"Item {i}: I enjoy using this product" for i in range(1, 6)]
SURVEY_HEADERS = ["Respondent ID", "Duration (seconds)", "Gender", *SCALE_HEADERS]


def _row(rid: str, duration: Any, gender: str | None, answers: list[Any]) -> dict[str, Any]:
    row: dict[str, Any] = {"Respondent ID": rid, "Duration (seconds)": duration}
    if gender is not None:
        row["Gender"] = gender
    row.update(zip(SCALE_HEADERS, answers))
    return row


# row_0: clean / row_1: straightlining / row_2: speeder / row_3: both / row_4: clean, gender missing
SURVEY_ROWS = [
    _row("R1", 300, "F", [1, 2, 3, 4, 5]),
    _row("R2", 200, "M", [4, 4, 4, 4, 4]),
    _row("R3", 30, "F", [1, 3, 5, 2, 4]),
    _row("R4", "45", "M", [3, 3, 3, 3, 3]),
    _row("R5", 250, None, [5, 4, 3, 2, 1]),
]


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("SURVEY_INSIGHT_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """project_name: Pilot
decoder:
  keep_na_strings: ["NA"]
  null_sentinels: ["-"]
inference:
  scale_header_min_length: 15
quality:
  straightlining_min_items: 5
  straightlining_variance: 0.2
  speeder_seconds: 60
mapping_overrides:
  Gender:
    variable_code: SEX
cleaning:
  auto_exclude_flagged: false
dashboard:
  max_scale_items: 3
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "survey.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def survey_table() -> DecodedTable:
    return DecodedTable(
        headers=list(SURVEY_HEADERS),
        rows=[dict(r) for r in SURVEY_ROWS],
        source_name="responses.csv",
    )


def write_survey_frame(path: Path, rows: list[dict[str, Any]] | None = None) -> Path:
    """Write survey rows to .csv or .xlsx (by suffix) with pandas."""
    df = pd.DataFrame(rows if rows is not None else SURVEY_ROWS, columns=SURVEY_HEADERS)
    if path.suffix == ".csv":
        df.to_csv(path, index=False, encoding="utf-8")
    else:
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Responses", index=False)
    return path


@pytest.fixture()
def survey_csv(temp_workdir: Path) -> Path:
    return write_survey_frame(temp_workdir / "data" / "responses.csv")


@pytest.fixture()
def survey_xlsx(temp_workdir: Path) -> Path:
    return write_survey_frame(temp_workdir / "data" / "responses.xlsx")


@pytest.fixture()
def write_survey():
    return write_survey_frame


@pytest.fixture()
def survey_headers() -> list[str]:
    return list(SURVEY_HEADERS)


@pytest.fixture()
def scale_headers() -> list[str]:
    return list(SCALE_HEADERS)
