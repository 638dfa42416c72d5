from __future__ import annotations

from pathlib import Path
from typing import Any

from survey_insight.cli.__main__ import main
from survey_insight.config.loader import load_config
from survey_insight.models.config_models import SurveyConfig
from survey_insight.services.orchestrator import run_import


def _write_csv(path: Path) -> Path:
    path.write_text(
        "Respondent ID,Duration (seconds),Nationality,Comment\n"
        "NA,300,NA,-\n"
        "R2,-,TW,fine\n",
        encoding="utf-8",
    )
    return path


def test_keep_na_strings_and_sentinels_from_config(write_config: Path, temp_workdir: Path):
    csv = _write_csv(temp_workdir / "data" / "na.csv")
    cfg = load_config(write_config)

    project = run_import(cfg, csv).project

    first, second = (r.values for r in project.rows)
    # "NA" kept as a literal answer, "-" treated as blank
    assert first == {"Respondent ID": "NA", "Duration (seconds)": "300", "Nationality": "NA"}
    assert second == {"Respondent ID": "R2", "Nationality": "TW", "Comment": "fine"}


def test_defaults_drop_na_strings(temp_workdir: Path):
    csv = _write_csv(temp_workdir / "data" / "na.csv")
    project = run_import(SurveyConfig(), csv).project

    assert "Nationality" not in project.rows[0].values
    assert project.rows[0].values["Comment"] == "-"


def test_cli_inspect_shows_kept_values(write_config: Path, temp_workdir: Path, capsys: Any):
    csv = _write_csv(temp_workdir / "data" / "na.csv")
    assert main([str(csv), "--inspect-data"]) == 0
    out = capsys.readouterr().out
    assert "'Nationality': 'NA'" in out
