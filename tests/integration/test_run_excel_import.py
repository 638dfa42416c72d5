from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

from survey_insight.cli.__main__ import main
from survey_insight.models.config_models import SurveyConfig
from survey_insight.services.orchestrator import run_import
from survey_insight.services.views import dashboard_snapshot, scale_means


def test_xlsx_import_matches_csv_import(temp_workdir: Path, survey_xlsx: Path, survey_csv: Path):
    from_xlsx = run_import(SurveyConfig(), survey_xlsx).project
    from_csv = run_import(SurveyConfig(), survey_csv).project

    assert [r.flags for r in from_xlsx.rows] == [r.flags for r in from_csv.rows]
    assert [m.mean for m in scale_means(from_xlsx)] == [m.mean for m in scale_means(from_csv)]
    assert scale_means(from_xlsx)[0].mean == 2.8


def test_xlsx_cli_end_to_end(temp_workdir: Path, survey_xlsx: Path, capsys: Any):
    code = main([str(survey_xlsx), "--exclude-flagged"])
    out = capsys.readouterr().out

    assert code == 0
    assert "mean VAR_4=3.0" in out
    assert "SUMMARY rows=5 active=2 flagged=0 excluded=3" in out

    logs = list((temp_workdir / "logs").glob("issues-*.log"))
    assert len(logs) == 1
    records = [json.loads(x) for x in logs[0].read_text(encoding="utf-8").splitlines()]
    assert {r["file"] for r in records} == {"responses.xlsx"}
    assert len(records) == 4


def test_chinese_headers_and_blank_rows(temp_workdir: Path):
    headers = ["編號", "填答時間", "性別", "年齡", *[f"題目{i}：我認為這個系統對我的工作很有幫助" for i in range(1, 6)]]
    rows = [
        ["A1", 35, "男", 25, 4, 4, 4, 4, 4],
        [None] * 9,
        ["A2", 200, "女", 31, 1, 5, 2, 4, 3],
        ["A3", 180, None, None, 2, 3, None, 3, 2],
    ]
    path = temp_workdir / "data" / "問卷.xlsx"
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows, columns=headers).to_excel(writer, sheet_name="回應", index=False)

    result = run_import(SurveyConfig(), path)
    project = result.project

    assert project.total_respondents == 3
    assert [m.variable_code for m in project.mappings[:4]] == ["ID", "DURATION", "GENDER", "AGE"]
    assert [sorted(f.name for f in r.flags) for r in project.rows] == [
        ["SPEEDER", "STRAIGHTLINING"],
        [],
        [],
    ]

    snap = dashboard_snapshot(project)
    assert snap.gender_distribution == {"男": 1, "女": 1, "Unknown": 1}
    # A3 skipped item 3
    assert snap.scale_means[2].mean == 3.0
