from __future__ import annotations

from typing import Any

import numpy as np

from ..tabular.reader import DecodedTable

"""Synthetic survey generator (the "use sample data" import path).

Produces a technology-acceptance style instrument with:
- respondent number (RES_1001, RES_1002, ...)
- completion time in seconds: ~10% speeders (10-39s), others 120-419s
- gender (男 / 女)
- 1-5 Likert items: ~10% straightliners answer every item identically
"""

__all__ = [
    "MOCK_SOURCE_NAME",
    "MOCK_ID_HEADER",
    "MOCK_DURATION_HEADER",
    "MOCK_GENDER_HEADER",
    "MOCK_SCALE_HEADERS",
    "generate_mock_survey",
]

MOCK_SOURCE_NAME = "sample_survey.xlsx"
MOCK_ID_HEADER = "問卷編號"
MOCK_DURATION_HEADER = "填答時間 (秒)"
MOCK_GENDER_HEADER = "性別"
MOCK_SCALE_HEADERS = [
    "Q1. 我覺得這個系統很有用",
    "Q2. 使用這個系統能提高我的效率",
    "Q3. 我打算繼續使用這個系統",
    "Q4. 我覺得這個系統的操作介面很容易理解",
    "Q5. 整體而言我對這個系統的表現感到滿意",
]

SPEEDER_RATE = 0.1
STRAIGHTLINER_RATE = 0.1


def generate_mock_survey(rows: int = 50, scale_items: int = 3, seed: int | None = None) -> DecodedTable:
    """Generate a synthetic survey export.

    Args:
        rows: Number of respondents
        scale_items: Number of Likert items (1..5)
        seed: Random seed for reproducible data (None = fresh entropy)

    Returns:
        DecodedTable shaped like the decoder's output
    """
    if not 1 <= scale_items <= len(MOCK_SCALE_HEADERS):
        raise ValueError(f"scale_items must be between 1 and {len(MOCK_SCALE_HEADERS)}")
    rng = np.random.default_rng(seed)
    scale_headers = MOCK_SCALE_HEADERS[:scale_items]
    headers = [MOCK_ID_HEADER, MOCK_DURATION_HEADER, MOCK_GENDER_HEADER, *scale_headers]

    data: list[dict[str, Any]] = []
    for i in range(1, rows + 1):
        is_speeder = rng.random() < SPEEDER_RATE
        is_straightliner = rng.random() < STRAIGHTLINER_RATE

        if is_speeder:
            duration = int(rng.integers(10, 40))
        else:
            duration = int(rng.integers(120, 420))

        if is_straightliner:
            answers = [int(rng.integers(1, 6))] * scale_items
        else:
            answers = [int(v) for v in rng.integers(1, 6, size=scale_items)]

        row: dict[str, Any] = {
            MOCK_ID_HEADER: f"RES_{1000 + i}",
            MOCK_DURATION_HEADER: duration,
            MOCK_GENDER_HEADER: "男" if rng.random() > 0.5 else "女",
        }
        row.update(zip(scale_headers, answers))
        data.append(row)

    return DecodedTable(headers=headers, rows=data, source_name=MOCK_SOURCE_NAME)
