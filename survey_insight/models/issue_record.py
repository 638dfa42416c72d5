from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""IssueRecord model for the JSON Lines issue log.

One record per flagged row (issue_type = flag name) or per failed import
(issue_type = DECODE_FAILURE / EMPTY_FILE, row = -1). The key set is fixed;
to_json_line never adds keys.
"""

__all__ = [
    "IssueRecord",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1


@dataclass(frozen=True)
class IssueRecord:
    """Structured issue record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source file name of the import
        row: 1-based position among the imported rows (fully blank rows
            dropped at decode are not counted); -1 for file-level issues
        row_id: Row identity assigned at commit ("" for file-level issues)
        issue_type: Classification in UPPER_SNAKE_CASE
        message: Human-readable detail
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int  # 行番号。ファイル単位の問題は -1
    row_id: str
    issue_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, row_id: str, issue_type: str, message: str) -> IssueRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return IssueRecord(
            timestamp=ts,
            file=file,
            row=row,
            row_id=row_id,
            issue_type=issue_type,
            message=message,
        )

    @staticmethod
    def file_level(file: str, issue_type: str, message: str) -> IssueRecord:
        return IssueRecord.create(file=file, row=FILE_LEVEL_ROW, row_id="", issue_type=issue_type, message=message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
