from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

"""Tabular decoder: survey export (.xlsx / .xlsm / .csv) -> headers + row dicts.

- First sheet only, first row is the header row, the rest are data rows.
- Blank cells become absent keys; fully blank rows are dropped.
- Cell values are left as decoded; numeric coercion is the analyzer's job.

Decoding failures surface as DecodeError, files without data rows as
EmptyFileError. Both are retryable and never touch the current project.
"""

__all__ = [
    "DecodeError",
    "EmptyFileError",
    "DecodedTable",
    "EXCEL_SUFFIXES",
    "CSV_SUFFIXES",
    "decode_bytes",
    "decode_file",
    "normalize_frame",
]

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}
# 台湾のアンケートサービスは Big5 (cp950) で CSV を出力することがある
CSV_ENCODINGS = ("utf-8-sig", "cp950")


class DecodeError(Exception):
    """Raised when the file is not a readable spreadsheet or CSV."""


class EmptyFileError(Exception):
    """Raised when the file decodes but contains no data rows."""


@dataclass
class DecodedTable:
    headers: list[str]
    rows: list[dict[str, Any]]  # ヘッダ -> セル値 (空セルはキーなし)
    source_name: str = ""
    skipped_blank_rows: int = 0


def _na_options(keep_na_strings: list[str] | None) -> tuple[bool, list[str] | None]:
    """Return (keep_default_na, na_values) for pandas readers.

    keep_na_strings are removed from pandas' default NA string set so that
    answers such as "NA" or "None" survive as text.
    """
    if not keep_na_strings:
        return True, None
    import pandas._libs.parsers as parsers

    custom_na = parsers.STR_NA_VALUES.copy() - set(keep_na_strings)
    return False, list(custom_na)


def _read_frame(data: bytes, file_name: str, keep_na_strings: list[str] | None) -> pd.DataFrame:
    suffix = Path(file_name).suffix.lower()
    keep_default_na, na_values = _na_options(keep_na_strings)
    if suffix in EXCEL_SUFFIXES:
        return pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=0,
            keep_default_na=keep_default_na,
            na_values=na_values,
        )
    if suffix in CSV_SUFFIXES:
        last_error: UnicodeDecodeError | None = None
        for encoding in CSV_ENCODINGS:
            try:
                return pd.read_csv(
                    io.BytesIO(data),
                    header=0,
                    encoding=encoding,
                    keep_default_na=keep_default_na,
                    na_values=na_values,
                )
            except UnicodeDecodeError as e:
                logger.debug(f"csv decode with {encoding} failed: {e}")
                last_error = e
        raise DecodeError(f"unsupported text encoding: {last_error}")
    raise DecodeError(f"unsupported file type '{suffix or file_name}' (expected .xlsx or .csv)")


def _header_text(value: Any, index: int) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text if text else f"column_{index + 1}"


def _is_blank(value: Any, null_sentinels: set[str] | None) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        if stripped == "":
            return True
        # NULL サニタイズ
        return bool(null_sentinels) and stripped.upper() in null_sentinels
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def normalize_frame(
    df: pd.DataFrame,
    source_name: str,
    null_sentinels: set[str] | None = None,
) -> DecodedTable:
    """Normalize a decoded DataFrame into ordered headers and row dicts.

    Steps:
    1. Header texts come from the DataFrame columns (stripped)
    2. Blank / sentinel cells are dropped from the row dict
    3. Rows with no remaining cells are skipped
    4. Zero remaining rows -> EmptyFileError
    """
    if df.shape[1] == 0:
        raise EmptyFileError(f"'{source_name}' has no header row")
    headers = [_header_text(c, idx) for idx, c in enumerate(df.columns)]
    rows: list[dict[str, Any]] = []
    skipped = 0
    for record in df.itertuples(index=False, name=None):
        row: dict[str, Any] = {}
        for header, value in zip(headers, record, strict=False):
            if _is_blank(value, null_sentinels):
                continue
            if hasattr(value, "item"):  # numpy scalar -> python
                value = value.item()
            row[header] = value
        if not row:
            skipped += 1
            continue
        rows.append(row)
    if not rows:
        raise EmptyFileError(f"'{source_name}' contains no data rows")
    return DecodedTable(headers=headers, rows=rows, source_name=source_name, skipped_blank_rows=skipped)


def decode_bytes(
    data: bytes,
    file_name: str,
    keep_na_strings: list[str] | None = None,
    null_sentinels: set[str] | None = None,
) -> DecodedTable:
    """Decode raw uploaded bytes. The suffix of file_name selects the reader."""
    if not data:
        raise EmptyFileError(f"'{file_name}' is empty")
    try:
        df = _read_frame(data, file_name, keep_na_strings)
    except (DecodeError, EmptyFileError):
        raise
    except pd.errors.EmptyDataError as e:
        raise EmptyFileError(f"'{file_name}' is empty") from e
    except Exception as e:  # pandas / openpyxl raise a wide variety here
        raise DecodeError(f"cannot parse '{file_name}': {e}") from e
    return normalize_frame(df, file_name, null_sentinels=null_sentinels)


def decode_file(
    path: Path,
    keep_na_strings: list[str] | None = None,
    null_sentinels: set[str] | None = None,
) -> DecodedTable:
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DecodeError(f"cannot read '{path}': {e}") from e
    return decode_bytes(data, path.name, keep_na_strings=keep_na_strings, null_sentinels=null_sentinels)
