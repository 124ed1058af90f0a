from __future__ import annotations

from pathlib import Path
from typing import Any

import pandas as pd

from colrecon.models.config_models import DEFAULT_PREVIEW_ROWS
from colrecon.models.source_table import SourceTable

"""Source table reader (file-decoding collaborator).

Turns an uploaded CSV/XLSX into the SourceTable boundary object:
- first row is the header row; headers are stringified and stripped
- only the first ``preview_rows`` non-empty data rows are kept
- every cell becomes a string ("" for empty cells)

The reconciliation engine never calls this module; it only consumes the
SourceTable it returns.
"""

SUPPORTED_SUFFIXES = {".csv", ".xlsx"}


class SourceHeaderError(Exception):
    """Raised when the header row is missing, empty or has duplicates."""


class UnsupportedFileError(Exception):
    """Raised for file types other than .csv / .xlsx."""


def _read_frame(path: Path, nrows: int) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        # 全列を文字列で読む (dtype 推論しない)
        return pd.read_csv(
            path, header=None, dtype=str, keep_default_na=False,
            skip_blank_lines=True, nrows=nrows,
        )
    if suffix == ".xlsx":
        return pd.read_excel(path, header=None, dtype=object, nrows=nrows)
    raise UnsupportedFileError(f"unsupported file type: {path.name}")


def _cell_to_str(val: Any) -> str:
    if val is None or (not isinstance(val, str) and pd.isna(val)):
        return ""
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    if hasattr(val, "isoformat"):
        return val.isoformat()
    return str(val).strip()


def frame_to_source_table(df: pd.DataFrame, file_name: str, preview_rows: int = DEFAULT_PREVIEW_ROWS) -> SourceTable:
    """Build a SourceTable from a raw frame whose first row is the header.

    Steps:
    1. Validate a header row exists and is not entirely empty
    2. Strip header cells; trailing empty header cells are dropped
    3. Reject blank or duplicate headers
    4. Keep the first ``preview_rows`` data rows that are not entirely empty
    """
    if df.shape[0] < 1:
        raise SourceHeaderError(f"'{file_name}' has no header row")

    headers = [_cell_to_str(c) for c in df.iloc[0].tolist()]
    while headers and headers[-1] == "":
        headers.pop()
    if not headers:
        raise SourceHeaderError(f"'{file_name}' header row is empty")

    blanks = [i for i, h in enumerate(headers) if h == ""]
    if blanks:
        raise SourceHeaderError(f"'{file_name}' has blank headers at columns: {blanks}")

    seen: set[str] = set()
    dups: set[str] = set()
    for h in headers:
        if h in seen:
            dups.add(h)
        seen.add(h)
    if dups:
        raise SourceHeaderError(f"'{file_name}' has duplicate headers: {sorted(dups)}")

    preview: dict[str, list[str]] = {h: [] for h in headers}
    kept = 0
    for _, raw in df.iloc[1:].iterrows():
        if kept >= preview_rows:
            break
        cells = [_cell_to_str(v) for v in raw.tolist()[: len(headers)]]
        if all(c == "" for c in cells):
            continue
        cells += [""] * (len(headers) - len(cells))
        for h, c in zip(headers, cells, strict=True):
            preview[h].append(c)
        kept += 1

    return SourceTable(file_name=file_name, source_columns=headers, preview_rows=preview)


def read_source_table(path: Path, preview_rows: int = DEFAULT_PREVIEW_ROWS) -> SourceTable:
    """Read ``path`` (CSV or XLSX) into a SourceTable.

    Parameters
    ----------
    path: uploaded file
    preview_rows: number of non-empty data rows kept per column
    """
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileError(f"unsupported file type: {path.name}")
    # 空行スキップ分の余裕を持って読み込む
    try:
        df = _read_frame(path, nrows=1 + preview_rows * 4)
    except pd.errors.EmptyDataError as e:
        raise SourceHeaderError(f"'{path.name}' is empty") from e
    except pd.errors.ParserError as e:
        # ヘッダより列数の多い行など
        raise SourceHeaderError(f"'{path.name}' could not be parsed: {e}") from e
    return frame_to_source_table(df, path.name, preview_rows=preview_rows)
