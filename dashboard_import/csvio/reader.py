from __future__ import annotations

import io
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..errors import CsvParseError, InvalidFormatError
from ..models.reference import normalize_key
from ..models.row_data import ImportRow

"""CSV reader.

- 1行目をヘッダ行として扱い、2行目以降をデータ行。
- ヘッダ名は trim + lower-case に一度だけ正規化する。
- 必須列が欠落した場合はデータ行を読む前に InvalidFormatError。

All cells are read as text (dtype=str, no NA coercion) so that values like
"NA" or "0012" survive untouched; typing happens in the target schemas.
"""

__all__ = [
    "CsvData",
    "read_csv_file",
    "parse_csv",
    "check_required_columns",
]

HEADER_LINE = 1


@dataclass
class CsvData:
    columns: list[str]  # normalized header names, file order
    rows: list[ImportRow]


def read_csv_file(path: Path) -> bytes:
    """Read an upload from disk. Decoding is left to parse_csv."""
    return path.read_bytes()


def _decode(content: bytes | str) -> str:
    if isinstance(content, str):
        return content.lstrip("\ufeff")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CsvParseError(f"file is not valid UTF-8: {e}") from e


def check_required_columns(target: str, columns: Iterable[str], required: Iterable[str]) -> None:
    """Raise InvalidFormatError when any of `required` is absent (case-insensitive)."""
    present = {normalize_key(c) for c in columns}
    required_list = list(required)
    missing = [c for c in required_list if normalize_key(c) not in present]
    if missing:
        raise InvalidFormatError(target, missing, required_list)


def parse_csv(
    content: bytes | str,
    target: str = "<unknown>",
    required_columns: Iterable[str] | None = None,
) -> CsvData:
    """Parse delimited text into ImportRows.

    Steps:
    1. Decode UTF-8 (BOM tolerated)
    2. Parse with pandas; malformed text -> CsvParseError
    3. Normalize header names; validate required columns
    4. Build one ImportRow per non-blank line, keeping the file line number
    """
    text = _decode(content)
    if not text.strip():
        raise CsvParseError("file is empty (header row required)")
    try:
        # skip_blank_lines=False: DataFrame index i <-> file line i + 2
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            index_col=False,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise CsvParseError(str(e)) from e

    columns = [normalize_key(str(c)) for c in df.columns]

    if required_columns is not None:
        check_required_columns(target, columns, required_columns)

    df = df.fillna("")
    rows: list[ImportRow] = []
    for idx, raw in enumerate(df.itertuples(index=False, name=None)):
        cells = ["" if v is None else str(v) for v in raw]
        if all(c.strip() == "" for c in cells):
            continue
        values: dict[str, str] = {}
        for col, val in zip(columns, cells, strict=False):
            # 同名ヘッダは先勝ち
            values.setdefault(col, val.strip())
        rows.append(
            ImportRow(
                row_number=idx + HEADER_LINE + 1,
                values=values,
            )
        )
    return CsvData(columns=columns, rows=rows)
