from __future__ import annotations

import io
import logging
import math
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import IO, Any

import pandas as pd

from censo_ma.cache.store import LoadCache, sheet_cache_key
from censo_ma.errors import ParseError, SheetMissingError, UnsupportedFormatError
from censo_ma.transport.fetcher import Fetcher
from censo_ma.transport.uploads import read_upload, upload_identity, upload_name

"""Workbook reader: one sheet -> ordered list of normalized records.

The workbook container is decoded by pandas (openpyxl engine). The first row
of a sheet is the header row; every following row becomes a record mapping
header -> cell text, with "" for empty cells. ``clean_rows`` then applies the
normalization pass:

1. trim every key
2. trim every string value and replace fully numeric text by a number
   ("007" -> 7, " 42 " -> 42, "4.5" -> 4.5, "42kg" stays "42kg")
3. drop rows whose values are all "" / None

The pass is idempotent and keeps row order.
"""

__all__ = [
    "SheetData",
    "UPLOAD_EXTENSIONS",
    "clean_rows",
    "coerce_number",
    "load_sheet",
    "load_sheet_upload",
    "normalize_sheet",
    "read_excel_file",
]

logger = logging.getLogger(__name__)

# openpyxl reads only the OOXML formats
UPLOAD_EXTENSIONS = (".xlsx", ".xlsm")

_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class SheetData:
    source: str
    sheet_name: str
    columns: list[str]
    rows: list[dict[str, Any]]  # normalized (header -> value)
    available_sheets: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)


def coerce_number(text: str) -> int | float | str:
    """Return ``text`` as int/float when it is entirely a decimal number."""
    if not text or not _DECIMAL_RE.match(text):
        return text
    if _INTEGER_RE.match(text):
        return int(text)
    return float(text)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def clean_rows(rows: Iterable[dict[Any, Any]]) -> list[dict[str, Any]]:
    """Normalize raw rows (trim keys/values, numeric coercion, drop empty rows)."""
    cleaned: list[dict[str, Any]] = []
    for row in rows:
        clean_row: dict[str, Any] = {}
        for key, value in row.items():
            clean_key = str(key).strip()
            if isinstance(value, str):
                value = coerce_number(value.strip())
            clean_row[clean_key] = value
        if any(not _is_blank(v) for v in clean_row.values()):
            cleaned.append(clean_row)
    return cleaned


def _cell_text(value: Any) -> str:
    # Cells are handed to clean_rows as text, like a formatted-text sheet export.
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if pd.isna(value):
        return ""
    return str(value)


def _header_names(cells: list[Any]) -> list[str]:
    """Header row -> unique column names (empty -> __EMPTY, duplicates -> name_1)."""
    names: list[str] = []
    seen: dict[str, int] = {}
    for cell in cells:
        base = _cell_text(cell)
        if base.strip() == "":
            base = "__EMPTY"
        name = base
        if name in seen:
            seen[base] += 1
            name = f"{base}_{seen[base]}"
            while name in seen:
                seen[base] += 1
                name = f"{base}_{seen[base]}"
        seen.setdefault(name, 0)
        names.append(name)
    return names


def read_excel_file(
    data: bytes | Path | IO[bytes], target_sheets: Iterable[str] | None = None, *, label: str | None = None
) -> tuple[list[str], dict[str, pd.DataFrame]]:
    """Decode a workbook returning (all sheet names, raw DataFrames of the target sheets).

    Parameters
    ----------
    data: workbook bytes, path or binary file object
    target_sheets: sheets to parse (None parses every sheet)
    label: path or file name used in error messages
    """
    if isinstance(data, bytes):
        data = io.BytesIO(data)
    try:
        xls = pd.ExcelFile(data, engine="openpyxl")
    except Exception as e:
        raise ParseError(label, f"cannot decode workbook: {e}") from e
    with xls:
        sheet_names = [str(n) for n in xls.sheet_names]
        wanted = None if target_sheets is None else set(target_sheets)
        dfs: dict[str, pd.DataFrame] = {}
        for name in xls.sheet_names:
            if wanted is not None and str(name) not in wanted:
                continue
            try:
                # No header and no NA inference: header and cell text are handled by normalize_sheet.
                dfs[str(name)] = xls.parse(name, header=None, dtype=object, na_filter=False)
            except Exception as e:
                raise ParseError(label, f"cannot parse sheet '{name}': {e}") from e
    return sheet_names, dfs


def normalize_sheet(
    df: pd.DataFrame, sheet_name: str, source: str = "", available_sheets: list[str] | None = None
) -> SheetData:
    """Build normalized records from a raw DataFrame using its first row as header."""
    if df.shape[0] == 0:
        return SheetData(source, sheet_name, [], [], list(available_sheets or []))
    columns = _header_names(df.iloc[0].tolist())
    raw_rows: list[dict[str, Any]] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        raw_rows.append({col: _cell_text(val) for col, val in zip(columns, values, strict=False)})
    rows = clean_rows(raw_rows)
    return SheetData(
        source=source,
        sheet_name=sheet_name,
        columns=[c.strip() for c in columns],
        rows=rows,
        available_sheets=list(available_sheets or []),
    )


def _decode_sheet(content: bytes | IO[bytes], sheet_name: str, label: str) -> SheetData:
    sheet_names, dfs = read_excel_file(content, target_sheets=[sheet_name], label=label)
    if sheet_name not in dfs:
        raise SheetMissingError(label, sheet_name, sheet_names)
    sheet = normalize_sheet(dfs[sheet_name], sheet_name, source=label, available_sheets=sheet_names)
    logger.info(f"{sheet_name} loaded: {len(sheet.rows)} records")
    return sheet


def load_sheet(
    source: str | Path, sheet_name: str, *, cache: LoadCache | None = None, fetcher: Fetcher | None = None
) -> SheetData:
    """Load one sheet from a path or URL.

    Raises NotFoundError, ParseError or SheetMissingError. A cached
    (source, sheet_name) pair returns without fetching.
    """
    path = str(source)
    fetcher = fetcher or Fetcher()

    def _load() -> SheetData:
        logger.info(f"loading {sheet_name} from {path}")
        response = fetcher.fetch(path)
        return _decode_sheet(response.content, sheet_name, path)

    if cache is None:
        return _load()
    return cache.get_or_load(sheet_cache_key(path, sheet_name), _load)


def load_sheet_upload(file: IO[bytes] | None, sheet_name: str, *, cache: LoadCache | None = None) -> SheetData:
    """Load one sheet from a user supplied workbook (binary file object with a name)."""
    name = upload_name(file)
    if file is not None and Path(name).suffix.lower() not in UPLOAD_EXTENSIONS:
        raise UnsupportedFormatError(
            name or None, f"invalid workbook format, use {' or '.join(UPLOAD_EXTENSIONS)}"
        )
    name, content = read_upload(file)

    def _load() -> SheetData:
        logger.info(f"processing upload {name}, sheet {sheet_name}")
        return _decode_sheet(content, sheet_name, name)

    if cache is None:
        return _load()
    return cache.get_or_load(sheet_cache_key(upload_identity(name, content), sheet_name), _load)
