"""
Spreadsheet reader for product imports.

Loads the first non-empty worksheet of an uploaded file into a grid of raw
cells. Row 0 is the header; cells are not coerced beyond turning empty
cells into None and dates into ISO strings.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from io import BytesIO
from pathlib import PurePath
from typing import Any, Optional
import structlog

import numpy as np
import pandas as pd

from exceptions import MalformedInputError
from models.product_import import CellValue

logger = structlog.get_logger(__name__)

Row = list[Optional[CellValue]]

CSV_SUFFIXES = {".csv"}


@dataclass
class RawSheet:
    """In-memory grid of one worksheet."""
    sheet_name: str
    rows: list[Row] = field(default_factory=list)
    header_row_number: int = 1  # 1-based spreadsheet row holding the header

    @property
    def header(self) -> list[str]:
        return [str(c) for c in self.rows[0]] if self.rows else []

    @property
    def data_rows(self) -> list[Row]:
        return self.rows[1:]

    def row_number(self, data_index: int) -> int:
        """Spreadsheet row number of the data row at 0-based data_index."""
        return self.header_row_number + data_index + 1

    def record(self, data_index: int) -> dict[str, Optional[CellValue]]:
        """
        Header-keyed view of one data row.

        Cells missing at the end of a short row are None.
        """
        row = self.data_rows[data_index]
        return {
            column: row[i] if i < len(row) else None
            for i, column in enumerate(self.header)
        }

    def sample(self, limit: int) -> list[Row]:
        """Header plus the first `limit` non-blank data rows."""
        picked = [row for row in self.data_rows if not is_blank_row(row)][:limit]
        return [list(self.header)] + picked


def is_blank_row(row: Row) -> bool:
    """True if every cell is empty."""
    return all(cell is None for cell in row)


def read_sheet(payload: bytes, file_name: str) -> RawSheet:
    """
    Read an uploaded spreadsheet.

    Args:
        payload: File content as bytes
        file_name: Display name of the upload (used to detect CSV)

    Returns:
        RawSheet for the first worksheet holding any data

    Raises:
        MalformedInputError: If the file cannot be read or has no header
            plus at least one data row
    """
    logger.info("reading_sheet", file_name=file_name, size=len(payload))

    if PurePath(file_name).suffix.lower() in CSV_SUFFIXES:
        sheet_name, frame = _read_csv(payload, file_name)
    else:
        sheet_name, frame = _read_workbook(payload, file_name)

    grid = [[_clean_cell(v) for v in values] for values in frame.itertuples(index=False, name=None)]

    # Skip blank rows above the header
    start = next((i for i, row in enumerate(grid) if not is_blank_row(row)), len(grid))
    grid = grid[start:]

    if len(grid) < 2:
        logger.warning("sheet_has_no_data_rows", file_name=file_name, sheet=sheet_name, rows=len(grid))
        raise MalformedInputError(
            message="Spreadsheet needs a header row and at least one data row",
            details={"file_name": file_name, "sheet": sheet_name, "rows": len(grid)}
        )

    grid[0] = _header_names(grid[0])

    sheet = RawSheet(sheet_name=sheet_name, rows=grid, header_row_number=start + 1)

    logger.info(
        "sheet_read",
        file_name=file_name,
        sheet=sheet_name,
        columns=len(sheet.header),
        data_rows=len(sheet.data_rows)
    )
    return sheet


def _read_workbook(payload: bytes, file_name: str) -> tuple[str, pd.DataFrame]:
    """Return the first worksheet that has at least one non-empty cell."""
    try:
        excel = pd.ExcelFile(BytesIO(payload), engine="openpyxl")
    except Exception as e:
        logger.error("excel_read_failed", file_name=file_name, error=str(e))
        raise MalformedInputError(
            message="Failed to read spreadsheet file",
            details={"file_name": file_name, "original_error": str(e)}
        )

    for sheet_name in excel.sheet_names:
        try:
            frame = excel.parse(sheet_name, header=None, dtype=object)
        except Exception as e:
            logger.warning("sheet_parse_failed", sheet=sheet_name, error=str(e))
            continue
        if not frame.dropna(how="all").empty:
            return str(sheet_name), frame
        logger.debug("empty_sheet_skipped", sheet=sheet_name)

    raise MalformedInputError(
        message="Spreadsheet has no worksheet with data",
        details={"file_name": file_name, "sheets": [str(s) for s in excel.sheet_names]}
    )


def _read_csv(payload: bytes, file_name: str) -> tuple[str, pd.DataFrame]:
    """CSV uploads hold a single sheet named after the file."""
    try:
        frame = pd.read_csv(
            BytesIO(payload),
            header=None,
            dtype=object,
            encoding="utf-8-sig",
            keep_default_na=False,
            na_values=[""],
            skip_blank_lines=False,
        )
    except Exception as e:
        logger.error("csv_read_failed", file_name=file_name, error=str(e))
        raise MalformedInputError(
            message="Failed to read CSV file",
            details={"file_name": file_name, "original_error": str(e)}
        )
    return PurePath(file_name).stem, frame


# ===================
# HELPER FUNCTIONS
# ===================

def _clean_cell(value: Any) -> Optional[CellValue]:
    """
    Convert a pandas/openpyxl cell to a plain Python value.

    Numbers stay numbers and text stays text. Empty cells become None.
    """
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        if np.isnan(value) or np.isinf(value):
            return None
        return float(value)
    if pd.isna(value):
        return None
    return str(value)


def _header_names(cells: list[Optional[CellValue]]) -> list[str]:
    """
    Header cells as unique strings.

    "제품명" -> "제품명"
    None in the third column -> "Column 3"
    A repeated "가격" -> "가격.1"
    """
    names: list[str] = []
    seen: dict[str, int] = {}
    for i, cell in enumerate(cells):
        name = str(cell).strip() if cell is not None else ""
        if not name:
            name = f"Column {i + 1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}.{seen[name]}"
        else:
            seen[name] = 0
        names.append(name)
    return names
