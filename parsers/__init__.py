"""
Spreadsheet parsers module.
"""

from parsers.sheet_reader import (
    read_sheet,
    is_blank_row,
    RawSheet,
)

__all__ = [
    "read_sheet",
    "is_blank_row",
    "RawSheet",
]
