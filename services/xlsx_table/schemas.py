"""Pydantic records decoded from the SpreadsheetML parts.

One record shape per element we read, so resolution code works on typed
fields instead of probing XML attributes.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class SharedStringRecord(BaseModel):
    """One <si> entry of xl/sharedStrings.xml."""
    text: Optional[str] = None  # Plain <t>, or all rich-text runs joined


class RawCellRecord(BaseModel):
    """A single <c> element of a worksheet row."""
    address: Optional[str] = None  # r="C3"
    style: Optional[str] = None  # s="14", index into cellXfs
    type: Optional[str] = None  # t="s", "inlineStr", "n", "b", "str", ...
    value: Optional[str] = None  # Text of <v>
    inline_text: Optional[str] = None  # Text of <is>, wins over value


class RowRecord(BaseModel):
    """A <row> element."""
    number: Optional[int] = None  # Declared 1-based r attribute
    cells: List[RawCellRecord] = []


class WorksheetRecord(BaseModel):
    """The <sheetData> rows of a worksheet, in document order."""
    rows: List[RowRecord] = []
