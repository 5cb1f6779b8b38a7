"""Document-level errors raised while reading a workbook."""

from __future__ import annotations


class SheetReaderError(Exception):
    """Base error; names the stage that failed and the underlying reason."""

    stage = "document"

    def __init__(self, detail: str):
        super().__init__(f"{self.stage}: {detail}")
        self.detail = detail


class ArchiveError(SheetReaderError):
    """The zip container could not be opened or a member could not be read."""

    stage = "archive"


class SharedStringsDecodeError(SheetReaderError):
    """xl/sharedStrings.xml is not well-formed XML."""

    stage = "shared strings"


class WorksheetDecodeError(SheetReaderError):
    """The worksheet part is missing or is not well-formed XML."""

    stage = "worksheet"
