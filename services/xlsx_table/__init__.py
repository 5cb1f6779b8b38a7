"""XLSX Table - first-sheet extraction into a sparse table of strings.

This module handles:
1. Reading the shared strings and first worksheet out of the zip container
2. Placing addressed cells at their true columns despite skipped empties
3. Resolving shared strings, plain values and date-styled serials to text
"""

from .columns import cell_address, index_to_letters, letters_to_index, split_cell_address
from .dates import decode_serial_date
from .errors import (
    ArchiveError,
    SharedStringsDecodeError,
    SheetReaderError,
    WorksheetDecodeError,
)
from .reader import (
    Table,
    assemble_table,
    build_string_table,
    parse,
    parse_file,
    reconcile_columns,
    resolve_value,
)
from .schemas import RawCellRecord, RowRecord, SharedStringRecord, WorksheetRecord

__all__ = [
    # Records
    "RawCellRecord",
    "RowRecord",
    "SharedStringRecord",
    "WorksheetRecord",
    "Table",
    # Errors
    "SheetReaderError",
    "ArchiveError",
    "SharedStringsDecodeError",
    "WorksheetDecodeError",
    # Codecs
    "index_to_letters",
    "letters_to_index",
    "cell_address",
    "split_cell_address",
    "decode_serial_date",
    # Pipeline
    "build_string_table",
    "reconcile_columns",
    "resolve_value",
    "assemble_table",
    "parse",
    "parse_file",
]
