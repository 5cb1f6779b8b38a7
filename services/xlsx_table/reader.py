"""XLSX Reader - Extracts the first worksheet as a sparse table of strings.

Pipeline:
1. Shared strings -> immutable index->text table
2. Per row, declared cell addresses -> absolute column indices
3. Per cell, type/style/raw text -> final string value
4. (row, column, value) triples -> {row: {column: value}}
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import (
    AbstractSet,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from services.reader_config import ReaderSettings, get_reader_settings

from .archive import decode_shared_strings, decode_worksheet, read_members
from .columns import letters_to_index, split_cell_address
from .dates import DATE_TIME_OFFSET_DAYS, decode_serial_date
from .schemas import RawCellRecord, SharedStringRecord, WorksheetRecord


logger = logging.getLogger(__name__)

Table = Dict[int, Dict[int, str]]
StringTable = Mapping[int, str]

SHARED_STRING_TYPE = "s"

# Built-in date formats whose serials usually carry a time-of-day fraction
DATE_TIME_STYLES = frozenset({"10", "14", "15"})
# Built-in plain date formats
DATE_STYLES = frozenset({"3", "4", "5"})

# Unsigned ASCII integer, as written by spreadsheet producers
_INDEX_RE = re.compile(r"\+?[0-9]+")


# =============================================================================
# SHARED STRINGS
# =============================================================================

def build_string_table(records: Iterable[SharedStringRecord]) -> StringTable:
    """Index shared strings in document order. Duplicates keep their own index."""
    return MappingProxyType({
        i: record.text if record.text is not None else ""
        for i, record in enumerate(records)
    })


# =============================================================================
# COLUMN RECONCILIATION
# =============================================================================

def _declared_column(address: str, row_number: int) -> Optional[int]:
    """Column index of ``address`` if it is well formed and on ``row_number``."""
    try:
        letters, declared_row = split_cell_address(address)
    except ValueError:
        return None
    if declared_row != row_number:
        return None
    return letters_to_index(letters)


def reconcile_columns(
    cells: Sequence[RawCellRecord],
    row_number: int,
    bounded: bool = True,
) -> List[int]:
    """Assign a zero-based column index to each cell of one row.

    Writers omit empty cells and mark the survivors with an address such
    as "C3"; the gap between the running cursor and the declared column
    is the number of skipped cells. Cells without an address sit at the
    cursor. An address that is malformed, on another row, behind the
    cursor, or (when ``bounded``) further right than the row's cell count
    is ignored and the cell sits at the cursor instead.
    """
    columns: List[int] = []
    cell_count = len(cells)
    cursor = 0

    for cell in cells:
        index = cursor
        if cell.address:
            target = _declared_column(cell.address, row_number)
            if target is not None and (
                target == cursor
                or (target > cursor and (not bounded or target <= cell_count))
            ):
                index = target
            else:
                logger.debug(
                    f"[PARSE] Unreconcilable address {cell.address!r} on row {row_number}, "
                    f"placing at column {cursor}"
                )
        columns.append(index)
        cursor = index + 1

    return columns


# =============================================================================
# VALUE RESOLUTION
# =============================================================================

def _date_offset(style: Optional[str]) -> Optional[float]:
    return DATE_TIME_OFFSET_DAYS if style in DATE_TIME_STYLES else None


def resolve_value(
    cell: RawCellRecord,
    column: int,
    strings: StringTable,
    date_columns: Optional[AbstractSet[int]] = None,
) -> Optional[str]:
    """Resolve one cell to its output text, or None if it holds nothing."""
    if cell.inline_text is not None:
        return cell.inline_text

    raw = cell.value
    if raw is None:
        return None

    if date_columns and column in date_columns:
        return decode_serial_date(raw, _date_offset(cell.style))

    if cell.type == SHARED_STRING_TYPE:
        ss_index = int(raw) if _INDEX_RE.fullmatch(raw) else -1
        if ss_index in strings:
            return strings[ss_index]
        logger.debug(f"[PARSE] Shared string {raw!r} not in table, keeping raw value")
        return raw

    if cell.style in DATE_TIME_STYLES:
        return decode_serial_date(raw, DATE_TIME_OFFSET_DAYS)

    if cell.style in DATE_STYLES:
        return decode_serial_date(raw)

    return raw


# =============================================================================
# TABLE ASSEMBLY
# =============================================================================

def assemble_table(triples: Iterable[Tuple[int, int, str]]) -> Table:
    """Fold (row, column, text) triples into {row: {column: text}}."""
    table: Table = {}
    for row_index, column, text in triples:
        table.setdefault(row_index, {})[column] = text
    return table


def _iter_resolved_cells(
    worksheet: WorksheetRecord,
    strings: StringTable,
    date_columns: Optional[AbstractSet[int]],
    bounded: bool,
) -> Iterator[Tuple[int, int, str]]:
    for row_index, row in enumerate(worksheet.rows):
        row_number = row.number if row.number is not None else row_index + 1
        columns = reconcile_columns(row.cells, row_number, bounded)
        for cell, column in zip(row.cells, columns):
            value = resolve_value(cell, column, strings, date_columns)
            if value is not None:
                yield row_index, column, value


# =============================================================================
# PUBLIC API
# =============================================================================

def parse(
    data: bytes,
    date_columns: Optional[Iterable[int]] = None,
    settings: Optional[ReaderSettings] = None,
) -> Table:
    """Parse an XLSX byte buffer into a sparse {row: {column: text}} table.

    ``date_columns`` lists zero-based columns whose values are always
    decoded as dates, whatever their type or style.

    Raises a ``SheetReaderError`` subclass naming the failed stage; no
    partial table is ever returned.
    """
    settings = settings or get_reader_settings()

    shared_xml, sheet_xml = read_members(data, settings)
    records = decode_shared_strings(shared_xml) if shared_xml is not None else []
    strings = build_string_table(records)
    worksheet = decode_worksheet(sheet_xml)

    forced = frozenset(date_columns) if date_columns is not None else None
    table = assemble_table(_iter_resolved_cells(
        worksheet,
        strings,
        forced,
        settings.bound_columns_to_cell_count,
    ))

    logger.info(
        f"[PARSE] Read {len(table)} rows from {len(worksheet.rows)} sheet rows "
        f"({len(strings)} shared strings)"
    )
    return table


def parse_file(
    path: Union[str, Path],
    date_columns: Optional[Iterable[int]] = None,
    settings: Optional[ReaderSettings] = None,
) -> Table:
    """Read an .xlsx file from disk and parse it."""
    return parse(Path(path).read_bytes(), date_columns, settings)
