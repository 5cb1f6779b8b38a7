"""Zip container access and XML decoding into typed records.

The workbook is a zip of XML parts. Only two parts matter here:
- the shared strings table (optional)
- the first worksheet
"""

from __future__ import annotations

import logging
import zipfile
import zlib
from io import BytesIO
from typing import List, Optional, Tuple
from xml.etree import ElementTree as ET

from services.reader_config import ReaderSettings, get_reader_settings
from .errors import ArchiveError, SharedStringsDecodeError, WorksheetDecodeError
from .schemas import RawCellRecord, RowRecord, SharedStringRecord, WorksheetRecord


logger = logging.getLogger(__name__)


# =============================================================================
# NAMESPACES
# =============================================================================

NS = {
    "main": "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
}

WORKBOOK_PATH = "xl/workbook.xml"
WORKBOOK_RELS_PATH = "xl/_rels/workbook.xml.rels"


def _tag(root: ET.Element, name: str) -> str:
    """Qualify ``name`` with the namespace used by ``root`` (if any)."""
    if root.tag.startswith("{"):
        return f"{root.tag[:root.tag.index('}') + 1]}{name}"
    return name


# =============================================================================
# ARCHIVE
# =============================================================================

def _read_text(zf: zipfile.ZipFile, name: str) -> str:
    try:
        return zf.read(name).decode("utf-8-sig")
    except (
        zipfile.BadZipFile,
        zlib.error,
        UnicodeDecodeError,
        RuntimeError,  # encrypted member
        NotImplementedError,  # unsupported compression method
        OSError,
    ) as e:
        raise ArchiveError(f"Can't read {name}: {e}") from e


def _first_sheet_path(zf: zipfile.ZipFile, default: str) -> str:
    """Resolve the first sheet listed in workbook.xml through its relationship."""
    names = set(zf.namelist())
    if WORKBOOK_PATH not in names or WORKBOOK_RELS_PATH not in names:
        return default

    try:
        wb_root = ET.fromstring(_read_text(zf, WORKBOOK_PATH))
        rels_root = ET.fromstring(_read_text(zf, WORKBOOK_RELS_PATH))
    except ET.ParseError as e:
        logger.warning(f"[ARCHIVE] Unreadable workbook index, using {default}: {e}")
        return default

    sheets_el = wb_root.find(_tag(wb_root, "sheets"))
    if sheets_el is None:
        return default
    first = sheets_el.find(_tag(wb_root, "sheet"))
    if first is None:
        return default
    r_id = first.get(f"{{{NS['r']}}}id")

    for rel in rels_root.findall(f"{{{NS['rel']}}}Relationship"):
        if rel.get("Id") != r_id:
            continue
        target = rel.get("Target", "")
        if not target:
            break
        if target.startswith("/"):
            return target[1:]
        return f"xl/{target}"

    return default


def read_members(
    data: bytes,
    settings: Optional[ReaderSettings] = None,
) -> Tuple[Optional[str], str]:
    """Return (shared strings XML or None, first worksheet XML)."""
    settings = settings or get_reader_settings()

    try:
        zf = zipfile.ZipFile(BytesIO(data), "r")
    except zipfile.BadZipFile as e:
        raise ArchiveError(str(e)) from e

    with zf:
        names = set(zf.namelist())

        shared_strings: Optional[str] = None
        if settings.shared_strings_path in names:
            shared_strings = _read_text(zf, settings.shared_strings_path)
        else:
            logger.warning(f"[ARCHIVE] No {settings.shared_strings_path} member, using empty string table")

        sheet_path = _first_sheet_path(zf, settings.default_sheet_path)
        if sheet_path not in names:
            raise WorksheetDecodeError(f"worksheet member {sheet_path} not found")
        sheet = _read_text(zf, sheet_path)

    return shared_strings, sheet


# =============================================================================
# XML DECODE
# =============================================================================

def _run_text(el: ET.Element, root: ET.Element) -> str:
    """Concatenate the <t> of every rich-text <r> run directly under ``el``."""
    return "".join(
        t.text or ""
        for run in el.findall(_tag(root, "r"))
        for t in run.findall(_tag(root, "t"))
    )


def decode_shared_strings(xml_text: str) -> List[SharedStringRecord]:
    """Decode xl/sharedStrings.xml into records, in document order."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise SharedStringsDecodeError(f"XML parsing error: {e}") from e

    records: List[SharedStringRecord] = []
    for si in root.findall(_tag(root, "si")):
        t_el = si.find(_tag(root, "t"))
        if t_el is not None:
            records.append(SharedStringRecord(text=t_el.text))
        elif si.find(_tag(root, "r")) is not None:
            # Rich text (multiple <r> runs)
            records.append(SharedStringRecord(text=_run_text(si, root)))
        else:
            records.append(SharedStringRecord())
    return records


def _decode_cell(cell_el: ET.Element, root: ET.Element) -> RawCellRecord:
    v_el = cell_el.find(_tag(root, "v"))
    is_el = cell_el.find(_tag(root, "is"))
    inline_text = None
    if is_el is not None:
        t_el = is_el.find(_tag(root, "t"))
        inline_text = (t_el.text or "") if t_el is not None else _run_text(is_el, root)
    return RawCellRecord(
        address=cell_el.get("r"),
        style=cell_el.get("s"),
        type=cell_el.get("t"),
        value=v_el.text if v_el is not None else None,
        inline_text=inline_text,
    )


def decode_worksheet(xml_text: str) -> WorksheetRecord:
    """Decode a worksheet part into its rows of raw cells."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise WorksheetDecodeError(f"XML parsing error: {e}") from e

    sheet_data = root.find(_tag(root, "sheetData"))
    if sheet_data is None:
        return WorksheetRecord()

    rows: List[RowRecord] = []
    for row_el in sheet_data.findall(_tag(root, "row")):
        declared = row_el.get("r")
        rows.append(RowRecord(
            number=int(declared) if declared and declared.isascii() and declared.isdigit() else None,
            cells=[_decode_cell(c, root) for c in row_el.findall(_tag(root, "c"))],
        ))
    return WorksheetRecord(rows=rows)
