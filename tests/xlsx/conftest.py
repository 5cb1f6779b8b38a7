"""Shared fixtures: build small XLSX containers in memory."""

import struct
import sys
import zipfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

# Add project root to path (tests/xlsx/ -> tests/ -> project root)
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import pytest

from services.reader_config import reload_reader_settings


MAIN_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"
R_NS = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
REL_NS = "http://schemas.openxmlformats.org/package/2006/relationships"
SHEET_REL_TYPE = "http://schemas.openxmlformats.org/officeDocument/2006/relationships/worksheet"


def sheet_xml(sheet_data: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<worksheet xmlns="{MAIN_NS}" xmlns:r="{R_NS}">'
        f'<sheetData>{sheet_data}</sheetData>'
        '</worksheet>'
    )


def shared_strings_xml(strings: List[str]) -> str:
    items = "".join(f"<si><t>{escape(s)}</t></si>" for s in strings)
    return (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<sst xmlns="{MAIN_NS}" count="{len(strings)}" uniqueCount="{len(strings)}">'
        f'{items}</sst>'
    )


def build_xlsx(
    sheet_data: str = "",
    strings: Optional[List[str]] = None,
    *,
    sst_xml: Optional[str] = None,
    raw_sheet_xml: Optional[str] = None,
    sheet_target: str = "worksheets/sheet1.xml",
    with_workbook: bool = True,
    with_sheet: bool = True,
) -> bytes:
    """Zip up a minimal workbook with one sheet."""
    buffer = BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("[Content_Types].xml", '<?xml version="1.0"?><Types/>')
        if with_workbook:
            zf.writestr(
                "xl/workbook.xml",
                f'<workbook xmlns="{MAIN_NS}" xmlns:r="{R_NS}">'
                '<sheets><sheet name="Data" sheetId="1" r:id="rId1"/></sheets>'
                '</workbook>',
            )
            zf.writestr(
                "xl/_rels/workbook.xml.rels",
                f'<Relationships xmlns="{REL_NS}">'
                f'<Relationship Id="rId1" Type="{SHEET_REL_TYPE}" Target="{sheet_target}"/>'
                '</Relationships>',
            )
        if sst_xml is not None:
            zf.writestr("xl/sharedStrings.xml", sst_xml)
        elif strings is not None:
            zf.writestr("xl/sharedStrings.xml", shared_strings_xml(strings))
        if with_sheet:
            path = sheet_target[1:] if sheet_target.startswith("/") else f"xl/{sheet_target}"
            zf.writestr(path, raw_sheet_xml if raw_sheet_xml is not None else sheet_xml(sheet_data))
    return buffer.getvalue()


def patch_central_directory(
    data: bytes,
    flag_bits: Optional[int] = None,
    compress_type: Optional[int] = None,
) -> bytes:
    """Rewrite the flag bits or compression method of every central directory entry."""
    with zipfile.ZipFile(BytesIO(data)) as zf:
        offset = zf.start_dir
        count = len(zf.infolist())

    patched = bytearray(data)
    for _ in range(count):
        assert patched[offset:offset + 4] == b"PK\x01\x02"
        if flag_bits is not None:
            struct.pack_into("<H", patched, offset + 8, flag_bits)
        if compress_type is not None:
            struct.pack_into("<H", patched, offset + 10, compress_type)
        name_len, extra_len, comment_len = struct.unpack_from("<3H", patched, offset + 28)
        offset += 46 + name_len + extra_len + comment_len
    return bytes(patched)


# 2015-05-15 and 2014-07-04 stored under date-time styles, which add 1462 days
SERIAL_2015_05_15 = "40677"
SERIAL_2014_07_04 = "40362"


@pytest.fixture
def sample_xlsx() -> bytes:
    """Two rows with skipped cells, shared strings and date-styled serials."""
    rows = (
        '<row r="1">'
        '<c r="A1" t="s"><v>0</v></c>'
        '<c r="C1" t="s"><v>1</v></c>'
        f'<c r="D1" s="14"><v>{SERIAL_2015_05_15}</v></c>'
        '</row>'
        '<row r="2">'
        '<c r="C2" t="s"><v>2</v></c>'
        f'<c r="D2" s="14"><v>{SERIAL_2014_07_04}</v></c>'
        '</row>'
    )
    return build_xlsx(rows, ["Test 1", "Rust", "Emma"])


@pytest.fixture
def clean_settings(monkeypatch):
    """Reset the settings singleton before and after a test."""
    for name in ("XLSX_SHARED_STRINGS_PATH", "XLSX_DEFAULT_SHEET_PATH",
                 "XLSX_BOUND_COLUMNS", "XLSX_MAX_UPLOAD_BYTES", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield reload_reader_settings()
    monkeypatch.undo()
    reload_reader_settings()
