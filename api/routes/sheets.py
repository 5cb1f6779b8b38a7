"""API routes for XLSX table extraction.

- Upload XLSX -> parse first sheet to {row: {column: text}}
- Fetch a previously parsed table
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from pydantic import BaseModel

from services.reader_config import get_reader_settings
from services.xlsx_table import SheetReaderError, parse


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sheets", tags=["sheets"])


# =============================================================================
# MODELS
# =============================================================================

class ParsedSheet(BaseModel):
    """A parsed first worksheet."""
    id: str
    filename: str
    row_count: int
    rows: Dict[int, Dict[int, str]]


# In-memory storage for parsed tables
_parsed_sheets: dict[str, ParsedSheet] = {}


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/", response_model=ParsedSheet)
async def upload_sheet(
    file: UploadFile = File(...),
    date_columns: Optional[List[int]] = Query(None),
):
    """Upload an XLSX file and extract its first sheet.

    ``date_columns`` (repeatable) forces zero-based columns to be decoded
    as dates.
    """
    if not file.filename:
        raise HTTPException(400, "No filename provided")

    if not file.filename.lower().endswith(".xlsx"):
        raise HTTPException(400, "Only .xlsx files are supported")

    settings = get_reader_settings()
    too_large = f"File exceeds {settings.max_upload_bytes} bytes"

    # Size is known once the multipart body is spooled; skip reading it back
    if file.size is not None and file.size > settings.max_upload_bytes:
        raise HTTPException(413, too_large)

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(413, too_large)

    sheet_id = f"{uuid.uuid4().hex[:8]}_{file.filename}"
    logger.info(f"[UPLOAD] Parsing {file.filename} ({len(content)} bytes) as {sheet_id}")

    try:
        table = parse(content, date_columns, settings)
    except SheetReaderError as e:
        logger.error(f"[UPLOAD] Failed to parse {file.filename}: {e}")
        raise HTTPException(422, f"Failed to parse spreadsheet: {e}")

    parsed = ParsedSheet(
        id=sheet_id,
        filename=file.filename,
        row_count=len(table),
        rows=table,
    )
    _parsed_sheets[sheet_id] = parsed
    return parsed


@router.get("/{sheet_id}", response_model=ParsedSheet)
async def get_sheet(sheet_id: str):
    """Get a previously parsed sheet."""
    if sheet_id not in _parsed_sheets:
        raise HTTPException(404, "Sheet not found")
    return _parsed_sheets[sheet_id]
