"""Centralized reader configuration.

Single source of truth for the workbook reader and the upload endpoint.
Reads from environment variables with sensible defaults.
"""
from __future__ import annotations

import os
from dataclasses import dataclass


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class ReaderSettings:
    """Reader settings loaded from environment.

    Usage:
        settings = get_reader_settings()
        print(settings.default_sheet_path)  # "xl/worksheets/sheet1.xml"
    """
    # Archive members
    shared_strings_path: str = "xl/sharedStrings.xml"
    default_sheet_path: str = "xl/worksheets/sheet1.xml"

    # Declared cell addresses further right than the row's cell count fall
    # back to sequential placement when this is on.
    bound_columns_to_cell_count: bool = True

    # Upload guardrail
    max_upload_bytes: int = 20 * 1024 * 1024

    log_level: str = "INFO"


def _load_settings_from_env() -> ReaderSettings:
    """Load reader settings from environment variables."""
    settings = ReaderSettings()

    settings.shared_strings_path = os.getenv("XLSX_SHARED_STRINGS_PATH", settings.shared_strings_path)
    settings.default_sheet_path = os.getenv("XLSX_DEFAULT_SHEET_PATH", settings.default_sheet_path)
    settings.bound_columns_to_cell_count = _env_flag("XLSX_BOUND_COLUMNS", "1")

    if os.getenv("XLSX_MAX_UPLOAD_BYTES"):
        settings.max_upload_bytes = int(os.getenv("XLSX_MAX_UPLOAD_BYTES"))

    settings.log_level = os.getenv("LOG_LEVEL", settings.log_level).upper()

    return settings


# Singleton instance
_settings: ReaderSettings | None = None


def get_reader_settings() -> ReaderSettings:
    """Get the reader settings singleton.

    Settings are loaded once from environment on first access.
    """
    global _settings
    if _settings is None:
        _settings = _load_settings_from_env()
    return _settings


def reload_reader_settings() -> ReaderSettings:
    """Force reload settings from environment.

    Useful for testing or after env changes.
    """
    global _settings
    _settings = _load_settings_from_env()
    return _settings
