"""Column letters and cell addresses.

Spreadsheet columns are written in bijective base-26: digits A-Z stand for
1-26 and there is no zero digit, so index 25 is "Z" and index 26 is "AA".
All indices here are zero-based; row numbers are 1-based as in the file.
"""

from __future__ import annotations

import re
from typing import Tuple

_ADDRESS_RE = re.compile(r'^([A-Za-z]+)([0-9]+)$')


def index_to_letters(index: int) -> str:
    """Convert a zero-based column index to letters. 0=A, 25=Z, 26=AA."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative: {index}")
    result = ""
    number = index + 1
    while number > 0:
        number -= 1
        result = chr(ord('A') + (number % 26)) + result
        number //= 26
    return result


def letters_to_index(letters: str) -> int:
    """Convert column letters to a zero-based index. A=0, Z=25, AA=26."""
    if not letters or not letters.isascii() or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    result = 0
    for char in letters.upper():
        result = result * 26 + (ord(char) - ord('A') + 1)
    return result - 1


def cell_address(row_number: int, index: int) -> str:
    """Build an address like 'C3' from a 1-based row and zero-based column."""
    return f"{index_to_letters(index)}{row_number}"


def split_cell_address(address: str) -> Tuple[str, int]:
    """Split 'AA100' into ('AA', 100)."""
    match = _ADDRESS_RE.match(address.strip())
    if not match:
        raise ValueError(f"Invalid cell reference: {address}")
    return match.group(1).upper(), int(match.group(2))
