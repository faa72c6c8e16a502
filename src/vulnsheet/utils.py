"""Shared helpers — column arithmetic, hashing, timestamps."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from pathlib import Path

from openpyxl.utils import column_index_from_string, get_column_letter


def sha256_file(path: Path) -> str:
    """Return the hex SHA-256 digest of *path*."""
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def utcnow_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


# ── Column arithmetic ───────────────────────────────────────────
# All indices here are 0-based (column A == 0).


def column_index(letter: str) -> int:
    """Return the 0-based index of column *letter* (``"D"`` -> 3)."""
    cleaned = letter.strip().upper()
    if not cleaned.isalpha():
        raise ValueError(f"Invalid column letter: {letter!r}")
    return column_index_from_string(cleaned) - 1


def column_letter(index: int) -> str:
    """Return the column letter for 0-based *index* (3 -> ``"D"``)."""
    if index < 0:
        raise ValueError(f"Column index cannot be negative: {index}")
    return get_column_letter(index + 1)


def parse_column_span(span: str) -> tuple[int, int]:
    """Parse ``"A:C"`` (or a single ``"G"``) into inclusive 0-based bounds."""
    start, sep, end = span.partition(":")
    if not sep:
        end = start
    first = column_index(start)
    last = column_index(end)
    if last < first:
        raise ValueError(f"Column span {span!r} ends before it starts")
    return first, last


def to_relative_index(absolute: int, offset: int, size: int | None = None) -> int:
    """Translate a sheet-absolute column index into a range-relative one.

    Host range operations address columns relative to the range's top-left
    corner.  The result must land inside the range: ``0 <= result < size``.
    """
    relative = absolute - offset
    if relative < 0:
        raise ValueError(
            f"Column {absolute} lies left of the range starting at column {offset}"
        )
    if size is not None and relative >= size:
        raise ValueError(
            f"Column {absolute} lies right of the range "
            f"(columns {offset}..{offset + size - 1})"
        )
    return relative
