"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

from vulnsheet.utils import column_letter


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_positive_int(value: Any, field_name: str) -> int:
    result = _to_non_negative_int(value, field_name)
    if result == 0:
        raise ValueError(f"{field_name} must be >= 1")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


@dataclass(frozen=True)
class CellRange:
    """Rectangular block of cells addressed by 0-based absolute offsets."""

    row_index: int = 0
    column_index: int = 0
    row_count: int = 1
    column_count: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "row_index", _to_non_negative_int(self.row_index, "row_index"))
        object.__setattr__(
            self, "column_index", _to_non_negative_int(self.column_index, "column_index")
        )
        object.__setattr__(self, "row_count", _to_positive_int(self.row_count, "row_count"))
        object.__setattr__(
            self, "column_count", _to_positive_int(self.column_count, "column_count")
        )

    @property
    def last_row(self) -> int:
        return self.row_index + self.row_count - 1

    @property
    def last_column(self) -> int:
        return self.column_index + self.column_count - 1

    @property
    def ref(self) -> str:
        """A1-style reference, e.g. ``D1:O20``."""
        start = f"{column_letter(self.column_index)}{self.row_index + 1}"
        end = f"{column_letter(self.last_column)}{self.last_row + 1}"
        return start if start == end else f"{start}:{end}"


@dataclass
class ProcessReport:
    """Outcome of one ``process_worksheet`` run.

    Row counts exclude the header row.
    Contract invariant: ``duplicates_removed == rows_in - rows_out``.
    """

    workbook_name: str = ""
    sheet_name: str = ""
    rows_in: int = 0
    rows_out: int = 0
    duplicates_removed: int = 0
    rows_hidden: int = 0
    steps: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.duplicates_removed = _to_non_negative_int(
            self.duplicates_removed, "duplicates_removed"
        )
        self.rows_hidden = _to_non_negative_int(self.rows_hidden, "rows_hidden")
        self.steps = _to_string_list(self.steps, "steps")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.duplicates_removed != self.rows_in - self.rows_out:
            raise ValueError("duplicates_removed must equal rows_in - rows_out")
        if self.rows_hidden > self.rows_out:
            raise ValueError("rows_hidden must be <= rows_out")

    @property
    def rows_visible(self) -> int:
        return self.rows_out - self.rows_hidden

    def to_dict(self) -> dict[str, Any]:
        return {
            "workbook_name": self.workbook_name,
            "sheet_name": self.sheet_name,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "duplicates_removed": self.duplicates_removed,
            "rows_hidden": self.rows_hidden,
            "steps": list(self.steps),
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "vulnsheet"
    version: str = ""
    run_id: str = ""
    input_path: str = ""
    output_path: str = ""
    created_at_utc: str = ""
    rows_in: int = 0
    rows_out: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")
        if self.error_code is not None:
            self.error_code = _to_non_negative_int(self.error_code, "error_code")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "run_id": self.run_id,
            "input_path": self.input_path,
            "output_path": self.output_path,
            "created_at_utc": self.created_at_utc,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
