"""Worksheet tidy-up steps and the ``process_worksheet`` entry point.

Every step is a thin call into the host worksheet.  Steps validate their
arguments before touching the sheet, so a rejected call leaves it unchanged;
there is no rollback of steps that already ran.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import PurePath

from vulnsheet import REQUIRED_SUFFIX
from vulnsheet.config import FormatConfig
from vulnsheet.models import ProcessReport
from vulnsheet.sheet import SheetHost
from vulnsheet.utils import column_index, column_letter, to_relative_index

logger = logging.getLogger(__name__)


class WorkbookKindError(ValueError):
    """The workbook is not the file kind the tidy-up assumes."""


def _status(steps: list[str] | None, message: str) -> None:
    logger.info(message)
    if steps is not None:
        steps.append(message)


# ── Steps ────────────────────────────────────────────────────────


def validate_workbook_name(name: str, suffix: str = REQUIRED_SUFFIX) -> None:
    """Fail unless *name* carries *suffix* (``.xlsx``)."""
    if not name.endswith(suffix):
        raise WorkbookKindError(
            f"You can only run this on {suffix} files (got {name!r}).\n"
            f"Save this file as a {suffix} file first."
        )


def hide_columns(sheet: SheetHost, span: str, *, steps: list[str] | None = None) -> None:
    """Hide columns *span*, e.g. ``"A:C"``; ``"G:G"`` for a single column."""
    sheet.set_columns_hidden(span, True)
    _status(steps, f"Columns {span} are hidden.")


def filter_columns(sheet: SheetHost, span: str, *, steps: list[str] | None = None) -> None:
    """Scope the autofilter to columns *span*, dropping earlier criteria."""
    sheet.apply_filter(span)
    _status(steps, f"Filters applied to columns {span}.")


def sort_by_column(
    sheet: SheetHost, column: int, *, steps: list[str] | None = None
) -> None:
    """Sort the filter range ascending by absolute *column* (0 for A).

    Case-insensitive, header row kept in place, ties keep their row order.
    """
    if column < 0:
        raise ValueError(f"column = {column} cannot be less than 0.")
    rng = sheet.get_filter_range()
    if rng is None:
        raise ValueError("Cannot sort: no autofilter is applied to the sheet.")
    key = to_relative_index(column, rng.column_index, rng.column_count)
    sheet.sort_filter_range(key, match_case=False)
    _status(steps, f"Table sorted by column {column_letter(column)}.")


def only_show_values(
    sheet: SheetHost,
    column: int,
    values: Sequence[str],
    *,
    steps: list[str] | None = None,
) -> None:
    """Restrict the autofilter on absolute *column* to *values*.

    Rows whose value is not listed are hidden, never deleted.
    """
    rng = sheet.get_filter_range()
    if rng is None:
        raise ValueError("Cannot filter values: no autofilter is applied to the sheet.")
    relative = to_relative_index(column, rng.column_index, rng.column_count)
    sheet.apply_value_filter(relative, list(values))
    shown = ", ".join(values)
    _status(steps, f"Table only shows column {column_letter(column)} values: {shown}.")


def remove_duplicates(
    sheet: SheetHost, columns: Sequence[int], *, steps: list[str] | None = None
) -> int:
    """Delete repeated data rows, comparing absolute *columns*.

    The first occurrence survives; the header row is never compared.
    Returns the number of rows removed.
    """
    used = sheet.get_used_range()
    relative = [to_relative_index(col, used.column_index, used.column_count) for col in columns]
    removed = sheet.remove_duplicates(relative)
    _status(steps, f"Duplicates removed: {removed} row(s).")
    return removed


def set_row_height(sheet: SheetHost, height: float, *, steps: list[str] | None = None) -> None:
    """Give every occupied row the same *height* (points)."""
    if not math.isfinite(height):
        raise ValueError(f"height = {height} must be a finite number.")
    if height <= 0:
        raise ValueError(f"height = {height} cannot be less than or equal to 0.")
    sheet.set_row_height(height)
    _status(steps, f"Height of occupied rows is set to {height:g}.")


def autofit_columns(
    sheet: SheetHost, letters: Sequence[str], *, steps: list[str] | None = None
) -> None:
    for letter in letters:
        sheet.autofit_column(letter)
        logger.debug("Autofit applied to column %s.", letter)
    _status(steps, f"Autofit is applied to columns {', '.join(letters)}.")


def insert_column(
    sheet: SheetHost,
    before: str,
    header: str,
    value: str,
    *,
    steps: list[str] | None = None,
) -> None:
    """Insert a column before *before*, titled *header*, every data row = *value*."""
    column_index(before)
    used = sheet.get_used_range()
    new_column = sheet.insert_column(before)
    sheet.set_cell_value(0, new_column, header)
    for row in range(1, used.last_row + 1):
        sheet.set_cell_value(row, new_column, value)
    _status(steps, f'Column "{header}" inserted at column {before} populated with "{value}".')


# ── Orchestration ────────────────────────────────────────────────


def _data_rows(sheet: SheetHost) -> int:
    return sheet.get_used_range().row_count - 1


def _hidden_rows(sheet: SheetHost) -> int:
    used = sheet.get_used_range()
    return sum(
        1 for row in range(used.row_index + 1, used.last_row + 1) if sheet.is_row_hidden(row)
    )


def process_worksheet(
    sheet: SheetHost,
    workbook_name: str,
    config: FormatConfig | None = None,
) -> ProcessReport:
    """Run the whole tidy-up on *sheet* of the workbook named *workbook_name*."""
    config = config or FormatConfig()
    validate_workbook_name(workbook_name, config.required_suffix)

    steps: list[str] = []
    if config.insert_device:
        insert_column(
            sheet,
            config.device_column,
            config.device_header,
            PurePath(workbook_name).stem,
            steps=steps,
        )

    rows_in = _data_rows(sheet)
    hide_columns(sheet, config.hidden_columns, steps=steps)
    filter_columns(sheet, config.filter_columns, steps=steps)
    sort_by_column(sheet, config.sort_column, steps=steps)
    removed = remove_duplicates(sheet, config.duplicate_columns, steps=steps)
    set_row_height(sheet, config.row_height, steps=steps)
    only_show_values(sheet, config.sort_column, config.show_values, steps=steps)
    autofit_columns(sheet, config.autofit_columns, steps=steps)

    return ProcessReport(
        workbook_name=workbook_name,
        sheet_name=sheet.name,
        rows_in=rows_in,
        rows_out=rows_in - removed,
        duplicates_removed=removed,
        rows_hidden=_hidden_rows(sheet),
        steps=steps,
    )
