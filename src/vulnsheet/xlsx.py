"""openpyxl-backed host — the worksheet operations behind the processor."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from copy import copy
from typing import Any

from openpyxl import Workbook
from openpyxl.utils.cell import range_boundaries
from openpyxl.worksheet.worksheet import Worksheet

from vulnsheet.models import CellRange
from vulnsheet.utils import column_index, column_letter, parse_column_span

# Excel's own limits/defaults for column widths (in characters).
MAX_COLUMN_WIDTH = 255
DEFAULT_COLUMN_WIDTH = 8.43
_AUTOFIT_PADDING = 2


# ── Helpers ──────────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def _display_text(value: Any) -> str:
    """Text a cell shows for *value*, as far as the raw value tells us."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _sort_key(value: Any, match_case: bool) -> tuple[int, Any]:
    # Numbers before text, blanks last.
    if _is_blank(value):
        return (2, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    text = _display_text(value)
    return (1, text if match_case else text.casefold())


def _contiguous_runs(rows: list[int]) -> Iterator[tuple[int, int]]:
    """Yield ``(first_row, length)`` runs of *rows*, bottom run first."""
    runs: list[tuple[int, int]] = []
    for row in sorted(rows):
        if runs and runs[-1][0] + runs[-1][1] == row:
            runs[-1] = (runs[-1][0], runs[-1][1] + 1)
        else:
            runs.append((row, 1))
    yield from reversed(runs)


class OpenpyxlSheet:
    """Adapter exposing an openpyxl worksheet through ``SheetHost``.

    openpyxl stores filters and hidden rows but never evaluates them, so the
    adapter does what Excel would: value filters hide rows through
    ``row_dimensions`` and autofit measures cell text.
    """

    def __init__(self, worksheet: Worksheet) -> None:
        self.ws = worksheet

    @classmethod
    def from_workbook(cls, wb: Workbook, sheet_name: str | None = None) -> OpenpyxlSheet:
        if sheet_name is None:
            ws = wb.active
            if ws is None:
                raise ValueError("Workbook has no active worksheet")
        else:
            if sheet_name not in wb.sheetnames:
                raise ValueError(
                    f"Sheet {sheet_name!r} not found. Available: {', '.join(wb.sheetnames)}"
                )
            ws = wb[sheet_name]
        if not isinstance(ws, Worksheet):
            raise ValueError(f"Sheet {ws.title!r} is not a worksheet")
        return cls(ws)

    @property
    def name(self) -> str:
        return self.ws.title

    # ── Geometry ─────────────────────────────────────────────────

    def get_used_range(self) -> CellRange:
        min_row = min_col = max_row = max_col = 0
        for row in self.ws.iter_rows():
            for cell in row:
                if _is_blank(cell.value):
                    continue
                r, c = cell.row, cell.column
                if not max_row:
                    min_row, max_row, min_col, max_col = r, r, c, c
                    continue
                min_row, max_row = min(min_row, r), max(max_row, r)
                min_col, max_col = min(min_col, c), max(max_col, c)
        if not max_row:
            # Excel reports A1 for an empty sheet.
            return CellRange()
        return CellRange(
            row_index=min_row - 1,
            column_index=min_col - 1,
            row_count=max_row - min_row + 1,
            column_count=max_col - min_col + 1,
        )

    def is_row_hidden(self, row: int) -> bool:
        dim = self.ws.row_dimensions.get(row + 1)
        return bool(dim is not None and dim.hidden)

    def set_cell_value(self, row: int, column: int, value: Any) -> None:
        self.ws.cell(row=row + 1, column=column + 1, value=value)

    # ── Columns ──────────────────────────────────────────────────

    def set_columns_hidden(self, span: str, hidden: bool = True) -> None:
        first, last = parse_column_span(span)
        for idx in range(first, last + 1):
            self.ws.column_dimensions[column_letter(idx)].hidden = hidden

    def autofit_column(self, letter: str) -> None:
        idx = column_index(letter) + 1
        longest = 0
        # Look cells up without creating them; iter_rows would grow the sheet.
        for row in range(1, self.ws.max_row + 1):
            cell = self.ws._cells.get((row, idx))
            if cell is None or self.is_row_hidden(row - 1):
                continue
            for line in _display_text(cell.value).splitlines():
                longest = max(longest, len(line))
        dim = self.ws.column_dimensions[column_letter(idx - 1)]
        if longest:
            dim.width = min(longest + _AUTOFIT_PADDING, MAX_COLUMN_WIDTH)
        else:
            dim.width = DEFAULT_COLUMN_WIDTH

    def insert_column(self, before: str) -> int:
        """Insert an empty column, shifting cells right.

        openpyxl leaves column dimensions and the autofilter reference where
        they were, so insert before applying any layout.
        """
        idx = column_index(before)
        self.ws.insert_cols(idx + 1)
        return idx

    # ── Rows ─────────────────────────────────────────────────────

    def set_row_height(self, height: float) -> None:
        used = self.get_used_range()
        for row in range(used.row_index + 1, used.last_row + 2):
            self.ws.row_dimensions[row].height = height

    def remove_duplicates(self, columns: Sequence[int]) -> int:
        used = self.get_used_range()
        for col in columns:
            if not 0 <= col < used.column_count:
                raise ValueError(
                    f"Column {col} is outside the used range {used.ref} "
                    f"(0..{used.column_count - 1})"
                )
        if used.row_count < 2:
            return 0

        seen: set[tuple[Any, ...]] = set()
        doomed: list[int] = []
        first_col = used.column_index + 1
        # Row 1 of the range is the header.
        for r_idx, values in enumerate(
            self.ws.iter_rows(
                min_row=used.row_index + 2,
                max_row=used.last_row + 1,
                min_col=first_col,
                max_col=used.last_column + 1,
                values_only=True,
            ),
            start=used.row_index + 2,
        ):
            key = tuple(values[col] for col in columns)
            if key in seen:
                doomed.append(r_idx)
            else:
                seen.add(key)

        for first, amount in _contiguous_runs(doomed):
            self.ws.delete_rows(first, amount)
        self._shrink_filter(doomed)
        return len(doomed)

    # ── Filter + sort ────────────────────────────────────────────

    def get_filter_range(self) -> CellRange | None:
        ref = self.ws.auto_filter.ref
        if not ref:
            return None
        min_col, min_row, max_col, max_row = range_boundaries(ref)
        return CellRange(
            row_index=min_row - 1,
            column_index=min_col - 1,
            row_count=max_row - min_row + 1,
            column_count=max_col - min_col + 1,
        )

    def apply_filter(self, span: str) -> None:
        first, last = parse_column_span(span)
        used = self.get_used_range()
        self._clear_criteria()
        target = CellRange(
            row_index=used.row_index,
            column_index=first,
            row_count=used.row_count,
            column_count=last - first + 1,
        )
        self.ws.auto_filter.ref = target.ref

    def apply_value_filter(self, column: int, values: Sequence[str]) -> None:
        rng = self._require_filter()
        if not 0 <= column < rng.column_count:
            raise ValueError(
                f"Column {column} is outside the filter range {rng.ref} "
                f"(0..{rng.column_count - 1})"
            )
        self._clear_criteria()
        allowed = set(values)
        self.ws.auto_filter.add_filter_column(column, list(values))
        absolute = rng.column_index + column + 1
        for row in range(rng.row_index + 2, rng.last_row + 2):
            text = _display_text(self.ws.cell(row=row, column=absolute).value)
            self.ws.row_dimensions[row].hidden = text not in allowed

    def sort_filter_range(self, column: int, *, match_case: bool = False) -> None:
        rng = self._require_filter()
        if not 0 <= column < rng.column_count:
            raise ValueError(
                f"Column {column} is outside the filter range {rng.ref} "
                f"(0..{rng.column_count - 1})"
            )
        first_row = rng.row_index + 2
        last_row = rng.last_row + 1
        if last_row <= first_row:
            return
        first_col = rng.column_index + 1
        # Snapshot whole cells so fill, fonts, number formats and links move with the row.
        rows = [
            [(cell.value, copy(cell._style), cell.hyperlink) for cell in cells]
            for cells in self.ws.iter_rows(
                min_row=first_row,
                max_row=last_row,
                min_col=first_col,
                max_col=rng.last_column + 1,
            )
        ]
        # sorted() is stable: equal keys keep their prior row order.
        ordered = sorted(rows, key=lambda cells: _sort_key(cells[column][0], match_case))
        for r_idx, cells in enumerate(ordered, start=first_row):
            for c_idx, (value, style, link) in enumerate(cells, start=first_col):
                cell = self.ws.cell(row=r_idx, column=c_idx)
                # The hyperlink setter fills empty cells, so the value goes last.
                cell.hyperlink = link
                cell._style = copy(style)
                cell.value = value

    # ── Internals ────────────────────────────────────────────────

    def _require_filter(self) -> CellRange:
        rng = self.get_filter_range()
        if rng is None:
            raise ValueError(f"Sheet {self.name!r} has no autofilter applied")
        return rng

    def _clear_criteria(self) -> None:
        """Drop filter criteria and show the rows they hid."""
        rng = self.get_filter_range()
        if rng is not None:
            for row in range(rng.row_index + 2, rng.last_row + 2):
                if self.is_row_hidden(row - 1):
                    self.ws.row_dimensions[row].hidden = False
        self.ws.auto_filter.filterColumn = []
        self.ws.auto_filter.sortState = None

    def _shrink_filter(self, deleted_rows: list[int]) -> None:
        rng = self.get_filter_range()
        if rng is None or not deleted_rows:
            return
        inside = sum(1 for row in deleted_rows if rng.row_index < row <= rng.last_row + 1)
        if not inside:
            return
        self.ws.auto_filter.ref = CellRange(
            row_index=rng.row_index,
            column_index=rng.column_index,
            row_count=max(rng.row_count - inside, 1),
            column_count=rng.column_count,
        ).ref
