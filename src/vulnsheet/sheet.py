"""Host worksheet capability — what the processor needs from a spreadsheet engine.

Column and row indices are 0-based.  Unless a method says otherwise they are
absolute sheet coordinates; ``apply_value_filter``, ``sort_filter_range`` and
``remove_duplicates`` take range-relative column indices, like the host range
operations they mirror.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from vulnsheet.models import CellRange


@runtime_checkable
class SheetHost(Protocol):
    @property
    def name(self) -> str: ...

    def get_used_range(self) -> CellRange:
        """Bounding rectangle of non-empty cells."""
        ...

    def set_columns_hidden(self, span: str, hidden: bool = True) -> None: ...

    def apply_filter(self, span: str) -> None:
        """Scope the single autofilter to *span*, clearing any criteria."""
        ...

    def get_filter_range(self) -> CellRange | None: ...

    def apply_value_filter(self, column: int, values: Sequence[str]) -> None:
        """Show only filter-range rows whose *column* value is in *values*."""
        ...

    def sort_filter_range(self, column: int, *, match_case: bool = False) -> None:
        """Sort the filter range ascending by *column*; row 1 is a header."""
        ...

    def remove_duplicates(self, columns: Sequence[int]) -> int:
        """Delete repeated data rows of the used range; return how many went."""
        ...

    def set_row_height(self, height: float) -> None: ...

    def autofit_column(self, letter: str) -> None: ...

    def insert_column(self, before: str) -> int:
        """Insert an empty column before *before*; return its index."""
        ...

    def set_cell_value(self, row: int, column: int, value: Any) -> None: ...

    def is_row_hidden(self, row: int) -> bool: ...
