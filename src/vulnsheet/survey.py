"""Read-only survey of a merged scan sheet — what ``run`` would change."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from vulnsheet.config import FormatConfig
from vulnsheet.utils import column_index, column_letter, parse_column_span


@dataclass
class SheetSurvey:
    rows: int = 0
    columns: int = 0
    category_header: str = ""
    category_counts: dict[str, int] = field(default_factory=dict)
    duplicate_rows: int = 0
    rows_filtered_out: int = 0
    missing_columns: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing_columns

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "columns": self.columns,
            "category_header": self.category_header,
            "category_counts": dict(self.category_counts),
            "duplicate_rows": self.duplicate_rows,
            "rows_filtered_out": self.rows_filtered_out,
            "missing_columns": list(self.missing_columns),
            "warnings": list(self.warnings),
        }


def _referenced_columns(config: FormatConfig) -> set[int]:
    referenced = {config.sort_column, *config.duplicate_columns}
    first, last = parse_column_span(config.filter_columns)
    referenced.update(range(first, last + 1))
    referenced.update(column_index(letter) for letter in config.autofit_columns)
    return referenced


def survey_table(df: pd.DataFrame, config: FormatConfig | None = None) -> SheetSurvey:
    """Summarise *df* (one sheet, header already consumed) against *config*."""
    config = config or FormatConfig()
    survey = SheetSurvey(rows=len(df), columns=len(df.columns))

    needed = _referenced_columns(config)
    survey.missing_columns = [
        column_letter(idx) if idx >= 0 else str(idx)
        for idx in sorted(needed)
        if idx < 0 or idx >= len(df.columns)
    ]
    if survey.missing_columns:
        survey.warnings.append(
            f"Sheet has {len(df.columns)} columns; layout needs "
            f"{', '.join(survey.missing_columns)}"
        )
        return survey

    category = df.iloc[:, config.sort_column].fillna("")
    survey.category_header = str(df.columns[config.sort_column])
    counts = category.value_counts(sort=True)
    survey.category_counts = {str(k): int(v) for k, v in counts.items()}

    survey.duplicate_rows = int(df.iloc[:, list(config.duplicate_columns)].duplicated().sum())
    survey.rows_filtered_out = int((~category.isin(config.show_values)).sum())

    unknown = sorted(set(survey.category_counts) - set(config.show_values) - {""})
    if unknown:
        survey.warnings.append(f"Values hidden by the filter: {', '.join(unknown)}")
    if survey.rows == 0:
        survey.warnings.append("Sheet has a header but no data rows")
    return survey
