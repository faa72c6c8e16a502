from __future__ import annotations

import pandas as pd

from vulnsheet.config import FormatConfig, build_config
from vulnsheet.survey import survey_table

COLUMNS = [
    "Plugin ID", "CVE", "CVSS", "Risk", "Device", "Host", "Protocol", "CVSS3",
    "Port", "Name", "Synopsis", "Description", "Solution", "See Also", "Output",
]


def _frame(rows: list[list[str | None]]) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=COLUMNS, dtype="string")


def _row(risk: str | None, host: str, plugin: str = "1") -> list[str | None]:
    return [
        plugin, None, "5.0", risk, "fw", host, "tcp", "5.3",
        "443", "n", "s", "d", "fix", None, "o",
    ]


def test_survey_counts_categories_duplicates_and_filtered_rows() -> None:
    df = _frame(
        [
            _row("High", "a", plugin="1"),
            _row("High", "a", plugin="2"),
            _row("Info", "b"),
            _row("Critical", "c"),
            _row(None, "d"),
        ]
    )

    survey = survey_table(df)

    assert survey.ok
    assert survey.rows == 5
    assert survey.category_header == "Risk"
    assert survey.category_counts == {"High": 2, "Info": 1, "Critical": 1, "": 1}
    assert survey.duplicate_rows == 1
    assert survey.rows_filtered_out == 2
    assert survey.warnings == ["Values hidden by the filter: Info"]


def test_survey_flags_missing_layout_columns() -> None:
    df = pd.DataFrame({"Risk": ["High"], "Host": ["a"]}, dtype="string")

    survey = survey_table(df)

    assert not survey.ok
    assert survey.missing_columns[0] == "D"
    assert "O" in survey.missing_columns
    assert survey.category_counts == {}
    assert survey.warnings[0].startswith("Sheet has 2 columns")


def test_survey_respects_config_overrides() -> None:
    df = _frame([_row("Info", "a"), _row("Low", "b")])
    config = build_config(["show_values=Info,Low"])

    survey = survey_table(df, config)

    assert survey.rows_filtered_out == 0
    assert survey.warnings == []


def test_survey_of_header_only_sheet_warns() -> None:
    survey = survey_table(_frame([]), FormatConfig())

    assert survey.rows == 0
    assert survey.duplicate_rows == 0
    assert "Sheet has a header but no data rows" in survey.warnings


def test_survey_to_dict_copies_collections() -> None:
    survey = survey_table(_frame([_row("High", "a")]))

    payload = survey.to_dict()
    payload["warnings"].append("x")

    assert survey.warnings == []
    assert payload["category_counts"] == {"High": 1}
