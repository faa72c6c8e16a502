from __future__ import annotations

import pytest

from vulnsheet.models import CellRange, ProcessReport, RunManifest


def test_cell_range_derives_last_row_column_and_ref() -> None:
    rng = CellRange(row_index=0, column_index=3, row_count=20, column_count=12)

    assert rng.last_row == 19
    assert rng.last_column == 14
    assert rng.ref == "D1:O20"


def test_cell_range_single_cell_ref_is_one_cell() -> None:
    assert CellRange().ref == "A1"


def test_cell_range_rejects_negative_offsets_and_empty_sizes() -> None:
    with pytest.raises(ValueError, match="column_index"):
        CellRange(column_index=-1)
    with pytest.raises(ValueError, match="row_count"):
        CellRange(row_count=0)
    with pytest.raises(TypeError, match="column_count"):
        CellRange(column_count=True)  # type: ignore[arg-type]


def test_cell_range_is_immutable() -> None:
    rng = CellRange()
    with pytest.raises(AttributeError):
        rng.row_count = 3  # type: ignore[misc]


def test_process_report_to_dict_returns_list_copies() -> None:
    report = ProcessReport(
        workbook_name="scan.xlsx",
        sheet_name="Sheet1",
        rows_in=4,
        rows_out=3,
        duplicates_removed=1,
        rows_hidden=1,
        steps=["Columns A:C are hidden."],
    )

    payload = report.to_dict()
    payload["steps"].append("another")

    assert report.steps == ["Columns A:C are hidden."]
    assert payload["rows_out"] == 3
    assert report.rows_visible == 2


def test_process_report_rejects_inconsistent_row_relationships() -> None:
    with pytest.raises(ValueError, match="rows_out"):
        ProcessReport(rows_in=2, rows_out=3)

    with pytest.raises(ValueError, match="duplicates_removed"):
        ProcessReport(rows_in=5, rows_out=4, duplicates_removed=2)

    with pytest.raises(ValueError, match="rows_hidden"):
        ProcessReport(rows_in=2, rows_out=2, rows_hidden=3)


def test_process_report_rejects_non_string_steps() -> None:
    with pytest.raises(TypeError, match="steps"):
        ProcessReport(steps=["ok", 1])  # type: ignore[list-item]


def test_run_manifest_rejects_non_integer_and_negative_counts() -> None:
    with pytest.raises(TypeError, match="rows_in"):
        RunManifest(rows_in=True)  # type: ignore[arg-type]

    with pytest.raises(ValueError, match="rows_out"):
        RunManifest(rows_out=-2)


def test_run_manifest_rejects_unknown_status() -> None:
    with pytest.raises(ValueError, match="status"):
        RunManifest(status="partial")


def test_run_manifest_to_dict_carries_failure_details() -> None:
    manifest = RunManifest(status="failed", error_code=2, error_message="bad file")

    payload = manifest.to_dict()

    assert payload["tool"] == "vulnsheet"
    assert payload["status"] == "failed"
    assert payload["error_code"] == 2
    assert payload["error_message"] == "bad file"
