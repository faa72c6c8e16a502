from __future__ import annotations

from pathlib import Path

import pytest

from vulnsheet.config import FormatConfig, build_config, load_profile, parse_overrides


def test_defaults_match_merged_scan_layout() -> None:
    config = FormatConfig()

    assert config.hidden_columns == "A:C"
    assert config.filter_columns == "D:O"
    assert config.sort_column == 3
    assert config.duplicate_columns == tuple(range(3, 15))
    assert config.row_height == 14
    assert config.show_values == ("Critical", "High", "Low", "Medium")
    assert config.autofit_columns == ("E", "F", "I", "J", "M")
    assert config.insert_device is False


def test_build_config_without_overrides_returns_defaults() -> None:
    assert build_config(None) == FormatConfig()
    assert build_config([]) == FormatConfig()


def test_build_config_parses_every_setting_kind() -> None:
    config = build_config(
        [
            "hidden_columns=a:b",
            "filter_columns=C:N",
            "sort_column=C",
            "duplicate_columns=C, E, 6",
            "row_height=15.5",
            "show_values=Critical,High",
            "autofit_columns=e, f",
            "insert_device=yes",
            "device_column=f",
            "device_header=Asset",
        ]
    )

    assert config.hidden_columns == "A:B"
    assert config.filter_columns == "C:N"
    assert config.sort_column == 2
    assert config.duplicate_columns == (2, 4, 6)
    assert config.row_height == 15.5
    assert config.show_values == ("Critical", "High")
    assert config.autofit_columns == ("E", "F")
    assert config.insert_device is True
    assert config.device_column == "F"
    assert config.device_header == "Asset"


def test_duplicate_columns_accepts_span() -> None:
    assert build_config(["duplicate_columns=D:F"]).duplicate_columns == (3, 4, 5)


def test_later_overrides_win() -> None:
    config = build_config(["row_height=12", "row-height=20"])

    assert config.row_height == 20


def test_parse_overrides_rejects_missing_equals_and_unknown_keys() -> None:
    with pytest.raises(ValueError, match="expected key=value"):
        parse_overrides(["row_height"])
    with pytest.raises(ValueError, match="Unknown setting 'colour'"):
        parse_overrides(["colour=red"])


@pytest.mark.parametrize(
    "item, message",
    [
        ("row_height=tall", "row_height"),
        ("hidden_columns=C:A", "hidden_columns"),
        ("insert_device=maybe", "insert_device"),
        ("device_column=E,F", "device_column"),
        ("autofit_columns=E1", "autofit_columns"),
        ("device_header=  ", "device_header"),
    ],
)
def test_build_config_rejects_malformed_values(item: str, message: str) -> None:
    with pytest.raises(ValueError, match=f"Bad value for {message}"):
        build_config([item])


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf"])
def test_row_height_must_be_finite(raw: str) -> None:
    with pytest.raises(ValueError, match="row_height must be a finite number"):
        build_config([f"row_height={raw}"])


def test_load_profile_skips_comments_and_blank_lines(tmp_path: Path) -> None:
    profile = tmp_path / "layout.profile"
    profile.write_text(
        "# scan layout\n\nrow_height=16\n  show_values = Critical,High  \n",
        encoding="utf-8",
    )

    lines = load_profile(profile)

    assert lines == ["row_height=16", "show_values = Critical,High"]
    config = build_config(lines)
    assert config.row_height == 16
    assert config.show_values == ("Critical", "High")


def test_load_profile_missing_or_directory_raises(tmp_path: Path) -> None:
    assert load_profile(None) == []
    with pytest.raises(ValueError, match="Profile not found"):
        load_profile(tmp_path / "nope.profile")
    with pytest.raises(ValueError, match="directory"):
        load_profile(tmp_path)
