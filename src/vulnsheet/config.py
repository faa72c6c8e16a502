"""Layout configuration — defaults plus ``key=value`` overrides."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from vulnsheet import REQUIRED_SUFFIX, RISK_LEVELS
from vulnsheet.utils import column_index, parse_column_span

# Merged scan layout: A-C metadata, D risk, E device, F host, I port,
# J name, M solution; D-O carry the findings.


@dataclass(frozen=True)
class FormatConfig:
    """Where things live in the merged worksheet and how to tidy them."""

    hidden_columns: str = "A:C"
    filter_columns: str = "D:O"
    sort_column: int = 3
    duplicate_columns: tuple[int, ...] = tuple(range(3, 15))
    row_height: float = 14
    show_values: tuple[str, ...] = tuple(RISK_LEVELS)
    autofit_columns: tuple[str, ...] = ("E", "F", "I", "J", "M")
    insert_device: bool = False
    device_column: str = "E"
    device_header: str = "Device"
    required_suffix: str = REQUIRED_SUFFIX


# ── Value parsers ────────────────────────────────────────────────


def _split_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_span(raw: str) -> str:
    parse_column_span(raw)
    return raw.strip().upper()


def _parse_column_ref(raw: str) -> int:
    """Accept a column letter (``D``) or a 0-based index (``3``)."""
    raw = raw.strip()
    if raw.lstrip("-").isdigit():
        return int(raw)
    return column_index(raw)


def _parse_column_set(raw: str) -> tuple[int, ...]:
    raw = raw.strip()
    if ":" in raw:
        first, last = parse_column_span(raw)
        return tuple(range(first, last + 1))
    columns = tuple(_parse_column_ref(item) for item in _split_list(raw))
    if not columns:
        raise ValueError("duplicate_columns needs at least one column")
    return columns


def _parse_letters(raw: str) -> tuple[str, ...]:
    letters = tuple(item.upper() for item in _split_list(raw))
    for letter in letters:
        column_index(letter)
    return letters


def _parse_letter(raw: str) -> str:
    letters = _parse_letters(raw)
    if len(letters) != 1:
        raise ValueError(f"Expected a single column letter, got {raw!r}")
    return letters[0]


def _parse_height(raw: str) -> float:
    try:
        height = float(raw)
    except ValueError as exc:
        raise ValueError(f"row_height must be a number, got {raw!r}") from exc
    if not math.isfinite(height):
        raise ValueError(f"row_height must be a finite number, got {raw!r}")
    return height


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Expected true/false, got {raw!r}")


def _parse_text(raw: str) -> str:
    value = raw.strip()
    if not value:
        raise ValueError("Value must not be empty")
    return value


_PARSERS: dict[str, Any] = {
    "hidden_columns": _parse_span,
    "filter_columns": _parse_span,
    "sort_column": _parse_column_ref,
    "duplicate_columns": _parse_column_set,
    "row_height": _parse_height,
    "show_values": lambda raw: tuple(_split_list(raw)),
    "autofit_columns": _parse_letters,
    "insert_device": _parse_bool,
    "device_column": _parse_letter,
    "device_header": _parse_text,
}


# ── Public API ───────────────────────────────────────────────────


def load_profile(profile: Path | None) -> list[str]:
    """Return the ``key=value`` lines of a profile file."""
    if not profile:
        return []
    if not profile.exists():
        raise ValueError(f"Profile not found: {profile} (expected lines like row_height=14)")
    if profile.is_dir():
        raise ValueError(f"Profile is a directory, not a file: {profile}")
    try:
        text = profile.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Cannot read profile {profile}: {exc}") from exc

    lines: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        lines.append(stripped)
    return lines


def parse_overrides(raw: list[str] | None) -> dict[str, str]:
    """Parse ``key=value`` items into a dict; later items win."""
    if not raw:
        return {}
    overrides: dict[str, str] = {}
    for item in raw:
        if "=" not in item:
            raise ValueError(f"Invalid setting: {item!r}  (expected key=value)")
        key, value = item.split("=", 1)
        key = key.strip().lower().replace("-", "_")
        if key not in _PARSERS:
            known = ", ".join(sorted(_PARSERS))
            raise ValueError(f"Unknown setting {key!r}. Known settings: {known}")
        overrides[key] = value.strip()
    return overrides


def build_config(raw: list[str] | None = None, base: FormatConfig | None = None) -> FormatConfig:
    """Return *base* (or the defaults) with ``key=value`` overrides applied."""
    config = base or FormatConfig()
    overrides = parse_overrides(raw)
    if not overrides:
        return config
    parsed: dict[str, Any] = {}
    for key, value in overrides.items():
        try:
            parsed[key] = _PARSERS[key](value)
        except ValueError as exc:
            raise ValueError(f"Bad value for {key}: {exc}") from exc
    return replace(config, **parsed)