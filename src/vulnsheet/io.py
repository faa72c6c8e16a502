"""I/O helpers — open/save workbooks, read sheets as tables, write JSON artifacts."""

from __future__ import annotations

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, cast

import pandas as pd
from openpyxl import Workbook, load_workbook

_EXCEL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")

# ── Loading ──────────────────────────────────────────────────────


def _check_excel_path(path: Path) -> Path:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    suffix = path.suffix.lower()
    if suffix not in _EXCEL_SUFFIXES:
        raise ValueError(f"Unsupported file type: {suffix!r}. Use .xlsx")
    return path


def open_workbook(path: Path) -> Workbook:
    """Open *path* with openpyxl for in-place editing.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the extension is not an Excel Open XML one.
    """
    path = _check_excel_path(path)
    return load_workbook(path)


def active_sheet_name(path: Path) -> str:
    """Title of the sheet *path* opens on, the one ``run`` processes by default."""
    path = _check_excel_path(path)
    wb = load_workbook(path, read_only=True)
    try:
        ws = wb.active
        if ws is None:
            raise ValueError("Workbook has no active worksheet")
        return ws.title
    finally:
        wb.close()


def load_table(path: Path, sheet_name: str | None = None) -> pd.DataFrame:
    """Read one sheet of *path* into a string-typed DataFrame (row 1 = header).

    Columns keep their sheet position, so ``df.iloc[:, 3]`` is column D.
    *sheet_name* ``None`` reads the active sheet.
    """
    path = _check_excel_path(path)
    if sheet_name is None:
        sheet_name = active_sheet_name(path)
    read_excel = cast(Callable[..., pd.DataFrame], getattr(pd, "read_excel"))
    return read_excel(path, sheet_name=sheet_name, engine="openpyxl", dtype="string")


# ── Writing ──────────────────────────────────────────────────────


def save_workbook(wb: Workbook, path: Path) -> Path:
    """Save *wb* to *path* atomically and return the path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    wb.save(tmp_path)
    tmp_path.replace(path)
    return path


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
