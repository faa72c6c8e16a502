"""CLI entry point for vulnsheet."""

from __future__ import annotations

import logging
import zipfile
from collections.abc import Callable
from pathlib import Path

import typer
from openpyxl.utils.exceptions import InvalidFileException
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from vulnsheet import __version__
from vulnsheet.config import FormatConfig, build_config, load_profile
from vulnsheet.io import load_table, open_workbook, save_workbook, write_json
from vulnsheet.models import ProcessReport, RunManifest
from vulnsheet.processor import process_worksheet, validate_workbook_name
from vulnsheet.survey import survey_table
from vulnsheet.utils import sha256_file, utcnow_iso
from vulnsheet.xlsx import OpenpyxlSheet

app = typer.Typer(
    name="vulnsheet",
    help="vulnsheet — Tidy merged vulnerability-scan workbooks for review.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

_LOAD_ERRORS = (ValueError, OSError, InvalidFileException, zipfile.BadZipFile)


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"vulnsheet v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(profile: Path | None, settings: list[str] | None) -> FormatConfig:
    return build_config(load_profile(profile) + (settings or []))


def _write_manifest(
    manifest_dir: Path,
    input_file: Path,
    output_path: Path | None,
    run_id: str,
    created_at: str,
    report: ProcessReport | None = None,
    *,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        pass

    manifest = RunManifest(
        run_id=run_id,
        version=__version__,
        input_path=str(input_file.resolve()),
        output_path=str(output_path.resolve()) if output_path else "",
        created_at_utc=created_at,
        rows_in=report.rows_in if report else 0,
        rows_out=report.rows_out if report else 0,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(manifest_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    manifest_dir: Path,
    input_file: Path,
    run_id: str,
    created_at: str,
    message: str,
    *,
    error_code: int = 2,
) -> typer.Exit:
    manifest_path = _write_manifest(
        manifest_dir,
        input_file,
        None,
        run_id,
        created_at,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _report_table(report: ProcessReport) -> RichTable:
    tbl = RichTable(title="Run Summary", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")
    tbl.add_row("Sheet", report.sheet_name)
    tbl.add_row("Rows in", str(report.rows_in))
    tbl.add_row("Duplicates removed", str(report.duplicates_removed))
    tbl.add_row("Rows out", str(report.rows_out))
    tbl.add_row("Hidden by filter", str(report.rows_hidden))
    tbl.add_row("Visible", str(report.rows_visible))
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """vulnsheet CLI."""


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Merged scan workbook (.xlsx).",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for the tidied workbook + manifest.",
    ),
    in_place: bool = typer.Option(
        False, "--in-place",
        help="Overwrite the input workbook instead of writing to --out-dir.",
    ),
    sheet_name: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Worksheet to process (default: the active sheet).",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with layout settings (key=value lines).",
    ),
    settings: list[str] | None = typer.Option(
        None, "--set",
        help="Layout setting override, e.g. --set row_height=15 --set insert_device=true",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log every step (debug level).",
    ),
) -> None:
    """Hide, filter, sort, deduplicate and autofit a merged scan worksheet."""
    echo = _printer(quiet)
    _configure_logging(verbose)
    created_at = utcnow_iso()
    run_id = created_at
    target = input_file if in_place else out_dir / input_file.name
    manifest_dir = target.parent
    manifest_dir.mkdir(parents=True, exist_ok=True)

    try:
        config = _load_config(profile, settings)
        validate_workbook_name(input_file.name, config.required_suffix)
    except ValueError as exc:
        raise _fail(manifest_dir, input_file, run_id, created_at, str(exc)) from exc

    if not quiet:
        console.print(Panel(
            f"[bold]vulnsheet[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {target}",
            title="Tidy Start", border_style="blue",
        ))
        if profile:
            console.print(f"  Using profile: {profile}")

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Opening workbook …")
    try:
        wb = open_workbook(input_file)
        sheet = OpenpyxlSheet.from_workbook(wb, sheet_name)
    except _LOAD_ERRORS as exc:
        raise _fail(manifest_dir, input_file, run_id, created_at, str(exc)) from exc

    # ── Process ──────────────────────────────────────────────────
    echo(f"[blue]>[/blue] Processing sheet {sheet.name!r} …")
    try:
        report = process_worksheet(sheet, input_file.name, config)
    except ValueError as exc:
        raise _fail(manifest_dir, input_file, run_id, created_at, str(exc)) from exc
    except Exception as exc:
        message = f"Unexpected internal error: {exc}"
        raise _fail(
            manifest_dir, input_file, run_id, created_at, message, error_code=1
        ) from exc

    if not verbose:
        for step in report.steps:
            echo(f"  {escape(step)}")

    # ── Save ─────────────────────────────────────────────────────
    try:
        out_path = save_workbook(wb, target)
    except OSError as exc:
        raise _fail(
            manifest_dir, input_file, run_id, created_at, f"Cannot save workbook: {exc}"
        ) from exc
    manifest_path = _write_manifest(
        manifest_dir, input_file, out_path, run_id, created_at, report
    )
    echo(f"  Workbook -> {out_path}")
    echo(f"  Manifest -> {manifest_path}")

    if not quiet:
        console.print(_report_table(report))
        console.print(Panel(
            f"[green]Done[/green] — {report.rows_visible} visible rows -> {out_path}",
            title="Tidy Complete", border_style="green",
        ))


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Merged scan workbook (.xlsx).",
        exists=True, readable=True, dir_okay=False,
    ),
    sheet_name: str | None = typer.Option(
        None, "--sheet", "-s",
        help="Worksheet to read (default: the active sheet).",
    ),
    profile: Path | None = typer.Option(
        None, "--profile",
        help="Profile file with layout settings (key=value lines).",
    ),
    settings: list[str] | None = typer.Option(
        None, "--set",
        help="Layout setting override (key=value).",
    ),
    json_out: Path | None = typer.Option(
        None, "--json",
        help="Also write the survey as JSON to this path.",
    ),
) -> None:
    """Survey a workbook without changing it.

    Exit 0 = layout OK, exit 2 = wrong file kind or missing columns.
    """
    try:
        config = _load_config(profile, settings)
        validate_workbook_name(input_file.name, config.required_suffix)
        df = load_table(input_file, sheet_name)
    except _LOAD_ERRORS as exc:
        _err(str(exc))
        raise typer.Exit(code=2) from exc

    survey = survey_table(df, config)
    if json_out:
        write_json(json_out, survey.to_dict())

    tbl = RichTable(title="Sheet Survey", show_lines=True)
    tbl.add_column("Check", style="bold")
    tbl.add_column("Result")
    tbl.add_row("Data rows", str(survey.rows))
    tbl.add_row("Columns", str(survey.columns))
    if survey.ok:
        tbl.add_row("Missing columns", "[green]none[/green]")
        for value, count in survey.category_counts.items():
            tbl.add_row(f"{survey.category_header} = {value or '(blank)'}", str(count))
        tbl.add_row("Duplicate rows", str(survey.duplicate_rows))
        tbl.add_row("Hidden by filter", str(survey.rows_filtered_out))
    else:
        tbl.add_row("Missing columns", f"[red]{', '.join(survey.missing_columns)}[/red]")
    for w in survey.warnings:
        tbl.add_row("Warning", f"[yellow]{w}[/yellow]")
    tbl.add_row("Status", "[green]PASS[/green]" if survey.ok else "[red]FAIL[/red]")
    console.print(tbl)

    if not survey.ok:
        _err(f"Missing columns: {', '.join(survey.missing_columns)}")
        raise typer.Exit(code=2)
