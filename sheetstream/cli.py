"""
RESPONSIBILITIES
- Minimal Typer CLI around SheetReader for ad-hoc inspection of import files.
- Supports container sniffing and dumping one sheet's records described by a YAML profile.
PROCESS OVERVIEW
1. sniff -> resolve the file and print the container family that would decode it.
2. dump -> load the profile, stream records as JSON lines, or write CSV/XLSX via pandas.
"""

from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Optional

import typer

from .config import load_profile
from .dispatch import resolve_source
from .errors import SheetStreamError
from .filters import skip_rows as skip_rows_filter
from .utils.log import get_logger

app = typer.Typer(help="Stream typed records out of one spreadsheet sheet.")
logger = get_logger("cli")

FRAME_WRITERS = {".csv", ".xlsx"}


def _echo_record(record: Any) -> None:
    typer.echo(json.dumps(dataclasses.asdict(record), default=str, ensure_ascii=False))


@app.command("sniff")
def sniff_command(
    path: Path = typer.Argument(..., help="Workbook to inspect."),
) -> None:
    """Print the container family (xlsx or xls) detected for PATH."""

    try:
        resolved = resolve_source(path)
    except SheetStreamError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(resolved.container.value)


@app.command("dump")
def dump_command(
    path: Path = typer.Argument(..., help="Workbook to read."),
    profile: Path = typer.Option(..., "--profile", "-p", help="YAML read profile."),
    sheet: Optional[int] = typer.Option(None, min=0, help="Sheet index; overrides the profile."),
    skip_rows: Optional[int] = typer.Option(None, min=0, help="Leading rows to skip; overrides the profile."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write records to a .csv or .xlsx file."),
) -> None:
    """Read one sheet of PATH into the records described by PROFILE."""

    if output is not None and output.suffix.lower() not in FRAME_WRITERS:
        raise typer.BadParameter(f"Unsupported output type: {output.suffix}", param_hint="--output")

    try:
        read_profile = load_profile(profile)
        reader = read_profile.reader()
        if sheet is not None:
            reader = reader.sheet(sheet)
        if skip_rows is not None:
            reader = reader.row_filter(skip_rows_filter(skip_rows))

        if output is None:
            reader.read_then(path, _echo_record)
            return

        frame = reader.read_frame(path)
        output.parent.mkdir(parents=True, exist_ok=True)
        if output.suffix.lower() == ".csv":
            frame.to_csv(output, index=False)
        else:
            frame.to_excel(output, index=False)
        logger.info("Records written", extra={"output": str(output), "records": len(frame)})
        typer.echo(f"{len(frame)} records written to {output}")
    except SheetStreamError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
