"""Command-line interface for sheetcalc."""

from __future__ import annotations

import json
from pathlib import Path

import click

from sheetcalc import __version__


@click.group()
@click.version_option(version=__version__, prog_name="sheetcalc")
def main() -> None:
    """sheetcalc -- spreadsheet grid and formula engine.

    Documents are JSON files; ``sheetcalc.yaml`` next to a document
    configures it.
    """


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _open(path: str, *, strict: bool = False):
    """Open a document session, turning load errors into CLI errors."""
    from sheetcalc.ui.service import SheetService

    try:
        return SheetService(Path(path), strict=strict)
    except ValueError as exc:
        raise click.ClickException(str(exc))


def _render_table(svc, raw: bool) -> list[str]:
    from sheetcalc.refs import index_to_col_letter

    sheet = svc.sheet
    hidden = set(sheet.view.hidden_columns())
    cols = [c for c in range(sheet.column_count) if c not in hidden]

    grid: list[list[str]] = []
    for r in range(sheet.row_count):
        value = sheet.raw_value if raw else sheet.display_value
        grid.append([value(c, r) for c in cols])

    headers = [index_to_col_letter(c) for c in cols]
    widths = [
        max([len(headers[i])] + [len(row[i]) for row in grid])
        for i in range(len(cols))
    ]
    gutter = len(str(sheet.row_count))

    lines = [" " * gutter + " | " + " | ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("-" * len(lines[0]))
    for r, row in enumerate(grid):
        cells = " | ".join(text.ljust(w) for text, w in zip(row, widths))
        lines.append(f"{str(r + 1).rjust(gutter)} | {cells}")
    return [line.rstrip() for line in lines]


# ---------------------------------------------------------------------------
# New / show
# ---------------------------------------------------------------------------


@main.command()
@click.argument("path", type=click.Path())
@click.option("--with-config", is_flag=True, help="Also write a default sheetcalc.yaml.")
def new(path: str, with_config: bool) -> None:
    """Create an empty sheet document at PATH."""
    from sheetcalc.config import ConfigError, load_config, write_default_config
    from sheetcalc.logging.events import set_log_dir
    from sheetcalc.sheet import Sheet

    target = Path(path)
    if target.exists():
        raise click.ClickException(f"{target} already exists")
    target.parent.mkdir(parents=True, exist_ok=True)
    if with_config:
        write_default_config(target.parent)
    try:
        config = load_config(target.parent)
    except ConfigError as exc:
        raise click.ClickException(str(exc))
    set_log_dir(target.parent, fsync=bool(config.get("logging_fsync")))

    sheet = Sheet.new(config=config)
    sheet.save(target)
    click.echo(f"Created {target} ({sheet.row_count} rows x {sheet.column_count} columns)")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--raw", is_flag=True, help="Show raw input instead of computed values.")
@click.option("--json", "as_json", is_flag=True, help="Output the serialized document.")
def show(path: str, raw: bool, as_json: bool) -> None:
    """Print the sheet at PATH as a table."""
    svc = _open(path)
    if as_json:
        click.echo(json.dumps(svc.sheet.serialize(), indent=2, ensure_ascii=False))
        return
    for line in _render_table(svc, raw):
        click.echo(line)


# ---------------------------------------------------------------------------
# Cell edits
# ---------------------------------------------------------------------------


@main.command("set")
@click.argument("path", type=click.Path())
@click.argument("addr")
@click.argument("value")
def set_cell(path: str, addr: str, value: str) -> None:
    """Commit VALUE into cell ADDR (empty VALUE clears it) and save."""
    svc = _open(path)
    result = svc.update_cells([{"addr": addr, "value": value}])
    if result["errors"]:
        raise click.ClickException(result["errors"][0]["message"])
    svc.save()
    cell = result["cells"][0]
    click.echo(f"{cell['addr']} = {cell['display']}")


@main.command("eval")
@click.argument("path", type=click.Path(exists=True))
@click.argument("formula")
def eval_cmd(path: str, formula: str) -> None:
    """Evaluate FORMULA against the sheet at PATH."""
    from sheetcalc.display import format_result

    svc = _open(path)
    result = svc.evaluate(formula)
    click.echo(format_result(result["result"], default_symbol=svc.config["currency_symbol"]))


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("-o", "--output", default=None, type=click.Path(), help="Write to a file instead of stdout.")
@click.option("--delimiter", default=None, help="Field delimiter (default from config).")
def export(path: str, output: str | None, delimiter: str | None) -> None:
    """Export computed values of the sheet at PATH as delimited text."""
    svc = _open(path)
    try:
        text = svc.export_delimited(delimiter)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    if output is None:
        click.echo(text)
        return
    Path(output).write_text(text + "\n", encoding="utf-8")
    click.echo(f"Exported to {output}")


# ---------------------------------------------------------------------------
# Structural edits
# ---------------------------------------------------------------------------


def _apply(path: str, op, *args) -> None:
    svc = _open(path)
    try:
        result = op(svc, *args)
    except ValueError as exc:
        raise click.ClickException(str(exc))
    svc.save()
    click.echo(f"{result['n_rows']} rows x {result['n_cols']} columns")


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.argument("column")
@click.option("--desc", is_flag=True, help="Sort descending.")
def sort(path: str, column: str, desc: bool) -> None:
    """Sort rows below the frozen rows by COLUMN (letter or 0-based index)."""
    _apply(path, lambda svc: svc.sort(column, not desc))


@main.command("insert-row")
@click.argument("path", type=click.Path(exists=True))
@click.argument("row", type=int)
def insert_row(path: str, row: int) -> None:
    """Insert an empty row before 1-based ROW."""
    _apply(path, lambda svc: svc.insert_row(row - 1))


@main.command("delete-row")
@click.argument("path", type=click.Path(exists=True))
@click.argument("row", type=int)
def delete_row(path: str, row: int) -> None:
    """Delete 1-based ROW."""
    _apply(path, lambda svc: svc.delete_row(row - 1))


@main.command("insert-col")
@click.argument("path", type=click.Path(exists=True))
@click.argument("column")
def insert_col(path: str, column: str) -> None:
    """Insert an empty column before COLUMN."""
    _apply(path, lambda svc: svc.insert_col(_column(column)))


@main.command("delete-col")
@click.argument("path", type=click.Path(exists=True))
@click.argument("column")
def delete_col(path: str, column: str) -> None:
    """Delete COLUMN."""
    _apply(path, lambda svc: svc.delete_col(_column(column)))


@main.command("resize-col")
@click.argument("path", type=click.Path(exists=True))
@click.argument("column")
@click.argument("width", type=int)
def resize_col(path: str, column: str, width: int) -> None:
    """Set the width of COLUMN (clamped to the minimum width)."""
    _apply(path, lambda svc: svc.resize_col(_column(column), width))


@main.command()
@click.argument("path", type=click.Path(exists=True))
@click.option("--rows", type=int, default=None, help="Number of frozen header rows.")
@click.option("--columns", type=int, default=None, help="Number of frozen leading columns.")
def freeze(path: str, rows: int | None, columns: int | None) -> None:
    """Change the frozen row/column boundaries."""
    if rows is None and columns is None:
        raise click.ClickException("Give --rows and/or --columns")
    _apply(path, lambda svc: svc.freeze(rows, columns))


def _column(label: str) -> int:
    from sheetcalc.ui.service import parse_column

    try:
        return parse_column(label)
    except ValueError as exc:
        raise click.ClickException(str(exc))


# ---------------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------------


@main.command()
@click.argument("path", type=click.Path())
@click.option("--host", default="127.0.0.1", help="Host to bind to.")
@click.option("--port", type=int, default=None, help="Port (auto-select if omitted).")
def ui(path: str, host: str, port: int | None) -> None:
    """Serve the local HTTP API for the sheet at PATH."""
    import socket

    import uvicorn

    from sheetcalc.ui.server import create_app

    try:
        app = create_app(Path(path))
    except ValueError as exc:
        raise click.ClickException(str(exc))

    if port is None:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            port = s.getsockname()[1]

    click.echo(f"Serving API at http://{host}:{port}/api/sheet")
    click.echo("Press Ctrl+C to stop")

    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    except KeyboardInterrupt:
        click.echo("\nStopped.")


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@main.command("events")
@click.argument("directory", type=click.Path(exists=True))
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
def events_cmd(directory: str, level: str | None, event_type: str | None, limit: int) -> None:
    """Show the structured event log kept in DIRECTORY."""
    from sheetcalc.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_global(level=level, event_type=event_type, limit=limit)

    if not events:
        click.echo("No events found.")
        return

    for evt in events:
        ts = evt.get("ts", "")
        lvl = evt.get("level", "").upper()
        etype = evt.get("event_type", "")
        msg = evt.get("message", "")
        err = evt.get("error_code")
        line = f"[{ts}] {lvl:7s} {etype}: {msg}"
        if err:
            line += f"  ({err})"
        click.echo(line)
