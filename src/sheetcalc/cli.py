"""Command-line interface for sheetcalc."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from sheetcalc import __version__
from sheetcalc.formulas import EvaluationResult, FormulaEvaluator, SheetLoadError
from sheetcalc.project import DEFAULT_CONFIG, load_project_config


@click.group()
@click.version_option(version=__version__, prog_name="sheetcalc")
def main() -> None:
    """sheetcalc -- evaluate tokenized spreadsheet formulas.

    Tokens are passed as separate arguments; put ``--`` before them so a
    leading ``-`` is not read as an option.
    """


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------


def _load_config(directory: str | None) -> dict[str, Any]:
    """Load project config and attach the event log when a project is given."""
    if directory is None:
        return dict(DEFAULT_CONFIG)
    from sheetcalc.logging import set_project_dir

    project_dir = Path(directory)
    try:
        config = load_project_config(project_dir)
    except SheetLoadError as e:
        raise click.ClickException(str(e))
    set_project_dir(project_dir)
    return config


def _load_memory(sheet: str | None, config: dict[str, Any]):
    from sheetcalc.sheet_memory import SheetMemory, load_sheet

    if sheet is None:
        return SheetMemory(columns=config["sheet_columns"], rows=config["sheet_rows"])
    try:
        return load_sheet(Path(sheet))
    except SheetLoadError as e:
        raise click.ClickException(str(e))


def _report(outcome: EvaluationResult, as_json: bool) -> None:
    if as_json:
        payload = {
            "value": outcome.value,
            "error": outcome.error.value if outcome.error else None,
            "display": outcome.display(),
        }
        click.echo(json.dumps(payload, indent=2))
    elif outcome.ok:
        click.echo(outcome.display())
    else:
        click.echo(f"{outcome.display()} ({outcome.error.value})")
    if not outcome.ok:
        sys.exit(1)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------


@main.command("eval")
@click.argument("tokens", nargs=-1)
@click.option("--sheet", default=None, type=click.Path(exists=True), help="YAML sheet document providing referenced cells.")
@click.option("--project", "directory", default=None, type=click.Path(exists=True), help="Project directory (config + event log).")
@click.option("--lenient", is_flag=True, help="Tolerate a ')' with no matching '('.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def eval_cmd(
    tokens: tuple[str, ...],
    sheet: str | None,
    directory: str | None,
    lenient: bool,
    as_json: bool,
) -> None:
    """Evaluate the formula given as TOKENS."""
    config = _load_config(directory)
    memory = _load_memory(sheet, config)
    evaluator = FormulaEvaluator(
        memory,
        strict_parentheses=bool(config["strict_parentheses"]) and not lenient,
    )
    _report(evaluator.evaluate(tokens), as_json)


@main.command("cell")
@click.argument("label")
@click.option("--sheet", required=True, type=click.Path(exists=True), help="YAML sheet document.")
@click.option("--project", "directory", default=None, type=click.Path(exists=True), help="Project directory (config + event log).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def cell_cmd(label: str, sheet: str, directory: str | None, as_json: bool) -> None:
    """Evaluate the formula stored at LABEL in a sheet document."""
    from sheetcalc.formulas import CellLabelError

    config = _load_config(directory)
    memory = _load_memory(sheet, config)
    evaluator = FormulaEvaluator(memory, strict_parentheses=bool(config["strict_parentheses"]))
    try:
        outcome = memory.evaluate_cell(label.upper(), evaluator)
    except CellLabelError as e:
        raise click.ClickException(str(e))
    _report(outcome, as_json)


# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------


@main.command("logs")
@click.option("--project", "directory", required=True, type=click.Path(exists=True), help="Project directory.")
@click.option("--level", default=None, type=click.Choice(["info", "warning", "error"]), help="Filter by level.")
@click.option("--type", "event_type", default=None, help="Filter by event type.")
@click.option("--limit", default=100, type=int, help="Maximum events to show.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def logs_cmd(
    directory: str,
    level: str | None,
    event_type: str | None,
    limit: int,
    as_json: bool,
) -> None:
    """Show the structured event log of a project, newest first."""
    from sheetcalc.logging.sink import EventSink

    sink = EventSink(Path(directory))
    events = sink.read_events(level=level, event_type=event_type, limit=limit)

    if as_json:
        click.echo(json.dumps(events, indent=2, default=str))
        return
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
