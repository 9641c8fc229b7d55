"""Rendering helpers shared by CLI commands."""

from __future__ import annotations

import json
import logging
import sys

import structlog
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from taskrelay.core.domain.events import ProgressEvent
from taskrelay.core.domain.models import StepResult

_EVENT_STYLES = {
    "started": "dim",
    "succeeded": "green",
    "failed": "red",
    "confirmation_required": "yellow",
}


def configure_logging(debug: bool, level: str = "WARNING") -> None:
    """Configure stdlib logging and structlog for CLI runs.

    Log lines go to stderr so ``--json`` output on stdout stays parseable.
    """
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, format="%(message)s", stream=sys.stderr)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def results_to_json(results: list[StepResult]) -> str:
    return json.dumps([result.to_dict() for result in results], ensure_ascii=False, default=str)


def _status(result: StepResult) -> str:
    if result.requires_confirmation:
        return "[yellow]needs confirmation[/yellow]"
    if result.success:
        return "[green]duplicate[/green]" if result.duplicate else "[green]ok[/green]"
    return "[red]failed[/red]"


def _detail(result: StepResult) -> str:
    return escape(_detail_text(result))


def _detail_text(result: StepResult) -> str:
    if result.requires_confirmation and result.confirmation_payload is not None:
        payload = result.confirmation_payload
        args = json.dumps(payload.proposed_arguments, ensure_ascii=False, default=str)
        return f"{payload.human_summary}\n{args}"
    if result.error is not None:
        return f"[{result.error.category.value}] {result.error.user_facing_detail}"
    if isinstance(result.output, str):
        return result.output
    return json.dumps(result.output, ensure_ascii=False, default=str)


def print_results(console: Console, results: list[StepResult]) -> None:
    """Print step results as a table."""
    table = Table(title="Step Results")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Capability", style="cyan")
    table.add_column("Phase", style="magenta")
    table.add_column("Status")
    table.add_column("Details", style="white", overflow="fold")

    for index, result in enumerate(results, start=1):
        table.add_row(
            str(index),
            escape(result.capability_name),
            result.phase.value if result.phase else "",
            _status(result),
            _detail(result),
        )
    console.print(table)


def progress_printer(console: Console):
    """Build a progress listener that prints lifecycle events."""

    def _print(event: ProgressEvent) -> None:
        style = _EVENT_STYLES.get(event.event_type.value, "white")
        step = f" (step {event.ordinal})" if event.ordinal is not None else ""
        console.print(
            f"[{style}]{event.event_type.value}[/{style}] {event.capability_name}{step}"
        )

    return _print
