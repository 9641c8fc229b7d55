"""Run command - Execute an execution plan file."""

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console

from taskrelay.api.cli.output import (
    configure_logging,
    print_results,
    progress_printer,
    results_to_json,
)
from taskrelay.application.config_loader import ConfigLoader
from taskrelay.application.factory import EngineFactory
from taskrelay.core.domain.errors import ConfigError, PlanValidationError
from taskrelay.core.domain.models import ExecutionPlan, StepResult
from taskrelay.infrastructure.collaborators.scripted_extractor import ScriptedArgumentExtractor

console = Console()


def load_plan_file(path: Path) -> dict[str, Any]:
    """Read a plan from a JSON or YAML file."""
    text = path.read_text(encoding="utf-8")
    data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    if not isinstance(data, dict):
        raise PlanValidationError(f"Plan file must contain an object: {path}")
    return data


def build_factory(ctx: typer.Context) -> EngineFactory:
    """Load the global profile and configure logging, exiting on config errors."""
    global_opts = ctx.obj or {}
    profile = global_opts.get("profile", "dev")
    debug = global_opts.get("debug", False)

    # Quiet until the profile's own level is known
    configure_logging(debug)
    try:
        config = ConfigLoader().load(profile)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        if e.details:
            console.print_json(data=e.details)
        raise typer.Exit(1) from e

    configure_logging(debug, config.logging.level)
    return EngineFactory(config)


def run_plan(
    ctx: typer.Context,
    plan_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="Plan file (JSON or YAML)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Print raw JSON results"),
    session_id: str = typer.Option("default", "--session", "-s", help="Session id"),
    context: str = typer.Option("", "--context", "-c", help="Extra context (e.g. selected text)"),
):
    """Execute a plan file against the configured capability server.

    Tasks may carry an ``arguments`` object, which is used instead of
    argument extraction.

    Examples:
        taskrelay run plan.yaml
        taskrelay --profile prod run plan.json --json
    """
    factory = build_factory(ctx)

    try:
        data = load_plan_file(plan_file)
        plan = ExecutionPlan.from_dict(data)
    except (PlanValidationError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid plan:[/red] {e}")
        raise typer.Exit(1) from e

    if context and not plan.context:
        plan.context = context

    listeners = [] if json_output else [progress_printer(console)]
    orchestrator = factory.create_orchestrator(
        extractor=ScriptedArgumentExtractor.from_plan_dict(data),
        listeners=listeners,
    )

    async def _execute() -> list[StepResult]:
        progress = orchestrator.executor.progress
        try:
            results = await orchestrator.run(plan, session_id=session_id)
            await progress.drain()
        finally:
            progress.close()
        return results

    results = asyncio.run(_execute())

    if json_output:
        typer.echo(results_to_json(results))
    else:
        print_results(console, results)

    if any(result.error is not None for result in results):
        raise typer.Exit(2)
