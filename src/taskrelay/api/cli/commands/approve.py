"""Approve/deny commands - Resume suspended confirmations."""

import asyncio
import json

import typer
from rich.console import Console

from taskrelay.api.cli.commands.run import build_factory
from taskrelay.api.cli.output import print_results, results_to_json
from taskrelay.infrastructure.collaborators.scripted_extractor import ScriptedArgumentExtractor

console = Console()


def approve_action(
    ctx: typer.Context,
    capability: str = typer.Argument(..., help="Capability to invoke"),
    args_json: str = typer.Argument(..., help="Approved arguments as a JSON object"),
    json_output: bool = typer.Option(False, "--json", help="Print raw JSON result"),
    session_id: str = typer.Option("default", "--session", "-s", help="Session id"),
):
    """Invoke a confirmed capability with the (possibly edited) arguments.

    Example:
        taskrelay approve send_imessage '{"contact_name": "Bob", "message": "Hi"}'
    """
    try:
        args = json.loads(args_json)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON arguments:[/red] {e}")
        raise typer.Exit(1) from e
    if not isinstance(args, dict):
        console.print("[red]Arguments must be a JSON object[/red]")
        raise typer.Exit(1)

    factory = build_factory(ctx)
    orchestrator = factory.create_orchestrator(extractor=ScriptedArgumentExtractor())
    result = asyncio.run(orchestrator.approve(capability, args, session_id=session_id))

    if json_output:
        typer.echo(results_to_json([result]))
    else:
        print_results(console, [result])
    if not result.success:
        raise typer.Exit(2)


def deny_action(
    ctx: typer.Context,
    capability: str | None = typer.Argument(
        None, help="Capability whose confirmation is cancelled"
    ),
    session_id: str = typer.Option("default", "--session", "-s", help="Session id"),
):
    """Cancel a pending confirmation."""
    factory = build_factory(ctx)
    orchestrator = factory.create_orchestrator(extractor=ScriptedArgumentExtractor())
    result = asyncio.run(orchestrator.deny(capability, session_id=session_id))
    print_results(console, [result])
