"""Taskrelay CLI entry point."""

import typer
from rich.console import Console

from taskrelay.api.cli.commands import approve, config, run

app = typer.Typer(
    name="taskrelay",
    help="Taskrelay - Multi-step capability orchestration engine",
    add_completion=True,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.command("run", help="Execute an execution plan file")(run.run_plan)
app.command("approve", help="Approve a pending confirmation")(approve.approve_action)
app.command("deny", help="Cancel a pending confirmation")(approve.deny_action)
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main(
    ctx: typer.Context,
    profile: str = typer.Option("dev", "--profile", "-p", help="Configuration profile"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """Taskrelay CLI."""
    # Store global options in context for subcommands
    ctx.obj = {"profile": profile, "debug": debug}


@app.command()
def version():
    """Show Taskrelay version."""
    from taskrelay import __version__

    console.print(f"[bold blue]Version:[/bold blue] [cyan]{__version__}[/cyan]")


if __name__ == "__main__":
    app()
