"""Config command - Configuration management."""

import typer
from rich.console import Console
from rich.table import Table

from taskrelay.application.config_loader import ConfigLoader
from taskrelay.core.domain.errors import ConfigError

app = typer.Typer(help="Configuration management")
console = Console()


@app.command("list")
def list_profiles():
    """List available configuration profiles."""
    config_dir = ConfigLoader().config_dir

    if not config_dir.exists():
        console.print(f"[red]Configuration directory not found: {config_dir}[/red]")
        raise typer.Exit(1)

    profiles = [p for p in sorted(config_dir.glob("*.yaml")) if p.stem != "llm_config"]
    if not profiles:
        console.print("[yellow]No configuration profiles found[/yellow]")
        return

    table = Table(title="Configuration Profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("Path", style="white")

    for profile_path in profiles:
        table.add_row(profile_path.stem, str(profile_path))

    console.print(table)


@app.command("show")
def show_profile(
    ctx: typer.Context,
    profile: str | None = typer.Argument(None, help="Profile name (defaults to --profile)"),
):
    """Show the effective configuration of a profile (defaults and env applied)."""
    profile = profile or (ctx.obj or {}).get("profile", "dev")
    loader = ConfigLoader()

    try:
        config = loader.load(profile)
    except ConfigError as e:
        console.print(f"[red]Configuration error:[/red] {e.message}")
        raise typer.Exit(1) from e

    console.print(f"\n[bold]Profile:[/bold] {profile}")
    console.print(f"[bold]Directory:[/bold] {loader.config_dir}\n")
    console.print_json(data=config.model_dump())
