"""Configuration commands for OmniTrade CLI."""

import click
from rich.console import Console
from rich.panel import Panel

from omnitrade import paths

console = Console()


@click.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file.")
def init(force: bool) -> None:
    """Write a template configuration file.

    \b
    Examples:
      omnitrade init
      omnitrade init --force
    """
    from omnitrade.config import write_template_config

    config_path = paths.config_file()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        console.print("[dim]Use --force to overwrite it.[/dim]")
        return

    write_template_config(config_path)
    console.print(Panel(
        f"[bold green]Configuration template created[/bold green]\n\n"
        f"Location: {config_path}\n\n"
        "[bold]Next steps:[/bold]\n"
        "  1. Add exchanges under [exchanges.<name>]\n"
        "  2. Enable notification channels under [notifications]\n"
        "  3. Run 'omnitrade notify verify' to check them",
        title="[bold]Setup[/bold]",
        border_style="green",
    ))
