"""Background daemon commands for OmniTrade CLI.

Starts, stops and inspects the detached process that watches prices and
fires alert notifications.
"""

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()


def _get_controller():
    """Build a controller for the standard file locations."""
    from omnitrade import paths
    from omnitrade.config import load_config_or_default
    from omnitrade.daemon import DaemonController, ProcessRegistry

    config = load_config_or_default()
    registry = ProcessRegistry(paths.pid_file(), paths.started_file())
    return DaemonController(registry, config.daemon.resolved_log_file())


@click.group()
def daemon() -> None:
    """Manage the background alert daemon.

    \b
    Examples:
      omnitrade daemon start    # Start watching prices
      omnitrade daemon status   # Show uptime and recent activity
      omnitrade daemon stop     # Stop the daemon
    """
    pass


@daemon.command("start")
def start_daemon() -> None:
    """Start the daemon in the background."""
    controller = _get_controller()
    result = controller.start()

    if result.success:
        console.print(f"[green]✓ {result.message}[/green]")
        console.print(f"[dim]Log: {controller.log_file}[/dim]")
        return

    if result.state == "running":
        console.print(f"[yellow]{result.message}[/yellow]")
        console.print("[dim]Use 'omnitrade daemon stop' first to restart it.[/dim]")
        return

    console.print(Panel(
        f"[red]{result.message}[/red]",
        title="[bold red]Error[/bold red]",
        border_style="red",
    ))
    raise SystemExit(1)


@daemon.command("stop")
def stop_daemon() -> None:
    """Stop the daemon."""
    result = _get_controller().stop()

    if result.state == "running":
        console.print(f"[red]✗ {result.message}[/red]")
        raise SystemExit(1)

    style = "green" if result.success else "yellow"
    console.print(f"[{style}]{result.message}[/{style}]")


@daemon.command("status")
def daemon_status() -> None:
    """Show whether the daemon is running."""
    from omnitrade.daemon import format_uptime

    controller = _get_controller()
    status = controller.status()

    if status.state == "not_running":
        console.print("[yellow]● Daemon is not running[/yellow]")
        console.print("[dim]Use 'omnitrade daemon start' to start it.[/dim]")
        return

    if status.state == "stale":
        console.print(f"[yellow]● Daemon is not running (removed stale PID {status.pid})[/yellow]")
        return

    lines = [
        "[bold green]● Running[/bold green]\n",
        f"PID:     {status.pid}",
        f"Uptime:  {format_uptime(status.uptime_seconds or 0)}",
        f"Log:     {controller.log_file}",
    ]
    if status.log_tail:
        lines.append("\n[bold]Recent activity:[/bold]")
        lines.extend(f"[dim]{escape(line)}[/dim]" for line in status.log_tail)

    console.print(Panel(
        "\n".join(lines),
        title="[bold]OmniTrade Daemon[/bold]",
        border_style="green",
    ))


@daemon.command("run", hidden=True)
def run_daemon_command() -> None:
    """Run the daemon in the foreground (used by 'daemon start')."""
    from omnitrade.daemon.runner import run_daemon

    raise SystemExit(run_daemon())
