"""Notification channel commands for OmniTrade CLI."""

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

console = Console()


def _load_notification_config():
    from omnitrade.config import ConfigError, load_config

    try:
        return load_config().notifications
    except ConfigError as e:
        console.print(Panel(
            f"[red]{e}[/red]",
            title="[bold red]Configuration Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)


@click.group()
def notify() -> None:
    """Check notification channels.

    \b
    Examples:
      omnitrade notify verify   # Check credentials for enabled channels
      omnitrade notify test     # Send a test notification
    """
    pass


@notify.command("verify")
def verify_channels() -> None:
    """Verify credentials of every enabled channel without sending."""
    from omnitrade.notifications import NotificationError, build_channels

    channels = build_channels(_load_notification_config())
    if not channels:
        console.print("[yellow]No notification channels enabled in config.toml[/yellow]")
        return

    failures = 0
    for channel in channels:
        try:
            identity = channel.verify()
            console.print(f"[green]✓ {channel.name}[/green] [dim]({identity})[/dim]")
        except NotificationError as e:
            failures += 1
            console.print(f"[red]✗ {channel.name}: {escape(str(e))}[/red]")

    if failures:
        raise SystemExit(1)


@notify.command("test")
def send_test() -> None:
    """Send a test notification to every enabled channel."""
    from omnitrade.notifications import dispatch

    outcomes = dispatch(
        _load_notification_config(),
        "OmniTrade Test",
        "If you can read this, notifications are working.",
    )

    if not outcomes:
        console.print("[yellow]No notification channels enabled in config.toml[/yellow]")
        return

    table = Table(title="Notification Test", show_header=True, header_style="bold cyan")
    table.add_column("Channel", style="bold")
    table.add_column("Result", justify="center")
    table.add_column("Error", style="dim")

    for outcome in outcomes:
        result = "[green]✓ Sent[/green]" if outcome.success else "[red]✗ Failed[/red]"
        table.add_row(outcome.channel, result, escape(outcome.error or ""))

    console.print(table)

    if not all(outcome.success for outcome in outcomes):
        raise SystemExit(1)
