"""Alert management commands for OmniTrade CLI.

Handles creating, listing and removing price alerts. The background
daemon picks up new alerts on its next poll.
"""

from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from omnitrade.models import PriceAlert

console = Console()


def _get_alert_store():
    """Get the alert store instance."""
    from omnitrade import paths
    from omnitrade.db.store import AlertStore

    return AlertStore(paths.alerts_file())


def describe_alert(alert: PriceAlert) -> str:
    """One-line description, e.g. 'BTC/USDT below $50,000.00'."""
    return f"{alert.symbol} {alert.condition} ${alert.target_price:,.2f}"


@click.command("alert")
@click.argument("symbol")
@click.argument("condition", type=click.Choice(["above", "below"], case_sensitive=False))
@click.argument("price", type=float)
@click.option(
    "--exchange", "-e",
    default=None,
    help="Only check this exchange (default: every configured exchange).",
)
def create_alert(symbol: str, condition: str, price: float, exchange: Optional[str]) -> None:
    """Create a price alert.

    SYMBOL is the trading pair (e.g., BTC/USDT).
    CONDITION is 'above' or 'below'; both include the target price itself.
    PRICE is the target price.

    \b
    Examples:
      omnitrade alert BTC/USDT below 50000
      omnitrade alert ETH/USDT above 4000 --exchange binance
    """
    if price <= 0:
        console.print("[red]Target price must be positive[/red]")
        raise SystemExit(1)

    try:
        store = _get_alert_store()

        alert = PriceAlert(
            symbol=symbol.upper(),
            exchange=exchange.lower() if exchange else None,
            condition=condition.lower(),
            target_price=price,
        )
        store.add_alert(alert)

        console.print(Panel(
            f"[bold green]Alert Created[/bold green]\n\n"
            f"ID:        {alert.id}\n"
            f"Symbol:    {alert.symbol}\n"
            f"Condition: {alert.condition} ${alert.target_price:,.2f}\n"
            f"Exchange:  {alert.exchange or 'any configured'}",
            title="[bold]New Alert[/bold]",
            border_style="green",
        ))

    except Exception as e:
        console.print(Panel(
            f"[red]Failed to create alert:[/red]\n\n{str(e)}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)


@click.command("alerts")
@click.option(
    "--remove", "remove_id",
    default=None,
    help="Remove alert with specified ID.",
)
@click.option(
    "--all", "show_all",
    is_flag=True,
    help="Include triggered alerts.",
)
def list_alerts(remove_id: Optional[str], show_all: bool) -> None:
    """Display or manage alerts.

    Shows active alerts. Use --all to include triggered ones and
    --remove ID to delete an alert.

    \b
    Examples:
      omnitrade alerts                  # List active alerts
      omnitrade alerts --all            # Include triggered alerts
      omnitrade alerts --remove 1a2b3c4d
    """
    try:
        store = _get_alert_store()

        if remove_id is not None:
            alert = store.load_all().get(remove_id)
            if alert is None:
                console.print(f"[yellow]Alert with ID {remove_id} not found[/yellow]")
                return

            store.remove_alert(remove_id)
            console.print(f"[green]✓ Removed alert {remove_id} ({describe_alert(alert)})[/green]")
            return

        document = store.load_all()
        alerts = document.alerts if show_all else store.active_alerts(document)

        if not alerts:
            console.print(Panel(
                "[dim]No alerts set. Use 'omnitrade alert SYMBOL above|below PRICE' to create one.[/dim]",
                title="[bold]Alerts[/bold]",
                border_style="dim",
            ))
            return

        table = Table(
            title="Price Alerts" if show_all else "Active Alerts",
            show_header=True,
            header_style="bold cyan",
        )

        table.add_column("ID", style="dim", width=10)
        table.add_column("Symbol", style="bold")
        table.add_column("Condition")
        table.add_column("Exchange")
        table.add_column("Created", style="dim")
        table.add_column("Status", justify="center")

        for alert in alerts:
            if alert.triggered:
                when = alert.triggered_at.strftime("%Y-%m-%d %H:%M") if alert.triggered_at else ""
                status = f"[yellow]✓ Triggered {when}[/yellow]"
            else:
                status = "[green]●[/green]"

            table.add_row(
                alert.id,
                alert.symbol,
                f"{alert.condition} ${alert.target_price:,.2f}",
                alert.exchange or "any",
                alert.created_at.strftime("%Y-%m-%d %H:%M"),
                status,
            )

        console.print(table)
        console.print(f"\n[dim]Total: {len(alerts)} alerts[/dim]")
        console.print("[dim]Use 'omnitrade alerts --remove ID' to delete an alert[/dim]")

    except Exception as e:
        console.print(Panel(
            f"[red]Failed to list alerts:[/red]\n\n{str(e)}",
            title="[bold red]Error[/bold red]",
            border_style="red",
        ))
        raise SystemExit(1)
