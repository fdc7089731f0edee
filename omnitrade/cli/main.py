"""Main CLI entry point for OmniTrade.

This module provides the main click group and lazy loading
for command modules to keep startup fast.
"""

import click
from rich.console import Console

# Console for rich output
console = Console()


class LazyGroup(click.Group):
    """A click Group that lazily loads commands.

    Command modules (and the heavy libraries they pull in, such as ccxt)
    are only imported when the command is invoked.
    """

    def __init__(self, *args, lazy_subcommands: dict[str, str] | None = None, **kwargs):
        """Initialize the lazy group.

        Args:
            lazy_subcommands: Mapping of command names to module paths.
        """
        super().__init__(*args, **kwargs)
        self._lazy_subcommands = lazy_subcommands or {}

    def list_commands(self, ctx: click.Context) -> list[str]:
        """List all available commands."""
        base = super().list_commands(ctx)
        lazy = list(self._lazy_subcommands.keys())
        return sorted(set(base + lazy))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        """Get a command by name, lazily loading if needed."""
        if cmd_name in self.commands:
            return self.commands[cmd_name]

        if cmd_name in self._lazy_subcommands:
            return self._lazy_load(cmd_name)

        return None

    def _lazy_load(self, cmd_name: str) -> click.Command:
        """Lazily load a command from its module path."""
        import importlib

        module_path = self._lazy_subcommands[cmd_name]
        module = importlib.import_module(module_path)

        cmd = None
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if isinstance(attr, click.Command) and attr.name == cmd_name:
                cmd = attr
                break

        if cmd is None:
            raise click.ClickException(f"Could not find command '{cmd_name}' in {module_path}")

        self.add_command(cmd)
        return cmd


LAZY_SUBCOMMANDS = {
    "init": "omnitrade.cli.config",
    # Alerts
    "alert": "omnitrade.cli.alerts",
    "alerts": "omnitrade.cli.alerts",
    # Notifications
    "notify": "omnitrade.cli.notify",
    # Background daemon
    "daemon": "omnitrade.cli.daemon",
}


CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


@click.group(cls=LazyGroup, lazy_subcommands=LAZY_SUBCOMMANDS, context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="omnitrade")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """OmniTrade - crypto price alerts across exchanges.

    Create price alerts, configure notification channels and run a
    background daemon that watches prices and notifies you.

    \b
    Quick Start:
      omnitrade init                          # Write a template config
      omnitrade alert BTC/USDT below 50000    # Create an alert
      omnitrade daemon start                  # Start watching prices
    """
    ctx.ensure_object(dict)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
