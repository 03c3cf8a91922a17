#!/usr/bin/env python3
"""
Command-line interface for the Azure Load Balancer upgrade tool.

Upgrades a Basic SKU public load balancer to a new Standard SKU load balancer
while keeping the public IP addresses of its frontends.
"""

import click

from . import __version__
from .commands.journal import journal
from .commands.migrate import migrate


def show_help(ctx: click.Context) -> None:
    click.echo(ctx.get_help())
    click.echo()
    click.echo("🚀 Common Usage Examples:")
    click.echo()
    click.echo("  # Preview a migration")
    click.echo(
        "  azure-lb-upgrade migrate --old-rg-name rg1 --old-lb-name lb1 --new-lb-name lb2 --dry-run"
    )
    click.echo()
    click.echo("  # Migrate into another resource group and keep the default resources")
    click.echo(
        "  azure-lb-upgrade migrate --old-rg-name rg1 --old-lb-name lb1 --new-lb-name lb2 "
        "--new-rg-name rg2 --no-cleanup"
    )
    click.echo()
    click.echo("  # Inspect what a migration did")
    click.echo(
        "  azure-lb-upgrade journal --old-rg-name rg1 --old-lb-name lb1 --new-lb-name lb2"
    )


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    default="INFO",
    help="Logging level (DEBUG, INFO, WARNING, ERROR)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug output including the configuration summary",
)
@click.version_option(__version__, prog_name="azure-lb-upgrade")
@click.pass_context
def cli(ctx: click.Context, log_level: str, debug: bool) -> None:
    """Azure Load Balancer upgrade - move a Basic public load balancer to Standard."""
    ctx.ensure_object(dict)
    ctx.obj["log_level"] = "DEBUG" if debug else log_level.upper()
    ctx.obj["debug"] = debug

    if ctx.invoked_subcommand is None:
        show_help(ctx)


cli.add_command(migrate, "migrate")
cli.add_command(journal, "journal")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
