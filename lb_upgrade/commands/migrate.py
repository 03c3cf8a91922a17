"""Migrate command.

Upgrades a Basic public load balancer to a new Standard load balancer,
keeping the public IP addresses of its frontends.
"""

import json
from typing import Optional

import click

from ..exceptions import (
    ConfigurationError,
    LoadBalancerUpgradeError,
    PartialMigrationError,
    PreconditionFailedError,
)
from ..migration.orchestrator import MigrationOrchestrator
from ..models.migration import MigrationResult
from ..services.network_client import AzureNetworkClient
from .base import build_migration_context, command_context, exit_with_error


def _print_result(result: MigrationResult) -> None:
    context = result.context
    click.echo("\n" + "=" * 60)
    click.echo(
        f"✅ {context.source_lb_name} migrated to {context.destination_lb_name}"
    )
    click.echo("=" * 60)
    for fe in result.frontends:
        click.echo(
            f"  Frontend {fe.frontend_name}: {fe.public_ip_name} ({fe.ip_address or 'n/a'}) "
            f"-> {context.destination_lb_name}, {context.source_lb_name} now uses {fe.placeholder_ip_name}"
        )
    click.echo(f"  NAT rules: {len(result.nat_rules)}")
    click.echo(f"  Probes: {len(result.probes)}")
    click.echo(f"  Backend pools: {len(result.backend_pools)}")
    click.echo(f"  IP configurations moved: {len(result.moved_ip_configurations)}")
    click.echo(f"  Load-balancing rules: {len(result.rules)}")
    if result.cleaned_up:
        click.echo(f"  Cleaned up: {', '.join(result.cleaned_up)}")
    for warning in result.warnings:
        click.echo(f"  ⚠️  {warning}")
    click.echo(f"  Journal: {result.journal_path}")
    click.echo("\nCompleted!")


@click.command("migrate")
@click.option("--old-rg-name", help="Resource group of the Basic load balancer")
@click.option("--old-lb-name", help="Name of the Basic load balancer")
@click.option("--new-lb-name", help="Name of the Standard load balancer to create")
@click.option(
    "--new-rg-name",
    help="Resource group for the new load balancer (defaults to --old-rg-name)",
)
@click.option(
    "--cleanup/--no-cleanup",
    default=True,
    show_default=True,
    help="Delete the placeholder public IP and default pool created with the new load balancer",
)
@click.option(
    "--subscription-id",
    help="Azure subscription ID (defaults to AZURE_SUBSCRIPTION_ID)",
)
@click.option(
    "--journal-dir",
    help="Directory for migration journals (defaults to LB_UPGRADE_JOURNAL_DIR or .lb-upgrade)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Read and validate the source, print the planned steps, change nothing",
)
@click.option("--json", "output_json", is_flag=True, help="Output the result as JSON")
@click.pass_context
def migrate(
    ctx: click.Context,
    old_rg_name: Optional[str],
    old_lb_name: Optional[str],
    new_lb_name: Optional[str],
    new_rg_name: Optional[str],
    cleanup: bool,
    subscription_id: Optional[str],
    journal_dir: Optional[str],
    dry_run: bool,
    output_json: bool,
) -> None:
    """Upgrade a Basic public load balancer to Standard.

    Example:
        azure-lb-upgrade migrate --old-rg-name rg1 --old-lb-name lb1 --new-lb-name lb2
    """
    cmd_ctx = command_context(ctx)

    try:
        config = cmd_ctx.get_config(
            subscription_id=subscription_id, journal_dir=journal_dir
        )
        context = build_migration_context(
            subscription_id=config.azure.subscription_id,
            old_rg_name=old_rg_name,
            old_lb_name=old_lb_name,
            new_lb_name=new_lb_name,
            new_rg_name=new_rg_name,
            cleanup=cleanup,
        )
        client = AzureNetworkClient.from_config(config)
        orchestrator = MigrationOrchestrator(client, config.journal.directory)

        if dry_run:
            actions = orchestrator.plan(context)
            if output_json:
                click.echo(json.dumps({"dry_run": True, "actions": actions}, indent=2))
                return
            click.echo("🔍 Dry run, no resources will be changed:")
            for i, action in enumerate(actions, 1):
                click.echo(f"  {i:>3}. {action}")
            return

        result = orchestrator.run(context)
        if output_json:
            click.echo(json.dumps(result.to_dict(), indent=2, default=str))
        else:
            _print_result(result)

    except ConfigurationError as e:
        exit_with_error(str(e))
    except PreconditionFailedError as e:
        exit_with_error(f"Prerequisite check failed, nothing was changed: {e.message}")
    except PartialMigrationError as e:
        click.echo(f"\n❌ {e.message}", err=True)
        if e.cause:
            click.echo(f"   Cause: {e.cause}", err=True)
        click.echo(f"   Journal: {e.journal_path}", err=True)
        click.echo(
            "   Both load balancers were left as they are; review the journal "
            "before finishing or undoing the migration.",
            err=True,
        )
        exit_with_error("Migration incomplete")
    except LoadBalancerUpgradeError as e:
        exit_with_error(str(e))
