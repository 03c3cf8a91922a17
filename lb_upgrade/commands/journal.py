"""Journal command for inspecting what a migration run did."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config_manager import JournalConfig
from ..exceptions import ConfigurationError
from ..services.migration_journal import JournalStatus, MigrationJournal
from .base import build_migration_context, exit_with_error

console = Console()

STATUS_STYLES = {
    JournalStatus.STARTED: "dim",
    JournalStatus.COMPLETED: "green",
    JournalStatus.FAILED: "red",
    JournalStatus.WARNING: "yellow",
}


@click.command("journal")
@click.option("--old-rg-name", help="Resource group of the Basic load balancer")
@click.option("--old-lb-name", help="Name of the Basic load balancer")
@click.option("--new-lb-name", help="Name of the Standard load balancer")
@click.option("--journal-dir", help="Directory holding migration journals")
@click.option(
    "--all",
    "show_all",
    is_flag=True,
    help="Include 'started' entries",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def journal(
    old_rg_name: Optional[str],
    old_lb_name: Optional[str],
    new_lb_name: Optional[str],
    journal_dir: Optional[str],
    show_all: bool,
    output_json: bool,
) -> None:
    """Show the recorded steps of a migration.

    Examples:
        azure-lb-upgrade journal --old-rg-name rg1 --old-lb-name lb1 --new-lb-name lb2
    """
    try:
        context = build_migration_context(
            subscription_id="",
            old_rg_name=old_rg_name,
            old_lb_name=old_lb_name,
            new_lb_name=new_lb_name,
        )
    except ConfigurationError as e:
        exit_with_error(str(e))
        return

    journal_config = JournalConfig(directory=Path(journal_dir)) if journal_dir else JournalConfig()
    migration_journal = MigrationJournal(journal_config.path_for(context.journal_name))
    if not migration_journal.path.exists():
        exit_with_error(f"No journal found at {migration_journal.path}")
        return

    entries = migration_journal.entries()
    if not show_all:
        entries = [e for e in entries if e.status != JournalStatus.STARTED]

    if output_json:
        click.echo(json.dumps([vars(e) for e in entries], indent=2, default=str))
        return

    table = Table(title=f"Migration journal: {context.journal_name}")
    table.add_column("Time", style="cyan")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Resource")
    table.add_column("Error", style="dim")

    for entry in entries:
        style = STATUS_STYLES.get(entry.status, "")
        error = entry.details.get("error")
        if isinstance(error, dict):
            error = error.get("message")
        table.add_row(
            datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S"),
            entry.step,
            f"[{style}]{entry.status}[/{style}]" if style else entry.status,
            escape(entry.resource or ""),
            escape(str(error or "")),
        )

    console.print(table)

    try:
        migration_journal.verify_integrity()
        console.print("✅ Journal integrity verified")
    except ValueError as e:
        console.print(f"[red]❌ Journal integrity check failed: {escape(str(e))}[/red]")

    failure = migration_journal.last_failure()
    if failure:
        console.print(
            f"\n💡 Last failure: {failure.step} on {failure.resource or 'n/a'}. "
            "Steps above it completed and were not rolled back."
        )
