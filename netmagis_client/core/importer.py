"""
Host importer - bulk declaration of hosts read from CSV

Hosts already known by Netmagis are left untouched, so an import can be
replayed safely.
"""

import logging
from typing import Dict, List

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .client import NetmagisClient
from .exceptions import NetmagisError
from .models import HostOptions

console = Console()
logger = logging.getLogger(__name__)


class HostImporter:
    """Declares a batch of hosts through a Netmagis client."""

    def __init__(self, client: NetmagisClient):
        self.client = client

    def analyze_changes(self, records: List[Dict[str, str]]) -> Dict:
        """
        Split records into hosts to create and hosts already declared.

        Args:
            records: dicts with ``fqdn``, ``ip`` and ``comment`` keys

        Returns:
            Dictionary with ``creates``, ``existing`` and ``total_changes``
        """
        creates = []
        existing = []
        for record in records:
            if self.client.get_host(record["fqdn"]) is None:
                creates.append(record)
                logger.info(f"Create needed: {record['fqdn']} -> {record['ip']}")
            else:
                existing.append(record)
                logger.info(f"Already declared: {record['fqdn']}")

        return {
            "creates": creates,
            "existing": existing,
            "total_changes": len(creates),
        }

    def process_records(self, records: List[Dict[str, str]], dry_run: bool = False) -> bool:
        """Declare missing hosts; returns True when every creation succeeded."""
        if not records:
            console.print("[red]No valid records to import[/red]")
            return False

        changes = self.analyze_changes(records)
        self._display_changes_summary(changes)

        if dry_run:
            console.print("[yellow]DRY RUN MODE - No changes will be applied[/yellow]")
            return True

        if changes["total_changes"] == 0:
            console.print("[green]No changes required - all hosts are declared[/green]")
            return True

        return self._apply_changes(changes)

    def _display_changes_summary(self, changes: Dict):
        table = Table(title="Netmagis Import Summary")
        table.add_column("Operation", style="cyan")
        table.add_column("Count", style="magenta")
        table.add_column("Details", style="white")

        if changes["creates"]:
            table.add_row(
                "Create",
                str(len(changes["creates"])),
                ", ".join(r["fqdn"] for r in changes["creates"]),
            )
        if changes["existing"]:
            table.add_row(
                "Already declared",
                str(len(changes["existing"])),
                ", ".join(r["fqdn"] for r in changes["existing"]),
            )

        console.print(table)
        console.print(f"\n[bold]Total changes: {changes['total_changes']}[/bold]")

    def _apply_changes(self, changes: Dict) -> bool:
        success_count = 0
        total_changes = changes["total_changes"]

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Declaring hosts...", total=total_changes)

            for record in changes["creates"]:
                try:
                    self.client.create_host(
                        record["fqdn"],
                        record["ip"],
                        HostOptions(comment=record.get("comment", "")),
                        # absence already checked by analyze_changes
                        allow_multiple=True,
                    )
                    success_count += 1
                except NetmagisError as e:
                    logger.error(f"Failed to create host {record['fqdn']}: {e}")
                    console.print(f"[red]Failed to create {record['fqdn']}: {e}[/red]")
                progress.update(task, advance=1)

        console.print(
            f"[blue]Successfully applied {success_count}/{total_changes} changes[/blue]"
        )
        return success_count == total_changes
