#!/usr/bin/env python3
"""
Netmagis Client - Demo Script

This script demonstrates the Netmagis client against an in-memory Netmagis
served through the mock transport, so nothing leaves the machine.
"""

import csv
import os

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from netmagis_client.core.client import NetmagisClient
from netmagis_client.core.exceptions import NetmagisError
from netmagis_client.core.importer import HostImporter
from netmagis_client.core.models import HostOptions
from netmagis_client.parsers.csv import CSVParser
from netmagis_client.providers.fake_netmagis import FakeNetmagis
from netmagis_client.providers.mock_provider import MockTransport

console = Console()

BASE_URL = "https://netmagis.example.com/netmagis"


def create_demo_csv():
    """Create a demo CSV file with sample hosts."""
    csv_file = "demo_hosts.csv"

    records = [
        ["FQDN", "IP", "Comment"],
        ["web1.example.com", "192.0.2.10", "frontend"],
        ["web2.example.com", "192.0.2.11", "frontend"],
        ["db1.example.com", "192.0.2.20", "database"],
        ["not a host", "192.0.2.30", "skipped"],
    ]

    with open(csv_file, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerows(records)

    return csv_file


def display_hosts(server):
    """Display the hosts known by the in-memory Netmagis."""
    table = Table(title="Hosts in Netmagis")
    table.add_column("FQDN", style="cyan")
    table.add_column("Addresses", style="magenta")
    table.add_column("Comment", style="green")
    table.add_column("Aliases", style="yellow")

    for fqdn, host in sorted(server.hosts.items()):
        aliases = [a for a, target in server.aliases.items() if target == fqdn]
        table.add_row(
            fqdn,
            ", ".join(host["addresses"]),
            host["options"].comment,
            ", ".join(sorted(aliases)),
        )

    console.print(table)
    console.print()


def main():
    """Main demo function."""
    console.print(
        Panel.fit(
            "[bold blue]Netmagis Client - Demo[/bold blue]\n"
            "[cyan]Host management through the Netmagis web forms[/cyan]",
            border_style="blue",
        )
    )

    server = FakeNetmagis(BASE_URL)
    server.add_host("gw.example.com", "192.0.2.1", HostOptions(comment="gateway"))
    csv_file = create_demo_csv()

    try:
        console.print("[blue]Logging in through CAS...[/blue]")
        client = NetmagisClient(
            BASE_URL, "jdoe", "secret", transport=MockTransport(responder=server)
        )
        console.print("[green]✓ Authenticated[/green]\n")
        display_hosts(server)

        console.print("[bold]Importing hosts from CSV...[/bold]")
        HostImporter(client).process_records(CSVParser(csv_file).parse())
        console.print()

        console.print("[bold]Adding alias www.example.com -> web1.example.com[/bold]")
        client.create_alias("www.example.com", "web1.example.com")

        record = client.search("www.example.com")
        console.print(
            f"www.example.com resolves to [cyan]{record.fqdn}[/cyan] "
            f"({record.ip_address}), alias: {record.is_alias}\n"
        )

        host = client.get_host("db1.example.com")
        host.options.smtp_allowed = True
        client.update_host(host.fqdn, host.record_id, host.options)
        console.print("[green]✓ db1.example.com may now emit SMTP[/green]\n")

        client.delete_host("web2.example.com")
        console.print("[green]✓ web2.example.com removed[/green]\n")

        display_hosts(server)

    except NetmagisError as e:
        console.print(f"[red]Demo failed with error: {e}[/red]")

    finally:
        if os.path.exists(csv_file):
            os.remove(csv_file)
        console.print("[bold blue]Demo completed![/bold blue]")


if __name__ == "__main__":
    main()
