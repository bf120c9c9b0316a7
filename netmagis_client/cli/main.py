#!/usr/bin/env python3
"""
Netmagis Client - Command Line Interface

Main entry point for the ``netmagis`` command.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..core.client import NetmagisClient
from ..core.exceptions import NetmagisError
from ..core.importer import HostImporter
from ..core.models import HostOptions
from ..parsers.csv import CSVParser
from ..utils.config import get_netmagis_settings, load_config

console = Console()
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Netmagis Client - manage Netmagis hosts from the command line"
    )

    parser.add_argument(
        "--config",
        "-c",
        default="configs/config.yaml",
        help="Configuration file path (default: configs/config.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search a host by FQDN or IP")
    search.add_argument("identifier")

    show = commands.add_parser("show", help="Show the editable fields of a host")
    show.add_argument("fqdn")

    add = commands.add_parser("add", help="Declare a new host")
    add.add_argument("fqdn")
    add.add_argument("ip")
    _add_host_options(add)
    add.add_argument(
        "--multiple",
        action="store_true",
        help="Allow several addresses for the same name (round-robin DNS)",
    )

    update = commands.add_parser("update", help="Modify an existing host")
    update.add_argument("fqdn")
    _add_host_options(update)

    delete = commands.add_parser("delete", help="Remove a host")
    delete.add_argument("fqdn")

    alias = commands.add_parser("alias", help="Add an alias to an existing host")
    alias.add_argument("alias")
    alias.add_argument("target")

    bulk = commands.add_parser("import", help="Declare hosts listed in a CSV file")
    bulk.add_argument("csv", help="CSV file with FQDN, IP and optional Comment columns")
    bulk.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be changed without making changes",
    )

    return parser


def _add_host_options(parser: argparse.ArgumentParser):
    parser.add_argument("--ttl", type=int, help="TTL in seconds (server default if unset)")
    parser.add_argument("--mac", help="MAC address")
    parser.add_argument("--dhcp-profile", type=int, help="DHCP profile id")
    parser.add_argument("--hinfo", help="Machine type (default: PC/Unix)")
    parser.add_argument("--comment")
    parser.add_argument("--owner-name")
    parser.add_argument("--owner-mail")
    parser.add_argument(
        "--smtp", action="store_true", default=None, help="Allow the host to emit SMTP"
    )
    parser.add_argument(
        "--no-smtp", dest="smtp", action="store_false", default=None, help="Forbid SMTP emission"
    )


def options_from_args(args: argparse.Namespace, base: Optional[HostOptions] = None) -> HostOptions:
    """Overlay the options given on the command line on ``base``."""
    options = base or HostOptions()
    overrides = {
        "ttl": args.ttl,
        "mac": args.mac,
        "dhcp_profile_id": args.dhcp_profile,
        "device_type": args.hinfo,
        "comment": args.comment,
        "owner_name": args.owner_name,
        "owner_mail": args.owner_mail,
        "smtp_allowed": args.smtp,
    }
    for attribute, value in overrides.items():
        if value is not None:
            setattr(options, attribute, value)
    return options


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(1)

    try:
        config = load_config(args.config)
        config_logger(config, args.verbose)
        settings = get_netmagis_settings(config)

        with NetmagisClient(
            settings.url, settings.username, settings.password, timeout=settings.timeout
        ) as client:
            success = run_command(client, args)

    except NetmagisError as e:
        console.print(f"[red]Error: {e}[/red]")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)

    sys.exit(0 if success else 1)


def run_command(client: NetmagisClient, args: argparse.Namespace) -> bool:
    """Run the selected sub-command; returns False when it did not succeed."""
    if args.command == "search":
        record = client.search(args.identifier)
        if record is None:
            console.print(f"[yellow]{args.identifier} not found[/yellow]")
            return False
        display_fields(f"Host {record.fqdn}", record_rows(record))

    elif args.command == "show":
        host = client.get_host(args.fqdn)
        if host is None:
            console.print(f"[yellow]{args.fqdn} does not exist[/yellow]")
            return False
        display_fields(f"Host {host.fqdn}", host.fields)

    elif args.command == "add":
        client.create_host(
            args.fqdn, args.ip, options_from_args(args), allow_multiple=args.multiple
        )
        console.print(f"[green]Host {args.fqdn} added[/green]")

    elif args.command == "update":
        host = client.get_host(args.fqdn)
        if host is None:
            console.print(f"[red]{args.fqdn} does not exist[/red]")
            return False
        client.update_host(args.fqdn, host.record_id, options_from_args(args, host.options))
        console.print(f"[green]Host {args.fqdn} updated[/green]")

    elif args.command == "delete":
        client.delete_host(args.fqdn)
        console.print(f"[green]Host {args.fqdn} removed[/green]")

    elif args.command == "alias":
        client.create_alias(args.alias, args.target)
        console.print(f"[green]Alias {args.alias} -> {args.target} added[/green]")

    elif args.command == "import":
        try:
            records = CSVParser(args.csv).parse()
        except (FileNotFoundError, ValueError) as e:
            console.print(f"[red]Error: {e}[/red]")
            return False
        return HostImporter(client).process_records(records, dry_run=args.dry_run)

    return True


def record_rows(record) -> Dict[str, str]:
    rows = {
        "Name": record.fqdn,
        "IP address": record.ip_address,
        "MAC address": record.mac_address or "",
        "TTL": str(record.ttl),
        "DHCP profile": record.dhcp_profile or "",
        "Machine": record.device_type,
        "Comment": record.comment or "",
        "Responsible": " ".join(filter(None, [record.owner_name, record.owner_mail])),
        "SMTP emit right": "Yes" if record.smtp_allowed else "No",
        "Aliases": ", ".join(record.aliases),
        "Allowed groups": ", ".join(record.allowed_groups),
        "Alias": "Yes" if record.is_alias else "No",
    }
    rows.update(record.extra)
    return rows


def display_fields(title: str, rows: Dict[str, str]):
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for field, value in rows.items():
        table.add_row(field, str(value))
    console.print(table)


def config_logger(config: Dict, verbose: bool = False):
    """Configure logging."""
    logging_config = config.get("logging", None)
    if logging_config:
        log_level = "DEBUG" if verbose else logging_config.get("level", "INFO")
        log_file = logging_config.get("file", "netmagis_client.log")

        logging.basicConfig(
            level=log_level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            handlers=[
                logging.FileHandler(log_file),
                logging.StreamHandler(sys.stdout),
            ],
        )
        return

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


if __name__ == "__main__":
    main()
