#!/usr/bin/env python3
"""
Unified CLI for the garage.

Commands:
  status      - Show parked vehicles with live duration and estimated charge
  history     - View stays with filters and revenue
  entry       - Register a vehicle entry
  exit        - Register a vehicle exit and its charge
  force-exit  - Administrative exit for a parked vehicle
  quote       - Price a stay between two timestamps
  summary     - Entries, exits and income for a date range
  rates       - Show capacity, grace period and rates
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from tabulate import tabulate

from parking import (
    GARAGE_TZ,
    GarageError,
    Quote,
    Stay,
    VEHICLE_TYPES,
    VehicleType,
    load_garage,
    local_today,
    normalize_plate,
    parse_timestamp,
    quote_stay,
    save_garage,
    total_revenue,
    utc_now,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_clp(amount: Optional[int]) -> str:
    """Format a CLP amount with dot thousands separators (e.g. '$12.500')."""
    if amount is None:
        return "-"
    return "$" + f"{amount:,.0f}".replace(",", ".")


def format_local(moment: Optional[datetime]) -> str:
    """Format a timestamp in garage local time as dd/mm/yy HH:MM."""
    if moment is None:
        return "-"
    return moment.astimezone(GARAGE_TZ).strftime("%d/%m/%y %H:%M")


def truncate(text: Optional[str], max_len: int = 30) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_now(value: Optional[str]) -> datetime:
    """Parse --at, defaulting to the current time."""
    if value is None:
        return utc_now()
    moment = parse_timestamp(value)
    if moment is None:
        raise argparse.ArgumentTypeError(f"Invalid timestamp: {value}")
    return moment


def print_quote(quote: Quote) -> None:
    print(f"  Type:     {quote.vehicle_type.label}")
    print(f"  Entry:    {format_local(quote.entry_at)}")
    print(f"  Exit:     {format_local(quote.exit_at)}")
    print(f"  Duration: {quote.duration.formatted}")
    if quote.is_short_stay:
        print("  Rate:     under 8 hours")
    elif quote.billable_days:
        print(f"  Days:     {quote.billable_days} x {format_clp(quote.daily_rate)}")
    print(f"  Total:    {format_clp(quote.fee)}")


# =============================================================================
# Status command
# =============================================================================


def make_active_table(stays: List[Stay], settings, now: datetime) -> List[List[str]]:
    """Convert active stays to table rows, all priced at the same instant."""
    rows = []
    for stay in stays:
        quote = stay.estimate(settings, now=now)
        rows.append(
            [
                stay.license_plate,
                stay.type_label,
                stay.country or "-",
                format_local(stay.entry_at),
                quote.duration.formatted,
                format_clp(quote.fee),
            ]
        )
    return rows


def cmd_status(args):
    """Show parked vehicles with live duration and estimated charge."""
    garage = load_garage(args.data_file)
    now = parse_now(args.at)
    occupancy = garage.occupancy()

    print(f"Occupancy: {occupancy.active} / {occupancy.capacity} ({occupancy.percentage:.0f}%)")
    if occupancy.is_near_full:
        print("WARNING: garage is almost full")
    print(f"As of: {format_local(now)}")
    print()

    stays = garage.active_stays()
    if not stays:
        print("No vehicles parked.")
        return 0

    headers = ["Plate", "Type", "Country", "Entry", "Duration", "Estimated"]
    print(tabulate(make_active_table(stays, garage.settings, now), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# History command
# =============================================================================


def make_history_table(stays: List[Stay]) -> List[List[str]]:
    """Convert stays to history rows."""
    rows = []
    for stay in stays:
        duration = stay.duration() if stay.exit_at else None
        rows.append(
            [
                stay.license_plate,
                stay.type_label,
                format_local(stay.entry_at),
                format_local(stay.exit_at),
                duration.formatted if duration else "-",
                stay.status,
                format_clp(stay.total_paid),
                truncate(stay.exit_notes),
            ]
        )
    return rows


def cmd_history(args):
    """View stays with filters and revenue."""
    garage = load_garage(args.data_file)
    stays = garage.filter_history(
        search=args.search,
        entry_date=args.entry_date,
        exit_date=args.exit_date,
        status=args.status,
    )

    print(f"Total stays: {len(garage.stays)}")
    if args.search or args.entry_date or args.exit_date or args.status:
        print(f"Showing: {len(stays)} (filtered)")
    print(f"Revenue: {format_clp(total_revenue(stays))}")
    print()

    if not stays:
        print("No stays found.")
        return 0

    headers = ["Plate", "Type", "Entry", "Exit", "Duration", "Status", "Paid", "Notes"]
    print(tabulate(make_history_table(stays), headers=headers, tablefmt="simple"))
    return 0


# =============================================================================
# Entry / exit commands
# =============================================================================


def cmd_entry(args):
    """Register a vehicle entry."""
    garage = load_garage(args.data_file)
    now = parse_now(args.at)
    stay = garage.register_entry(args.license_plate, args.vehicle_type, args.country, now=now)

    print(f"Entry registered for {stay.license_plate}:")
    print(f"  Type:    {stay.type_label}")
    print(f"  Entry:   {format_local(stay.entry_at)}")
    if stay.country:
        print(f"  Country: {stay.country}")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_garage(args.data_file, garage)
    print("Entry saved.")
    return 0


def cmd_exit(args):
    """Register a vehicle exit and its charge."""
    garage = load_garage(args.data_file)
    now = parse_now(args.at)

    if args.force:
        quote = garage.force_exit(args.license_plate, now=now, notes=args.notes)
        print(f"Forced exit for {normalize_plate(args.license_plate)}:")
    else:
        quote = garage.register_exit(args.license_plate, now=now)
        print(f"Exit for {normalize_plate(args.license_plate)}:")
    print_quote(quote)
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    save_garage(args.data_file, garage)
    print("Exit saved.")
    return 0


# =============================================================================
# Quote / summary / rates commands
# =============================================================================


def cmd_quote(args):
    """Price a stay between two timestamps."""
    entry_at = parse_timestamp(args.entry_at)
    if entry_at is None:
        raise argparse.ArgumentTypeError(f"Invalid entry time: {args.entry_at}")
    exit_at = parse_now(args.exit_at) if args.exit_at else None

    garage = load_garage(args.data_file)
    quote = quote_stay(entry_at, exit_at, garage.settings, args.vehicle_type)
    print_quote(quote)
    return 0


def cmd_summary(args):
    """Entries, exits and income for a date range."""
    garage = load_garage(args.data_file)
    start = date.fromisoformat(args.start) if args.start else local_today()
    end = date.fromisoformat(args.end) if args.end else start
    summary = garage.summarize(start, end)

    print(f"Period: {summary.start.isoformat()} .. {summary.end.isoformat()}")
    print(f"Occupancy: {summary.active} / {summary.capacity}")
    print(f"Entries: {summary.entries}")
    print(f"Exits: {summary.exits}")
    print(f"Income: {format_clp(summary.income)}")
    print()

    if summary.by_vehicle_type:
        rows = sorted(summary.by_vehicle_type.items(), key=lambda kv: (-kv[1], kv[0]))
        print(tabulate(rows, headers=["Vehicle type", "Stays"], tablefmt="simple"))
        print()
    if summary.by_country:
        rows = sorted(summary.by_country.items(), key=lambda kv: (-kv[1], kv[0]))
        print(tabulate(rows, headers=["Country", "Stays"], tablefmt="simple"))
    return 0


def cmd_rates(args):
    """Show capacity, grace period and rates."""
    settings = load_garage(args.data_file).settings

    print(f"Capacity: {settings.capacity}")
    print(f"Grace period: {settings.grace_period_hours} hours")
    print(f"Under 8 hours: {format_clp(settings.rate_under_8_hours)}")
    print()

    rows = [
        [vehicle_type.label, format_clp(settings.rate_for(vehicle_type))]
        for vehicle_type in VehicleType
    ]
    print(tabulate(rows, headers=["Vehicle type", "Day rate"], tablefmt="simple"))
    return 0


# =============================================================================
# Main
# =============================================================================


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Garage billing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s garage.yaml status
  %(prog)s garage.yaml entry ABCD12 "Camión Acoplado" --country Chile
  %(prog)s garage.yaml exit ABCD12
  %(prog)s garage.yaml exit ABCD12 --force --notes "Left without paying"
  %(prog)s garage.yaml history --status finalizado --entry-date 2024-01-01
  %(prog)s garage.yaml quote 2024-01-01T10:00:00Z 2024-01-03T12:00:00Z
  %(prog)s garage.yaml summary --start 2024-01-01 --end 2024-01-31
""",
    )
    parser.add_argument(
        "data_file",
        type=Path,
        help="Path to garage YAML file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Status subcommand
    status_parser = subparsers.add_parser(
        "status", help="Show parked vehicles with duration and estimated charge"
    )
    status_parser.add_argument(
        "--at", type=str, help="Evaluate at this ISO timestamp (default: now)"
    )

    # History subcommand
    history_parser = subparsers.add_parser("history", help="View stays and revenue")
    history_parser.add_argument(
        "--search",
        type=str,
        help="Filter by plate, vehicle type or country (case-insensitive)",
    )
    history_parser.add_argument(
        "--entry-date", type=str, help="Only stays entered on this day (YYYY-MM-DD)"
    )
    history_parser.add_argument(
        "--exit-date", type=str, help="Only stays exited on this day (YYYY-MM-DD)"
    )
    history_parser.add_argument(
        "--status",
        choices=["todos", "activo", "finalizado"],
        help="Filter by status",
    )

    # Entry subcommand
    entry_parser = subparsers.add_parser("entry", help="Register a vehicle entry")
    entry_parser.add_argument("license_plate", type=str, help="License plate")
    entry_parser.add_argument(
        "vehicle_type",
        type=str,
        help=f"Vehicle type ({', '.join(VEHICLE_TYPES)})",
    )
    entry_parser.add_argument("--country", type=str, help="Country of the vehicle")
    entry_parser.add_argument(
        "--at", type=str, help="Entry time as ISO timestamp (default: now)"
    )
    entry_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Exit / force-exit subcommands
    for name, help_text, force in (
        ("exit", "Register a vehicle exit", False),
        ("force-exit", "Administrative exit for a parked vehicle", True),
    ):
        exit_parser = subparsers.add_parser(name, help=help_text)
        exit_parser.add_argument("license_plate", type=str, help="License plate")
        exit_parser.add_argument(
            "--at", type=str, help="Exit time as ISO timestamp (default: now)"
        )
        exit_parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show the charge without saving",
        )
        if force:
            exit_parser.add_argument("--notes", type=str, help="Reason for the forced exit")
        else:
            exit_parser.add_argument(
                "--force", action="store_true", help="Record as an administrative exit"
            )
            exit_parser.add_argument("--notes", type=str, help=argparse.SUPPRESS)
        exit_parser.set_defaults(force=force)

    # Quote subcommand
    quote_parser = subparsers.add_parser("quote", help="Price a stay")
    quote_parser.add_argument("entry_at", type=str, help="Entry ISO timestamp")
    quote_parser.add_argument(
        "exit_at", type=str, nargs="?", help="Exit ISO timestamp (default: now)"
    )
    quote_parser.add_argument(
        "--vehicle-type", type=str, default=None, help="Vehicle type label"
    )

    # Summary subcommand
    summary_parser = subparsers.add_parser("summary", help="Activity for a date range")
    summary_parser.add_argument("--start", type=str, help="First day (YYYY-MM-DD, default: today)")
    summary_parser.add_argument("--end", type=str, help="Last day (YYYY-MM-DD, default: start)")

    # Rates subcommand
    subparsers.add_parser("rates", help="Show capacity and rates")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Validate data file exists
    if not args.data_file.exists():
        print(f"Error: File not found: {args.data_file}")
        return 1

    handlers = {
        "status": cmd_status,
        "history": cmd_history,
        "entry": cmd_entry,
        "exit": cmd_exit,
        "force-exit": cmd_exit,
        "quote": cmd_quote,
        "summary": cmd_summary,
        "rates": cmd_rates,
    }

    try:
        return handlers[args.command](args)
    except (GarageError, argparse.ArgumentTypeError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
