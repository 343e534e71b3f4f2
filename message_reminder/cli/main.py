"""Main entry point for remind CLI tool."""

import argparse
import sys

from .client import ReminderClient
from . import commands


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remind",
        description="Message Reminder CLI - set one-shot timed reminders",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # remind set "<message>" <time> [--unit minutes]
    set_parser = subparsers.add_parser("set", help="Set a reminder")
    set_parser.add_argument("message", help="What to be reminded about")
    set_parser.add_argument("time", help="Delay: a number in --unit, or a duration like 90s, 5m, 1h30m")
    set_parser.add_argument(
        "--unit",
        choices=["seconds", "minutes", "hours"],
        default="minutes",
        help="Unit for a bare number (default: minutes)",
    )

    # remind list [--active | --expired]
    list_parser = subparsers.add_parser("list", help="List reminders")
    status_group = list_parser.add_mutually_exclusive_group()
    status_group.add_argument("--active", action="store_true", help="Only reminders still to come")
    status_group.add_argument("--expired", action="store_true", help="Only reminders whose time has passed")

    # remind history
    subparsers.add_parser("history", help="List expired reminders")

    # remind delete <id>
    delete_parser = subparsers.add_parser("delete", help="Delete a reminder")
    delete_parser.add_argument("reminder_id", help="Reminder ID")

    # remind focus
    subparsers.add_parser("focus", help="Run a catch-up check now")

    return parser


def main():
    """Main entry point for remind CLI."""
    parser = build_parser()
    args = parser.parse_args()

    client = ReminderClient()

    if args.command == "set":
        sys.exit(commands.cmd_set(client, args.message, args.time, args.unit))
    elif args.command == "list":
        status = "active" if args.active else "expired" if args.expired else None
        sys.exit(commands.cmd_list(client, status))
    elif args.command == "history":
        sys.exit(commands.cmd_list(client, "expired"))
    elif args.command == "delete":
        sys.exit(commands.cmd_delete(client, args.reminder_id))
    elif args.command == "focus":
        sys.exit(commands.cmd_focus(client))
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
