"""Command implementations for the remind CLI."""

import re
import sys
from datetime import datetime
from typing import Optional

from .client import ReminderClient
from ..models import DelayUnit


def parse_delay(time_str: str, unit: str = "minutes") -> int:
    """
    Parse a delay into milliseconds.

    A bare integer is counted in ``unit``. Compound durations such as
    30s, 5m, 1h or 2h30m carry their own units and ignore ``unit``.

    Args:
        time_str: Delay string (e.g., "5", "90s", "2h30m")
        unit: Unit for bare integers: seconds, minutes or hours

    Returns:
        Delay in milliseconds

    Raises:
        ValueError: If format is invalid or the delay is not positive
    """
    time_str = time_str.strip()
    if not time_str:
        raise ValueError("Empty delay")

    if time_str.isdigit():
        total_seconds = int(time_str) * DelayUnit.parse(unit).value
    else:
        if not re.fullmatch(r'(\d+[smh])+', time_str, re.IGNORECASE):
            raise ValueError(f"Invalid delay format: {time_str}")
        total_seconds = 0
        for value, suffix in re.findall(r'(\d+)([smh])', time_str, re.IGNORECASE):
            total_seconds += int(value) * {"s": 1, "m": 60, "h": 3600}[suffix.lower()]

    if total_seconds <= 0:
        raise ValueError("Delay must be positive")

    return total_seconds * 1000


def format_due(due_at_ms: int) -> str:
    """Format a due time in local time for display."""
    return datetime.fromtimestamp(due_at_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def format_reminder_line(reminder: dict, expired: bool) -> str:
    """One display line for a reminder."""
    if expired:
        status = "TRIGGERED" if reminder.get("triggered") else "EXPIRED"
    else:
        status = "ACTIVE"
    return f"{reminder['id']}  {format_due(reminder['due_at'])}  {status:<9}  {reminder['message']}"


def cmd_set(client: ReminderClient, message: str, time_str: str, unit: str = "minutes") -> int:
    """
    Set a reminder.

    Exit codes:
        0: Success
        1: Invalid input or rejected by the service
        2: Service unavailable
    """
    if not message.strip():
        print("Error: Reminder message cannot be empty", file=sys.stderr)
        return 1

    try:
        delay_ms = parse_delay(time_str, unit)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    data, success, unavailable = client.create_reminder(message, delay_ms)

    if unavailable:
        print("Error: Reminder service unavailable", file=sys.stderr)
        return 2

    if not success:
        detail = data.get("detail") if data else None
        print(f"Error: Failed to set reminder{': ' + str(detail) if detail else ''}", file=sys.stderr)
        return 1

    print(f"Reminder set ({data['id']}): due {format_due(data['due_at'])}")
    return 0


def cmd_list(client: ReminderClient, status: Optional[str] = None) -> int:
    """
    List reminders.

    Args:
        client: API client
        status: None for all, "active" or "expired"

    Exit codes:
        0: Success
        1: Service returned an error
        2: Service unavailable
    """
    reminders, unavailable = client.list_reminders(status)

    if unavailable:
        print("Error: Reminder service unavailable", file=sys.stderr)
        return 2

    if reminders is None:
        print("Error: Failed to list reminders", file=sys.stderr)
        return 1

    if not reminders:
        print(f"No {status + ' ' if status else ''}reminders found")
        return 0

    now_ms = int(datetime.now().timestamp() * 1000)
    for reminder in reminders:
        print(format_reminder_line(reminder, expired=reminder["due_at"] <= now_ms))
    return 0


def cmd_delete(client: ReminderClient, reminder_id: str) -> int:
    """
    Delete a reminder.

    Exit codes:
        0: Success (deleting an unknown id is not an error)
        1: Service returned an error
        2: Service unavailable
    """
    deleted, unavailable = client.delete_reminder(reminder_id)

    if unavailable:
        print("Error: Reminder service unavailable", file=sys.stderr)
        return 2

    if deleted is None:
        print(f"Error: Failed to delete reminder {reminder_id}", file=sys.stderr)
        return 1

    if deleted:
        print(f"Deleted reminder {reminder_id}")
    else:
        print(f"No reminder {reminder_id}")
    return 0


def cmd_focus(client: ReminderClient) -> int:
    """
    Trigger a catch-up tick.

    Exit codes:
        0: Success
        1: Service returned an error
        2: Service unavailable
    """
    triggered, unavailable = client.focus()

    if unavailable:
        print("Error: Reminder service unavailable", file=sys.stderr)
        return 2

    if triggered is None:
        print("Error: Catch-up tick failed", file=sys.stderr)
        return 1

    print(f"Triggered {len(triggered)} reminder(s)")
    return 0
