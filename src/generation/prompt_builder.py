from __future__ import annotations

from datetime import datetime

RECORD_TEMPLATE = """An event should be formatted like this:
Title: [Event Title]
Description: [Event Description]
Start Time: [YYYY-MM-DDTHH:mm:ss.sssZ format]
Duration: [hh:mm format]
Color: [A valid hex color code like #RRGGBB or a common color name like blue, green, purple]

Separate events with a single blank line and use exactly these five labels."""


def format_now(now: datetime) -> str:
    """Human readable calendar time, e.g. 'Saturday, April 26, 2025 at 10:06 PM EDT'."""
    if now.tzinfo is None:
        now = now.astimezone()
    hour = now.strftime("%I").lstrip("0") or "12"
    tz_name = now.tzname() or "UTC"
    return (
        f"{now.strftime('%A')}, {now.strftime('%B')} {now.day}, {now.year} "
        f"at {hour}:{now.strftime('%M')} {now.strftime('%p')} {tz_name}"
    )


def build_prompt(goal: str, now: datetime) -> str:
    return (
        "Please design a series of events to accomplish a defined goal. "
        f"Assume the current date and time is {format_now(now)}.\n"
        "\n"
        f"{RECORD_TEMPLATE}\n"
        "\n"
        f"Here is the user's goal: {goal}\n"
        "\n"
        "Provide realistic times and durations. Ensure Start Time is in ISO 8601 format "
        "and considers the current date/time mentioned above if the goal is relative "
        '(e.g., "plan my afternoon").'
    )
