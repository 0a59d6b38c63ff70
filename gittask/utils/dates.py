"""Due date grammar and human-readable date formatting."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from gittask.enums import DateFilter
from gittask.errors import ParseError

_WEEKDAYS = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tues": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
}

_VALID_FILTERS = {f.value for f in DateFilter if f.value}

_FULL_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MONTH_DAY = re.compile(r"^(\d{1,2})-(\d{1,2})$")
_DAY = re.compile(r"^\d{1,2}$")


def local_midnight(d: date) -> datetime:
    """Timezone-aware local midnight of a calendar day."""
    return datetime(d.year, d.month, d.day).astimezone()


def _today() -> date:
    return datetime.now().astimezone().date()


def _weekday_to_date(name: str, selector: str) -> date | None:
    weekday = _WEEKDAYS.get(name)
    if weekday is None:
        return None

    today = _today()
    difference = weekday - today.weekday()

    if selector == "next":
        return today + timedelta(days=difference + 7)
    if selector in ("this", ""):
        if difference < 0:
            difference += 7
        return today + timedelta(days=difference)
    return None


def parse_date(text: str) -> datetime:
    """
    Parse a due date into local midnight.

    Supports: today, tomorrow, yesterday, [this-|next-]<weekday>,
    YYYY-MM-DD, MM-DD (current year) and DD (current month).

    Raises:
        ParseError: when the text matches none of the forms above
    """
    lower = text.strip().lower()
    today = _today()

    if lower == "today":
        return local_midnight(today)
    if lower == "tomorrow":
        return local_midnight(today + timedelta(days=1))
    if lower == "yesterday":
        return local_midnight(today - timedelta(days=1))

    if "-" in lower:
        selector, rest = lower.split("-", 1)
        found = _weekday_to_date(rest, selector)
        if found is not None:
            return local_midnight(found)

    found = _weekday_to_date(lower, "")
    if found is not None:
        return local_midnight(found)

    try:
        if m := _FULL_DATE.match(lower):
            return local_midnight(date(int(m.group(1)), int(m.group(2)), int(m.group(3))))
        if m := _MONTH_DAY.match(lower):
            return local_midnight(date(today.year, int(m.group(1)), int(m.group(2))))
        if _DAY.match(lower):
            return local_midnight(date(today.year, today.month, int(lower)))
    except ValueError:
        pass

    raise ParseError(
        f"Invalid due date format: {text}\n"
        "Expected format: YYYY-MM-DD, MM-DD or DD, relative date like 'next-monday', 'today', etc."
    )


def parse_due_date_arg(arg: str) -> tuple[str, datetime]:
    """
    Parse a ``due:<date>`` or ``due.<filter>:<date>`` token.

    Returns:
        Tuple of (date_filter, due instant)
    """
    key, sep, date_text = arg.partition(":")
    if not sep:
        raise ParseError(
            f"Invalid due query format: {arg}\n"
            "Expected format: due:YYYY-MM-DD, due:MM-DD, due:DD, due:next-monday, due:today, etc."
        )

    if date_text == "overdue":
        return DateFilter.BEFORE.value, local_midnight(_today())

    date_filter = ""
    if "." in key:
        date_filter = key.split(".", 1)[1]
        if date_filter not in _VALID_FILTERS:
            raise ParseError(
                f"Invalid date filter format: {date_filter}\nValid filters are: after, before, on, in"
            )

    return date_filter, parse_date(date_text)


def format_due_date(due: datetime) -> str:
    """Short relative rendering of a due date for tables."""
    local = due.astimezone()
    today = _today()
    day = local.date()

    if day == today:
        return "today"
    if day == today + timedelta(days=1):
        return "tomorrow"
    if day == today - timedelta(days=1):
        return "yesterday"

    days_until = (day - today).days
    if 0 <= days_until <= 6:
        return f"{local:%a} {local.day}"
    if local.year == today.year:
        return f"{local.day} {local:%b}"
    return f"{local.day} {local:%b %Y}"
