"""Date parsing and calendar month utilities."""

import re
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

_QIF_DATE_SEPARATORS = re.compile(r"[/']")


def expand_year(year: int) -> int:
    """Expand a two-digit year: below 50 is 20xx, 50 and above is 19xx."""
    if year < 100:
        year += 2000 if year < 50 else 1900
    return year


def parse_qif_date(date_str: str) -> date:
    """Parse a day-first interchange date.

    Accepts ``DD/MM/YY``, ``DD/MM/YYYY`` and Quicken's ``DD/MM'YY`` form.
    Only the day (1..31) and month (1..12) bounds are checked up front; a
    day that does not exist in its month (e.g. 31/04) still cannot be
    represented and is rejected.

    Args:
        date_str: Raw date value

    Returns:
        Date object

    Raises:
        ValueError: If the value is malformed or out of range
    """
    value = date_str.strip()
    parts = _QIF_DATE_SEPARATORS.split(value)
    if len(parts) != 3 or not all(part.strip().isdigit() for part in parts):
        raise ValueError(f"Invalid date '{value}'")

    day, month, year = (int(part) for part in parts)
    if not 1 <= day <= 31:
        raise ValueError(f"Invalid date '{value}': day {day} out of range")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid date '{value}': month {month} out of range")

    try:
        return date(expand_year(year), month, day)
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}': {e}")


def month_start(day: date) -> date:
    """First day of the month containing ``day``."""
    return day.replace(day=1)


def month_end(day: date) -> date:
    """Last day of the month containing ``day``."""
    return month_start(day) + relativedelta(months=1) - timedelta(days=1)


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` key of the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def month_window(today: date, months: int = 24) -> list[date]:
    """First days of the ``months`` calendar months ending with ``today``'s.

    Returns:
        Month start dates, oldest first
    """
    current = month_start(today)
    return [current - relativedelta(months=offset) for offset in range(months - 1, -1, -1)]


def parse_date(date_str: str) -> date:
    """Parse a user-supplied date such as "2024-01-15", "today" or "yesterday".

    Ambiguous numeric dates are read day-first, like interchange files.

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        return date_parser.parse(date_str, dayfirst=True).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
