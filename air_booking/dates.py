# dates.py
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import dateparser

MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def parse_vendor_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a vendor timestamp into an aware UTC datetime, None if unparseable."""
    if not value:
        return None
    return dateparser.parse(
        value,
        languages=["en"],
        settings={"RETURN_AS_TIMEZONE_AWARE": True, "TO_TIMEZONE": "UTC"},
    )


def chronological_key(value: Optional[str]) -> tuple[bool, float]:
    """Sort key putting parsed dates in order and missing ones last."""
    dt = parse_vendor_datetime(value)
    if dt is None:
        return (True, 0.0)
    return (False, dt.timestamp())


def terminal_date(day: date) -> str:
    """Host terminal date, e.g. 05MAR."""
    return f"{day.day:02d}{MONTHS[day.month - 1]}"


def days_from_today(days: int, today: Optional[date] = None) -> date:
    return (today or date.today()) + timedelta(days=days)
