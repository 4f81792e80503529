from __future__ import annotations

from datetime import date, datetime

MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Minutes since midnight for a zero-padded ``HH:MM`` clock value."""
    hour_str, minute_str = value.split(":")
    return int(hour_str) * 60 + int(minute_str)


def format_hhmm(ts: datetime) -> str:
    return ts.strftime("%H:%M")


def minutes_between(start_hhmm: str, end_hhmm: str) -> int:
    return parse_hhmm(end_hhmm) - parse_hhmm(start_hhmm)


def day_of_week(day_date: date) -> int:
    # 0=Sunday ... 6=Saturday
    return (day_date.weekday() + 1) % 7


def is_friday(day_date: date) -> bool:
    return day_date.weekday() == 4


def is_saturday(day_date: date) -> bool:
    return day_date.weekday() == 5
