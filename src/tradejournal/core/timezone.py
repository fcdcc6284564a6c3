"""Timestamp utilities. The gateway speaks UTC ISO-8601."""

from datetime import datetime, date
from typing import Union

import pytz
from dateutil import parser as date_parser

UTC = pytz.utc


def now_utc() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(UTC)


def to_utc(dt: datetime) -> datetime:
    """Convert a datetime to UTC."""
    if dt.tzinfo is None:
        # Naive timestamps from the backend are UTC
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 (or similar) timestamp string into an aware UTC datetime."""
    if isinstance(value, datetime):
        return to_utc(value)
    return to_utc(date_parser.parse(value))


def parse_date(value: Union[str, date]) -> date:
    """Parse a YYYY-MM-DD style date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date_parser.parse(value).date()
