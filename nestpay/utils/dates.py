"""
Date helpers shared by the models and the lifecycle service.

All timestamps are stored as naive UTC datetimes.
"""

from datetime import datetime, timezone

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to naive UTC.

    Aware values are converted to UTC first; naive values are assumed
    to already be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value):
    """
    Parse an ISO-8601 string (or pass through a datetime) into naive UTC.

    Returns None for empty input; raises ValueError for garbage.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    return to_naive_utc(date_parser.isoparse(str(value)))


def add_months(start: datetime, months: int) -> datetime:
    """Calendar-aware month addition (Jan 31 + 1 month -> Feb 28/29)."""
    return start + relativedelta(months=months)


def isoformat_or_none(value):
    return value.isoformat() if value else None
