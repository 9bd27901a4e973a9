"""Date helpers for API query parameters"""

import datetime
from typing import Dict, Union

DateLike = Union[datetime.date, datetime.datetime]


def as_date(value: DateLike) -> datetime.date:
    """Reduce a datetime to its calendar date"""
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def format_date(value: DateLike) -> str:
    """Format as YYYY-MM-DD"""
    return as_date(value).isoformat()


def date_params(start: DateLike, end: DateLike) -> Dict[str, str]:
    """Build the start/end query parameters used by the analytics endpoints"""
    return {
        "start": format_date(start),
        "end": format_date(end),
    }


def add_years(value: datetime.date, years: int) -> datetime.date:
    """Shift by whole years, clamping Feb 29 to Feb 28"""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)
