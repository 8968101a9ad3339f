"""
Chart intervals and the date ranges requested for them.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

DATE_FORMAT = '%Y-%m-%d'

SATURDAY = 5
SUNDAY = 6


class Interval(str, Enum):
    """Interval labels offered by the charts."""
    DAY = '1D'
    WEEK = '1W'
    MONTH = '1M'
    QUARTER = '3M'
    YEAR = '1Y'


_LOOKBACK_DAYS = {
    Interval.DAY: 2,
    Interval.WEEK: 7,
    Interval.MONTH: 30,
    Interval.QUARTER: 90,
    Interval.YEAR: 365,
}


def _is_weekend(day: datetime) -> bool:
    return day.weekday() in (SATURDAY, SUNDAY)


def compute_date_range(interval: str, now: Optional[datetime] = None) -> Tuple[str, str]:
    """
    Calculate the (date_from, date_to) strings for an interval.

    The end date is moved back to Friday when now falls on a weekend, since
    there is no end-of-day data for Saturday and Sunday. For the one-day
    interval the start date is moved back as well.

    Args:
        interval: Interval label ('1D', '1W', '1M', '3M', '1Y')
        now: Reference time (defaults to datetime.now())

    Returns:
        Tuple of (date_from, date_to) formatted as YYYY-MM-DD
    """
    end = now or datetime.now()
    if end.weekday() == SATURDAY:
        end -= timedelta(days=1)
    elif end.weekday() == SUNDAY:
        end -= timedelta(days=2)

    try:
        key = Interval(interval)
    except ValueError:
        logger.warning(f"Unknown interval '{interval}', defaulting to {Interval.DAY.value}")
        key = Interval.DAY

    start = end - timedelta(days=_LOOKBACK_DAYS[key])
    if key == Interval.DAY:
        while _is_weekend(start):
            start -= timedelta(days=1)

    return start.strftime(DATE_FORMAT), end.strftime(DATE_FORMAT)
