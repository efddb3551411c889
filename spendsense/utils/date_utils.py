"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import Optional

from spendsense.domain.constants import DAYS_PER_MONTH
from spendsense.domain.models import Window


def get_date_range(days: int, today: Optional[date] = None) -> Window:
    """Window of `days` days ending today (inclusive bounds)"""
    end_date = today or date.today()
    return Window(start_date=end_date - timedelta(days=days), end_date=end_date)


def days_between(first: date, second: date) -> int:
    """Absolute number of calendar days between two dates"""
    return abs((second - first).days)


def months_in(days: int) -> float:
    """Convert a day count to average-length months"""
    return days / DAYS_PER_MONTH
