"""Unit tests for analysis windows and date helpers"""

from datetime import date

import pytest

from spendsense.utils.date_utils import days_between, get_date_range, months_in


@pytest.mark.parametrize("days", [30, 180, 1])
def test_get_date_range_size(days):
    """Window spans exactly the requested number of days"""
    window = get_date_range(days, today=date(2025, 6, 30))

    assert window.end_date == date(2025, 6, 30)
    assert (window.end_date - window.start_date).days == days
    assert window.days == days


def test_window_contains_is_inclusive():
    window = get_date_range(30, today=date(2025, 6, 30))

    assert window.contains(date(2025, 5, 31))
    assert window.contains(date(2025, 6, 30))
    assert not window.contains(date(2025, 5, 30))
    assert not window.contains(date(2025, 7, 1))


def test_days_between_is_absolute():
    assert days_between(date(2025, 1, 1), date(2025, 1, 15)) == 14
    assert days_between(date(2025, 1, 15), date(2025, 1, 1)) == 14


def test_months_in_uses_average_month_length():
    assert months_in(30) == pytest.approx(0.9855, abs=1e-4)
    assert months_in(0) == 0
