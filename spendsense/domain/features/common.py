"""Helpers shared by the feature analyzers"""

from contextlib import contextmanager
from typing import Iterable, Iterator

from spendsense.domain.exceptions import AnalyzerComputationError, DataAccessError
from spendsense.domain.models import Transaction, Window
from spendsense.utils.date_utils import months_in


@contextmanager
def analyzer_errors(family: str, user_id: str) -> Iterator[None]:
    """Re-raise storage and arithmetic failures as AnalyzerComputationError"""
    try:
        yield
    except (DataAccessError, ArithmeticError, ValueError, TypeError) as e:
        raise AnalyzerComputationError(family, user_id, str(e)) from e


def matches_any(keywords: Iterable[str], *texts: str | None) -> bool:
    """Case-insensitive substring match of any keyword in any of the texts"""
    lowered = [(text or "").lower() for text in texts]
    return any(keyword in text for keyword in keywords for text in lowered)


def total_expenses(transactions: Iterable[Transaction]) -> float:
    """Sum of outflows (magnitude of negative amounts)"""
    return sum(abs(t.amount) for t in transactions if t.amount < 0)


def average_monthly_expenses(transactions: Iterable[Transaction], window: Window) -> float:
    months = months_in(window.days)
    if months <= 0:
        return 0.0
    return total_expenses(transactions) / months
