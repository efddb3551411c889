"""Credit analysis - card utilization, payment patterns and overdue status"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from spendsense.domain.constants import CREDIT_THRESHOLDS, INTEREST_KEYWORDS, TIME_WINDOWS
from spendsense.domain.features.common import analyzer_errors, matches_any
from spendsense.domain.models import Account, Liability, Transaction, TransactionFilter, Window
from spendsense.domain.ports import FinancialDataStore
from spendsense.utils.date_utils import get_date_range

FAMILY = "credit"


@dataclass(frozen=True)
class Utilization:
    """Utilization of a single card"""

    utilization: float
    balance: float
    limit: float
    utilization_percentage: float
    utilization_level: str
    is_high_utilization: bool = False
    is_medium_utilization: bool = False
    is_low_utilization: bool = False


@dataclass(frozen=True)
class InterestCharges:
    has_interest_charges: bool
    interest_transaction_count: int
    total_interest_charges: float


@dataclass(frozen=True)
class CardAnalysis:
    """Per-card metrics for one window"""

    account_id: str
    account_name: str
    utilization: float
    utilization_percentage: float
    utilization_level: str
    balance: float
    limit: float
    is_high_utilization: bool
    is_medium_utilization: bool
    is_low_utilization: bool
    is_minimum_payment_only: bool
    is_overdue: bool
    has_interest_charges: bool
    total_interest_charges: float
    apr_percentage: Optional[float] = None
    minimum_payment: Optional[float] = None


@dataclass(frozen=True)
class CreditAnalysis:
    """Credit metrics for one window"""

    window: Window
    credit_card_count: int
    cards: tuple[CardAnalysis, ...]
    has_high_utilization: bool
    has_medium_utilization: bool
    has_any_utilization: bool
    has_overdue: bool
    has_interest_charges: bool
    has_minimum_payment_only: bool
    max_utilization: Optional[float]
    meets_threshold: bool


@dataclass(frozen=True)
class CreditSummary:
    """Credit analysis over both fixed windows"""

    user_id: str
    short_term: CreditAnalysis
    long_term: CreditAnalysis

    @property
    def has_credit_cards(self) -> bool:
        return self.short_term.credit_card_count > 0

    @property
    def meets_threshold(self) -> bool:
        return self.short_term.meets_threshold or self.long_term.meets_threshold

    @property
    def cards(self) -> tuple[CardAnalysis, ...]:
        return self.short_term.cards or self.long_term.cards


def utilization_band(utilization: float) -> str:
    """Map a utilization ratio to its band: excellent < 0.30 <= low < 0.50 <= medium < 0.80 <= high"""
    if utilization >= CREDIT_THRESHOLDS.high_utilization:
        return "high"
    if utilization >= CREDIT_THRESHOLDS.medium_utilization:
        return "medium"
    if utilization >= CREDIT_THRESHOLDS.low_utilization:
        return "low"
    return "excellent"


def calculate_utilization(account: Account, liability: Optional[Liability] = None) -> Utilization:
    """
    Utilization of a credit account.

    The statement balance on the liability wins over the account's current
    balance. Balances on credit accounts are amounts owed, so only the
    magnitude is used.
    """
    credit_limit = account.credit_limit or 0
    balance = (liability.last_statement_balance if liability else None) or account.current_balance or 0

    if credit_limit <= 0:
        return Utilization(
            utilization=0.0,
            balance=balance,
            limit=credit_limit,
            utilization_percentage=0.0,
            utilization_level="none",
        )

    utilization = abs(balance) / credit_limit

    return Utilization(
        utilization=utilization,
        balance=balance,
        limit=credit_limit,
        utilization_percentage=round(utilization * 100, 1),
        utilization_level=utilization_band(utilization),
        is_high_utilization=utilization >= CREDIT_THRESHOLDS.high_utilization,
        is_medium_utilization=utilization >= CREDIT_THRESHOLDS.medium_utilization,
        is_low_utilization=utilization >= CREDIT_THRESHOLDS.low_utilization,
    )


def detect_minimum_payment_only(liability: Optional[Liability]) -> bool:
    """Last payment within 5% of the minimum payment"""
    if not liability or not liability.minimum_payment_amount or not liability.last_payment_amount:
        return False

    tolerance = liability.minimum_payment_amount * CREDIT_THRESHOLDS.minimum_payment_tolerance
    diff = abs(liability.last_payment_amount - liability.minimum_payment_amount)

    return diff <= tolerance and liability.last_payment_amount > 0


def check_overdue_status(liability: Optional[Liability], today: Optional[date] = None) -> bool:
    """Overdue flag set, or next due date strictly in the past"""
    if not liability:
        return False
    if liability.is_overdue:
        return True
    if liability.next_payment_due_date:
        return liability.next_payment_due_date < (today or date.today())
    return False


def detect_interest_charges(transactions: Iterable[Transaction]) -> InterestCharges:
    """Find interest/finance-charge debits among a card's transactions"""
    interest_transactions = [
        t
        for t in transactions
        if t.amount < 0
        and matches_any(INTEREST_KEYWORDS, t.merchant_name, t.category_primary, t.category_detailed)
    ]

    return InterestCharges(
        has_interest_charges=len(interest_transactions) > 0,
        interest_transaction_count=len(interest_transactions),
        total_interest_charges=sum(abs(t.amount) for t in interest_transactions),
    )


def _analyze_card(store: FinancialDataStore, account: Account, window: Window) -> CardAnalysis:
    liability = store.get_liability(account.account_id)
    utilization = calculate_utilization(account, liability)
    interest = detect_interest_charges(
        store.list_transactions(account_id=account.account_id, filter=TransactionFilter.for_window(window))
    )

    return CardAnalysis(
        account_id=account.account_id,
        account_name=f"{account.subtype or 'card'} ending in {account.account_id[-4:]}",
        utilization=utilization.utilization,
        utilization_percentage=utilization.utilization_percentage,
        utilization_level=utilization.utilization_level,
        balance=utilization.balance,
        limit=utilization.limit,
        is_high_utilization=utilization.is_high_utilization,
        is_medium_utilization=utilization.is_medium_utilization,
        is_low_utilization=utilization.is_low_utilization,
        is_minimum_payment_only=detect_minimum_payment_only(liability),
        is_overdue=check_overdue_status(liability, window.end_date),
        has_interest_charges=interest.has_interest_charges,
        total_interest_charges=interest.total_interest_charges,
        apr_percentage=liability.apr_percentage if liability else None,
        minimum_payment=liability.minimum_payment_amount if liability else None,
    )


def analyze_credit(
    store: FinancialDataStore,
    user_id: str,
    window_days: int,
    today: Optional[date] = None,
) -> CreditAnalysis:
    """
    Analyze every credit card of a user within a trailing window.

    Meets threshold when any card has utilization >= 50%, interest charges,
    minimum-payment-only behaviour or an overdue payment. A user without
    credit cards gets an all-false result.

    Raises:
        AnalyzerComputationError: storage or arithmetic failure
    """
    window = get_date_range(window_days, today)

    with analyzer_errors(FAMILY, user_id):
        cards = tuple(_analyze_card(store, account, window) for account in store.list_credit_accounts_for_user(user_id))

    meets_threshold = any(
        card.utilization >= CREDIT_THRESHOLDS.medium_utilization
        or card.has_interest_charges
        or card.is_minimum_payment_only
        or card.is_overdue
        for card in cards
    )

    return CreditAnalysis(
        window=window,
        credit_card_count=len(cards),
        cards=cards,
        has_high_utilization=any(card.is_high_utilization for card in cards),
        has_medium_utilization=any(card.is_medium_utilization for card in cards),
        has_any_utilization=any(card.utilization > 0 for card in cards),
        has_overdue=any(card.is_overdue for card in cards),
        has_interest_charges=any(card.has_interest_charges for card in cards),
        has_minimum_payment_only=any(card.is_minimum_payment_only for card in cards),
        max_utilization=max((card.utilization for card in cards), default=None),
        meets_threshold=meets_threshold,
    )


def analyze_credit_for_user(store: FinancialDataStore, user_id: str, today: Optional[date] = None) -> CreditSummary:
    """Run the credit analysis for the short-term and long-term windows"""
    return CreditSummary(
        user_id=user_id,
        short_term=analyze_credit(store, user_id, TIME_WINDOWS.short_term, today),
        long_term=analyze_credit(store, user_id, TIME_WINDOWS.long_term, today),
    )
