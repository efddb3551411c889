"""Savings analysis - net inflow, growth rate and emergency fund coverage"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from spendsense.domain.constants import SAVINGS_THRESHOLDS, TIME_WINDOWS
from spendsense.domain.features.common import analyzer_errors, average_monthly_expenses
from spendsense.domain.models import Account, Transaction, TransactionFilter, Window
from spendsense.domain.ports import FinancialDataStore
from spendsense.utils.date_utils import get_date_range, months_in

FAMILY = "savings"


@dataclass(frozen=True)
class NetInflow:
    net_inflow: float
    total_inflow: float
    total_outflow: float
    account_count: int
    current_savings_balance: float


@dataclass(frozen=True)
class SavingsAnalysis:
    """Savings metrics for one window"""

    window: Window
    savings_account_count: int
    current_savings_balance: float
    net_inflow: float
    total_inflow: float
    total_outflow: float
    monthly_net_inflow: float
    growth_rate: float
    average_monthly_expenses: float
    emergency_fund_coverage_months: float
    meets_threshold: bool


@dataclass(frozen=True)
class SavingsSummary:
    """Savings analysis over both fixed windows"""

    user_id: str
    short_term: SavingsAnalysis
    long_term: SavingsAnalysis

    @property
    def has_savings_accounts(self) -> bool:
        return self.short_term.savings_account_count > 0

    @property
    def meets_threshold(self) -> bool:
        return self.short_term.meets_threshold or self.long_term.meets_threshold


def calculate_net_inflow(accounts: Iterable[Account], transactions: Iterable[Transaction]) -> NetInflow:
    """Deposits minus withdrawals across savings-like accounts"""
    accounts = list(accounts)
    total_inflow = 0.0
    total_outflow = 0.0

    for transaction in transactions:
        if transaction.amount > 0:
            total_inflow += transaction.amount
        else:
            total_outflow += abs(transaction.amount)

    return NetInflow(
        net_inflow=total_inflow - total_outflow,
        total_inflow=total_inflow,
        total_outflow=total_outflow,
        account_count=len(accounts),
        current_savings_balance=sum(account.current_balance or 0 for account in accounts),
    )


def calculate_growth_rate(current_balance: float, net_inflow: float, days: int) -> float:
    """
    Growth of the savings balance over the window, annualized for windows under a year.

    The starting balance is estimated as current balance minus net inflow.
    When that estimate is not positive, growth is 100% if money is saved
    now and 0 otherwise.
    """
    estimated_start_balance = current_balance - net_inflow

    if estimated_start_balance <= 0:
        return 1.0 if current_balance > 0 else 0.0

    growth_rate = (current_balance - estimated_start_balance) / estimated_start_balance

    if days < 365:
        return growth_rate * (365 / days)

    return growth_rate


def calculate_emergency_fund_coverage(savings_balance: float, avg_monthly_expenses: float) -> float:
    """Months of expenses covered by savings"""
    if avg_monthly_expenses <= 0:
        return 0.0
    return savings_balance / avg_monthly_expenses


def analyze_savings(
    store: FinancialDataStore,
    user_id: str,
    window_days: int,
    today: Optional[date] = None,
) -> SavingsAnalysis:
    """
    Analyze savings behaviour within a trailing window.

    Meets threshold when the annualized growth rate is at least 2% or the
    monthly net inflow is at least $200.

    Raises:
        AnalyzerComputationError: storage or arithmetic failure
    """
    window = get_date_range(window_days, today)
    window_filter = TransactionFilter.for_window(window)

    with analyzer_errors(FAMILY, user_id):
        savings_accounts = store.list_savings_accounts_for_user(user_id)
        savings_transactions = [
            transaction
            for account in savings_accounts
            for transaction in store.list_transactions(account_id=account.account_id, filter=window_filter)
        ]
        inflow = calculate_net_inflow(savings_accounts, savings_transactions)

        growth_rate = calculate_growth_rate(inflow.current_savings_balance, inflow.net_inflow, window_days)

        monthly_expenses = average_monthly_expenses(
            store.list_transactions(user_id=user_id, filter=window_filter), window
        )
        coverage = calculate_emergency_fund_coverage(inflow.current_savings_balance, monthly_expenses)

        months = months_in(window_days)
        monthly_net_inflow = inflow.net_inflow / months if months > 0 else 0.0

    return SavingsAnalysis(
        window=window,
        savings_account_count=inflow.account_count,
        current_savings_balance=inflow.current_savings_balance,
        net_inflow=inflow.net_inflow,
        total_inflow=inflow.total_inflow,
        total_outflow=inflow.total_outflow,
        monthly_net_inflow=monthly_net_inflow,
        growth_rate=growth_rate,
        average_monthly_expenses=monthly_expenses,
        emergency_fund_coverage_months=coverage,
        meets_threshold=(
            growth_rate >= SAVINGS_THRESHOLDS.min_growth_rate
            or monthly_net_inflow >= SAVINGS_THRESHOLDS.min_monthly_inflow
        ),
    )


def analyze_savings_for_user(store: FinancialDataStore, user_id: str, today: Optional[date] = None) -> SavingsSummary:
    """Run the savings analysis for the short-term and long-term windows"""
    return SavingsSummary(
        user_id=user_id,
        short_term=analyze_savings(store, user_id, TIME_WINDOWS.short_term, today),
        long_term=analyze_savings(store, user_id, TIME_WINDOWS.long_term, today),
    )
