"""Income analysis - payroll detection, pay frequency and cash-flow buffer"""

import math
import statistics
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

from spendsense.domain.constants import INCOME_THRESHOLDS, PAYROLL_CHANNELS, PAYROLL_KEYWORDS, TIME_WINDOWS
from spendsense.domain.features.common import analyzer_errors, average_monthly_expenses, matches_any
from spendsense.domain.models import Account, Transaction, TransactionFilter, Window
from spendsense.domain.ports import FinancialDataStore
from spendsense.utils.date_utils import days_between, get_date_range, months_in

FAMILY = "income"


@dataclass(frozen=True)
class PaymentFrequency:
    frequency: str  # monthly | bi-weekly | weekly | irregular
    median_pay_gap_days: Optional[float]
    avg_pay_gap_days: Optional[float]
    payment_count: int
    gaps: tuple[int, ...] = ()


@dataclass(frozen=True)
class IncomeAnalysis:
    """Income metrics for one window"""

    window: Window
    payroll_transaction_count: int
    total_payroll_income: float
    avg_monthly_income: float
    payment_frequency: str
    median_pay_gap_days: Optional[float]
    avg_pay_gap_days: Optional[float]
    cash_flow_buffer_months: float
    has_variable_income: bool
    meets_threshold: bool


@dataclass(frozen=True)
class IncomeSummary:
    """Income analysis over both fixed windows"""

    user_id: str
    short_term: IncomeAnalysis
    long_term: IncomeAnalysis

    @property
    def has_payroll_income(self) -> bool:
        return self.short_term.payroll_transaction_count > 0 or self.long_term.payroll_transaction_count > 0

    @property
    def meets_threshold(self) -> bool:
        return self.short_term.meets_threshold or self.long_term.meets_threshold


def is_payroll_transaction(transaction: Transaction) -> bool:
    """Positive amount plus a payroll keyword, an ACH/direct-deposit channel or an income category"""
    if transaction.amount <= 0:
        return False

    merchant = (transaction.merchant_name or "").lower()
    category = (transaction.category_primary or "").lower()
    detailed = (transaction.category_detailed or "").lower()
    channel = (transaction.payment_channel or "").lower()

    has_keyword = matches_any(PAYROLL_KEYWORDS, merchant, category, detailed)
    is_ach = channel in PAYROLL_CHANNELS or "direct deposit" in merchant or "directdeposit" in merchant
    is_income_category = "income" in category or "transfer" in category or "payroll" in detailed

    return has_keyword or is_ach or is_income_category


def detect_payroll_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if is_payroll_transaction(t)]


def calculate_payment_frequency(payroll_transactions: Sequence[Transaction]) -> PaymentFrequency:
    """
    Classify pay frequency from the gaps between consecutive payroll deposits.

    A coefficient of variation above 0.4 is irregular regardless of the
    median gap. Otherwise the median gap decides:
    - 25-35 days: monthly
    - 12-16 days: bi-weekly
    - 5-9 days:   weekly
    """
    if len(payroll_transactions) < 2:
        return PaymentFrequency(
            frequency="irregular",
            median_pay_gap_days=None,
            avg_pay_gap_days=None,
            payment_count=len(payroll_transactions),
        )

    ordered = sorted(payroll_transactions, key=lambda t: t.date)
    gaps = [days_between(prev.date, curr.date) for prev, curr in zip(ordered, ordered[1:])]

    median_gap = statistics.median(gaps)
    avg_gap = statistics.fmean(gaps)
    coefficient_of_variation = statistics.pstdev(gaps) / avg_gap if avg_gap > 0 else 1.0

    if coefficient_of_variation > INCOME_THRESHOLDS.max_coefficient_of_variation:
        frequency = "irregular"
    elif 25 <= median_gap <= 35:
        frequency = "monthly"
    elif 12 <= median_gap <= 16:
        frequency = "bi-weekly"
    elif 5 <= median_gap <= 9:
        frequency = "weekly"
    else:
        frequency = "irregular"

    return PaymentFrequency(
        frequency=frequency,
        median_pay_gap_days=round(median_gap, 1),
        avg_pay_gap_days=round(avg_gap, 1),
        payment_count=len(payroll_transactions),
        gaps=tuple(gaps),
    )


def calculate_cash_flow_buffer(
    accounts: Iterable[Account],
    transactions: Sequence[Transaction],
    window: Window,
) -> float:
    """Months of expenses covered by depository balances (inf when nothing is spent)"""
    total_balance = sum(
        (account.available_balance or account.current_balance or 0)
        for account in accounts
        if account.type == "depository"
    )

    monthly_expenses = average_monthly_expenses(transactions, window)
    if monthly_expenses <= 0:
        return math.inf if total_balance > 0 else 0.0

    return total_balance / monthly_expenses


def analyze_income(
    store: FinancialDataStore,
    user_id: str,
    window_days: int,
    today: Optional[date] = None,
) -> IncomeAnalysis:
    """
    Analyze payroll income within a trailing window.

    Meets threshold (variable income signal) when the median pay gap is
    above 45 days and the cash-flow buffer is under one month.

    Raises:
        AnalyzerComputationError: storage or arithmetic failure
    """
    window = get_date_range(window_days, today)

    with analyzer_errors(FAMILY, user_id):
        transactions = store.list_transactions(user_id=user_id, filter=TransactionFilter.for_window(window))
        accounts = store.list_accounts_for_user(user_id)

        payroll = detect_payroll_transactions(transactions)
        frequency = calculate_payment_frequency(payroll)
        total_payroll_income = sum(t.amount for t in payroll)

        months = months_in(window_days)
        avg_monthly_income = total_payroll_income / months if months > 0 else 0.0
        cash_flow_buffer = calculate_cash_flow_buffer(accounts, transactions, window)

    median_gap = frequency.median_pay_gap_days
    long_pay_gap = median_gap is not None and median_gap > INCOME_THRESHOLDS.max_pay_gap_days
    meets_threshold = long_pay_gap and cash_flow_buffer < INCOME_THRESHOLDS.min_cash_flow_buffer_months

    return IncomeAnalysis(
        window=window,
        payroll_transaction_count=len(payroll),
        total_payroll_income=total_payroll_income,
        avg_monthly_income=round(avg_monthly_income, 2),
        payment_frequency=frequency.frequency,
        median_pay_gap_days=median_gap,
        avg_pay_gap_days=frequency.avg_pay_gap_days,
        cash_flow_buffer_months=cash_flow_buffer,
        has_variable_income=frequency.frequency == "irregular" or long_pay_gap,
        meets_threshold=meets_threshold,
    )


def analyze_income_for_user(store: FinancialDataStore, user_id: str, today: Optional[date] = None) -> IncomeSummary:
    """Run the income analysis for the short-term and long-term windows"""
    return IncomeSummary(
        user_id=user_id,
        short_term=analyze_income(store, user_id, TIME_WINDOWS.short_term, today),
        long_term=analyze_income(store, user_id, TIME_WINDOWS.long_term, today),
    )
