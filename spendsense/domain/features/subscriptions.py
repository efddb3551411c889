"""Subscription detection - recurring merchants, cadence and recurring spend"""

import statistics
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from spendsense.domain.constants import SUBSCRIPTION_THRESHOLDS, TIME_WINDOWS
from spendsense.domain.features.common import analyzer_errors, total_expenses
from spendsense.domain.models import Transaction, TransactionFilter, Window
from spendsense.domain.ports import FinancialDataStore
from spendsense.utils.date_utils import days_between, get_date_range

FAMILY = "subscriptions"

WEEKS_PER_MONTH = 4.33


@dataclass(frozen=True)
class Charge:
    date: date
    amount: float  # positive magnitude of the debit


@dataclass(frozen=True)
class RecurringMerchant:
    """Merchant charged at least three times in the detection lookback"""

    merchant_name: str
    charges: tuple[Charge, ...]

    @property
    def count(self) -> int:
        return len(self.charges)

    @property
    def total_spend(self) -> float:
        return sum(charge.amount for charge in self.charges)


@dataclass(frozen=True)
class Cadence:
    cadence: str  # monthly | weekly | irregular
    avg_days_between: Optional[float]


@dataclass(frozen=True)
class MerchantSubscription:
    """Recurring merchant restricted to the analysis window"""

    merchant_name: str
    count: int
    total_spend: float
    monthly_recurring_spend: float
    cadence: str
    avg_days_between: Optional[float]


@dataclass(frozen=True)
class SubscriptionAnalysis:
    """Subscription metrics for one window"""

    window: Window
    recurring_merchants: tuple[MerchantSubscription, ...]
    recurring_merchant_count: int
    total_subscription_spend: float
    total_monthly_recurring_spend: float
    subscription_share: float
    total_spend: float
    meets_threshold: bool


@dataclass(frozen=True)
class SubscriptionSummary:
    """Subscription analysis over both fixed windows"""

    user_id: str
    short_term: SubscriptionAnalysis
    long_term: SubscriptionAnalysis

    @property
    def has_recurring_subscriptions(self) -> bool:
        return self.short_term.recurring_merchant_count >= SUBSCRIPTION_THRESHOLDS.min_recurring_merchants

    @property
    def meets_threshold(self) -> bool:
        return self.short_term.meets_threshold or self.long_term.meets_threshold


def detect_recurring_merchants(transactions: Iterable[Transaction]) -> list[RecurringMerchant]:
    """Group debits by trimmed merchant name; keep merchants with >= 3 charges"""
    charges_by_merchant: dict[str, list[Charge]] = {}

    for transaction in transactions:
        if transaction.amount >= 0 or not transaction.merchant_name:
            continue
        merchant_name = transaction.merchant_name.strip()
        if not merchant_name:
            continue
        charges_by_merchant.setdefault(merchant_name, []).append(
            Charge(date=transaction.date, amount=abs(transaction.amount))
        )

    return [
        RecurringMerchant(merchant_name=name, charges=tuple(sorted(charges, key=lambda c: c.date)))
        for name, charges in charges_by_merchant.items()
        if len(charges) >= SUBSCRIPTION_THRESHOLDS.min_recurring_merchants
    ]


def calculate_cadence(charges: Sequence[Charge]) -> Cadence:
    """
    Infer billing cadence from the gaps between consecutive charges.

    A coefficient of variation above 0.5 is irregular. Otherwise the
    average gap decides: 25-35 days monthly, 5-10 days weekly.
    """
    if len(charges) < 2:
        return Cadence(cadence="irregular", avg_days_between=None)

    ordered = sorted(charges, key=lambda c: c.date)
    gaps = [days_between(prev.date, curr.date) for prev, curr in zip(ordered, ordered[1:])]
    avg_days = statistics.fmean(gaps)

    if avg_days <= 0:
        return Cadence(cadence="irregular", avg_days_between=0.0)

    coefficient_of_variation = statistics.pstdev(gaps) / avg_days

    if coefficient_of_variation > SUBSCRIPTION_THRESHOLDS.max_coefficient_of_variation:
        cadence = "irregular"
    elif 25 <= avg_days <= 35:
        cadence = "monthly"
    elif 5 <= avg_days <= 10:
        cadence = "weekly"
    else:
        cadence = "irregular"

    return Cadence(cadence=cadence, avg_days_between=round(avg_days, 1))


def calculate_monthly_recurring_spend(merchant: RecurringMerchant, cadence: Cadence) -> float:
    """Estimated monthly cost of a recurring merchant"""
    if merchant.count == 0:
        return 0.0

    average_amount = merchant.total_spend / merchant.count

    if cadence.cadence == "monthly":
        return average_amount
    if cadence.cadence == "weekly":
        return average_amount * WEEKS_PER_MONTH

    span_days = days_between(merchant.charges[0].date, merchant.charges[-1].date) if merchant.count > 1 else 0
    if span_days == 0:
        span_days = 30
    return (merchant.total_spend / span_days) * 30


def calculate_subscription_share(subscription_spend: float, total_spend: float) -> float:
    """Fraction of total spend going to subscriptions (0 when nothing was spent)"""
    if total_spend == 0:
        return 0.0
    return subscription_spend / total_spend


def analyze_subscriptions(
    store: FinancialDataStore,
    user_id: str,
    window_days: int,
    today: Optional[date] = None,
    lookback_days: int = SUBSCRIPTION_THRESHOLDS.recurring_period_days,
) -> SubscriptionAnalysis:
    """
    Analyze recurring subscriptions within a trailing window.

    Recurring merchants are detected over a fixed lookback ending at the
    window end; their metrics are computed on the charges that fall inside
    the analysis window.

    Raises:
        AnalyzerComputationError: storage or arithmetic failure
    """
    window = get_date_range(window_days, today)
    detection_filter = TransactionFilter(
        start_date=window.end_date - timedelta(days=lookback_days),
        end_date=window.end_date,
    )

    with analyzer_errors(FAMILY, user_id):
        window_transactions = store.list_transactions(user_id=user_id, filter=TransactionFilter.for_window(window))
        total_spend = total_expenses(window_transactions)

        merchants = []
        for recurring in detect_recurring_merchants(store.list_transactions(user_id=user_id, filter=detection_filter)):
            in_window = RecurringMerchant(
                merchant_name=recurring.merchant_name,
                charges=tuple(c for c in recurring.charges if window.contains(c.date)),
            )
            if in_window.count == 0:
                continue

            cadence = calculate_cadence(in_window.charges)
            merchants.append(
                MerchantSubscription(
                    merchant_name=in_window.merchant_name,
                    count=in_window.count,
                    total_spend=in_window.total_spend,
                    monthly_recurring_spend=calculate_monthly_recurring_spend(in_window, cadence),
                    cadence=cadence.cadence,
                    avg_days_between=cadence.avg_days_between,
                )
            )

        subscription_spend = sum(m.total_spend for m in merchants)
        subscription_share = calculate_subscription_share(subscription_spend, total_spend)
        monthly_recurring_spend = sum(m.monthly_recurring_spend for m in merchants)

    meets_threshold = len(merchants) >= SUBSCRIPTION_THRESHOLDS.min_recurring_merchants and (
        monthly_recurring_spend >= SUBSCRIPTION_THRESHOLDS.min_monthly_recurring_spend
        or subscription_share >= SUBSCRIPTION_THRESHOLDS.min_subscription_share
    )

    return SubscriptionAnalysis(
        window=window,
        recurring_merchants=tuple(merchants),
        recurring_merchant_count=len(merchants),
        total_subscription_spend=subscription_spend,
        total_monthly_recurring_spend=monthly_recurring_spend,
        subscription_share=subscription_share,
        total_spend=total_spend,
        meets_threshold=meets_threshold,
    )


def analyze_subscriptions_for_user(
    store: FinancialDataStore,
    user_id: str,
    today: Optional[date] = None,
) -> SubscriptionSummary:
    """Run the subscription analysis for the short-term and long-term windows"""
    return SubscriptionSummary(
        user_id=user_id,
        short_term=analyze_subscriptions(store, user_id, TIME_WINDOWS.short_term, today),
        long_term=analyze_subscriptions(store, user_id, TIME_WINDOWS.long_term, today),
    )
