"""Unit tests for subscription detection"""

from datetime import timedelta

import pytest

from spendsense.domain.features.subscriptions import (
    Cadence,
    Charge,
    RecurringMerchant,
    analyze_subscriptions,
    analyze_subscriptions_for_user,
    calculate_cadence,
    calculate_monthly_recurring_spend,
    calculate_subscription_share,
    detect_recurring_merchants,
)
from spendsense.domain.models import Transaction
from tests.support import TODAY


def charges(name: str, amount: float, days_ago: list[int]) -> list[Transaction]:
    return [
        Transaction(f"{name}_{d}", "chk_0001", TODAY - timedelta(days=d), -amount, merchant_name=name)
        for d in days_ago
    ]


def test_detect_recurring_merchants_requires_three_charges():
    transactions = (
        charges("Netflix", 15.99, [0, 30, 60])
        + charges("Gym", 40.0, [0, 30])
        + [Transaction("refund", "chk_0001", TODAY, 15.99, merchant_name="Netflix")]
    )

    merchants = detect_recurring_merchants(transactions)

    assert [m.merchant_name for m in merchants] == ["Netflix"]
    assert merchants[0].count == 3


def test_detect_recurring_merchants_trims_names():
    transactions = charges("Spotify ", 9.99, [0, 30]) + charges("Spotify", 9.99, [60])

    merchants = detect_recurring_merchants(transactions)

    assert len(merchants) == 1
    assert merchants[0].merchant_name == "Spotify"


def test_monthly_netflix():
    """Three $15.99 charges 30 days apart are a monthly subscription"""
    merchant = detect_recurring_merchants(charges("Netflix", 15.99, [0, 30, 60]))[0]
    cadence = calculate_cadence(merchant.charges)

    assert merchant.count == 3
    assert cadence.cadence == "monthly"
    assert 25 <= cadence.avg_days_between <= 35
    assert calculate_monthly_recurring_spend(merchant, cadence) == pytest.approx(15.99)


def test_weekly_cadence_spend():
    merchant = detect_recurring_merchants(charges("Meal Kit", 10.0, [0, 7, 14, 21]))[0]
    cadence = calculate_cadence(merchant.charges)

    assert cadence.cadence == "weekly"
    assert calculate_monthly_recurring_spend(merchant, cadence) == pytest.approx(43.3)


def test_irregular_cadence_spend_uses_span():
    merchant = detect_recurring_merchants(charges("Parking", 20.0, [0, 3, 60]))[0]
    cadence = calculate_cadence(merchant.charges)

    assert cadence.cadence == "irregular"
    # 60 spent across a 60 day span
    assert calculate_monthly_recurring_spend(merchant, cadence) == pytest.approx(30.0)


def test_same_day_cluster_counts_as_thirty_days():
    merchant = RecurringMerchant("Arcade", tuple(Charge(TODAY, 5.0) for _ in range(3)))
    cadence = calculate_cadence(merchant.charges)

    assert cadence == Cadence(cadence="irregular", avg_days_between=0.0)
    assert calculate_monthly_recurring_spend(merchant, cadence) == pytest.approx(15.0)


def test_subscription_share_edge_cases():
    assert calculate_subscription_share(0, 250.0) == 0
    assert calculate_subscription_share(80.0, 80.0) == 1.0
    assert calculate_subscription_share(80.0, 0) == 0


def test_analyze_subscriptions_without_transactions(store, make_user, make_account):
    make_user("user_1")
    make_account("chk_0001")

    result = analyze_subscriptions(store, "user_1", 30, today=TODAY)

    assert result.recurring_merchant_count == 0
    assert result.subscription_share == 0
    assert result.total_spend == 0
    assert not result.meets_threshold


def test_analyze_subscriptions_heavy_user(store, make_user, make_account, make_transaction):
    make_user("user_1")
    make_account("chk_0001", current_balance=1000.0)
    for name, amount in (("Netflix", 15.99), ("Spotify", 9.99), ("Cloud Storage", 29.99)):
        for days_ago in (1, 31, 61):
            make_transaction("chk_0001", TODAY - timedelta(days=days_ago), -amount, merchant_name=name)
    make_transaction("chk_0001", TODAY - timedelta(days=2), -120.0, merchant_name="Grocery Mart")

    summary = analyze_subscriptions_for_user(store, "user_1", today=TODAY)
    long_term = summary.long_term

    assert summary.has_recurring_subscriptions
    assert long_term.recurring_merchant_count == 3
    assert long_term.total_monthly_recurring_spend == pytest.approx(15.99 + 9.99 + 29.99)
    assert long_term.meets_threshold
    assert summary.meets_threshold
    assert {m.cadence for m in long_term.recurring_merchants} == {"monthly"}
