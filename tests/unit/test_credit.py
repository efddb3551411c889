"""Unit tests for credit analysis"""

from datetime import date, timedelta

import pytest

from spendsense.domain.features.credit import (
    analyze_credit,
    analyze_credit_for_user,
    calculate_utilization,
    check_overdue_status,
    detect_interest_charges,
    detect_minimum_payment_only,
    utilization_band,
)
from spendsense.domain.models import Account, Liability, Transaction
from tests.support import TODAY


def card(balance=-3000.0, limit=5000.0):
    return Account(
        account_id="card_4523",
        user_id="user_1",
        type="credit",
        subtype="credit card",
        current_balance=balance,
        credit_limit=limit,
    )


def test_calculate_utilization_medium_card():
    """Balance -3000 on a 5000 limit is 60%, medium but not high"""
    result = calculate_utilization(card(-3000.0, 5000.0))

    assert result.utilization == pytest.approx(0.6)
    assert result.utilization_percentage == 60.0
    assert result.utilization_level == "medium"
    assert result.is_medium_utilization
    assert not result.is_high_utilization


def test_calculate_utilization_prefers_statement_balance():
    liability = Liability(account_id="card_4523", last_statement_balance=4500.0)
    result = calculate_utilization(card(-1000.0, 5000.0), liability)

    assert result.utilization == pytest.approx(0.9)
    assert result.utilization_level == "high"


def test_calculate_utilization_zero_limit():
    result = calculate_utilization(card(-500.0, 0.0))

    assert result.utilization == 0.0
    assert result.utilization_level == "none"
    assert not result.is_low_utilization


@pytest.mark.parametrize(
    "utilization,band",
    [
        (0.0, "excellent"),
        (0.2999, "excellent"),
        (0.30, "low"),
        (0.4999, "low"),
        (0.50, "medium"),
        (0.7999, "medium"),
        (0.80, "high"),
        (1.5, "high"),
    ],
)
def test_utilization_band_boundaries(utilization, band):
    assert utilization_band(utilization) == band


def test_utilization_band_is_monotonic():
    order = ["excellent", "low", "medium", "high"]
    bands = [utilization_band(step / 100) for step in range(0, 121)]

    ranks = [order.index(band) for band in bands]
    assert ranks == sorted(ranks)
    assert set(bands) == set(order)


def test_detect_minimum_payment_only_within_tolerance():
    assert detect_minimum_payment_only(Liability("card", minimum_payment_amount=100.0, last_payment_amount=104.0))
    assert not detect_minimum_payment_only(Liability("card", minimum_payment_amount=100.0, last_payment_amount=106.0))
    assert not detect_minimum_payment_only(Liability("card", minimum_payment_amount=100.0, last_payment_amount=None))
    assert not detect_minimum_payment_only(None)


def test_check_overdue_status():
    today = date(2025, 6, 30)

    assert check_overdue_status(Liability("card", is_overdue=True), today)
    assert check_overdue_status(Liability("card", next_payment_due_date=date(2025, 6, 29)), today)
    assert not check_overdue_status(Liability("card", next_payment_due_date=today), today)
    assert not check_overdue_status(None, today)


def test_detect_interest_charges_matches_keywords():
    transactions = [
        Transaction("t1", "card", date(2025, 6, 1), -42.5, merchant_name="INTEREST CHARGE"),
        Transaction("t2", "card", date(2025, 6, 2), -10.0, category_detailed="Finance Charge"),
        Transaction("t3", "card", date(2025, 6, 3), -55.0, merchant_name="Grocery Mart"),
        Transaction("t4", "card", date(2025, 6, 4), 20.0, merchant_name="Interest refund"),
    ]

    result = detect_interest_charges(transactions)

    assert result.has_interest_charges
    assert result.interest_transaction_count == 2
    assert result.total_interest_charges == pytest.approx(52.5)


def test_analyze_credit_without_cards(store, make_user, make_account):
    make_user("user_1")
    make_account("chk_0001")

    result = analyze_credit(store, "user_1", 30, today=TODAY)

    assert result.credit_card_count == 0
    assert result.cards == ()
    assert result.max_utilization is None
    assert not result.meets_threshold
    assert not result.has_overdue
    assert result.window.end_date == TODAY


def test_analyze_credit_flags_high_utilization(store, high_utilization_user):
    summary = analyze_credit_for_user(store, high_utilization_user, today=TODAY)

    assert summary.has_credit_cards
    assert summary.meets_threshold
    assert summary.long_term.max_utilization == pytest.approx(0.85)
    assert summary.cards[0].account_name == "credit card ending in 4523"
    assert summary.cards[0].is_high_utilization


def test_analyze_credit_interest_in_window_only(store, make_user, make_account, make_transaction):
    make_user("user_1")
    make_account("card_0001", type="credit", subtype="credit card", current_balance=-100.0, credit_limit=5000.0)
    make_transaction("card_0001", TODAY - timedelta(days=60), -25.0, merchant_name="Interest Charge")

    summary = analyze_credit_for_user(store, "user_1", today=TODAY)

    assert not summary.short_term.has_interest_charges
    assert summary.long_term.has_interest_charges
    assert summary.meets_threshold
