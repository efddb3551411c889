"""Unit tests for the eligibility guardrail"""

from datetime import timedelta

import pytest

from spendsense.domain.exceptions import IneligibleOfferError
from spendsense.domain.features.credit import analyze_credit_for_user
from spendsense.domain.features.income import analyze_income_for_user
from spendsense.domain.guardrails.eligibility import (
    PROHIBITED_DISQUALIFIER,
    EligibilityGuardrail,
    FinancialProfile,
    estimate_annual_income,
    estimate_credit_score,
    evaluate_offer,
    has_account_type,
    is_prohibited_product,
)
from spendsense.domain.models import Account, OfferEligibility, PartnerOffer
from tests.support import TODAY


def offer(offer_id="offer_1", title="Rewards Card", category="credit_card", description="", **eligibility):
    return PartnerOffer(
        id=offer_id,
        title=title,
        offer_category=category,
        description=description,
        eligibility=OfferEligibility(**eligibility),
    )


def profile(annual_income=60000, credit_score=720, max_utilization=0.2, accounts=()):
    return FinancialProfile(
        user_id="user_1",
        annual_income=annual_income,
        credit_score=credit_score,
        max_utilization=max_utilization,
        accounts=tuple(accounts),
    )


@pytest.mark.parametrize(
    "fields",
    [
        {"category": "payday_loan"},
        {"title": "Quick Title Loan"},
        {"description": "Get a cash advance today"},
        {"title": "Rent-to-Own Furniture"},
    ],
)
def test_prohibited_products_are_hard_blocked(fields):
    predatory = offer(**fields)

    result = evaluate_offer(predatory, profile(annual_income=500000, credit_score=850, max_utilization=0.0))

    assert is_prohibited_product(predatory)
    assert not result.is_eligible
    assert result.hard_blocked
    assert result.disqualifiers == (PROHIBITED_DISQUALIFIER,)
    assert result.checks.income is None


def test_offer_without_requirements_is_eligible():
    result = evaluate_offer(offer(), profile())

    assert result.is_eligible
    assert result.disqualifiers == ()
    assert not result.hard_blocked


def test_undeterminable_income_is_ineligible():
    result = evaluate_offer(offer(min_income=50000), profile(annual_income=None))

    assert not result.is_eligible
    assert result.disqualifiers == ("Cannot determine income. Requires minimum annual income of $50,000",)
    assert not result.checks.income.meets_requirement


def test_income_below_minimum():
    result = evaluate_offer(offer(min_income=50000), profile(annual_income=42000))

    assert result.disqualifiers == ("Requires minimum annual income of $50,000. Your income: $42,000",)


def test_every_soft_failure_is_reported():
    strict = offer(min_income=80000, min_credit_score=700, max_utilization=0.3, excluded_account_types=("savings",))
    accounts = [Account("sav_1", "user_1", "depository", "savings")]

    result = evaluate_offer(strict, profile(annual_income=40000, credit_score=None, max_utilization=0.65, accounts=accounts))

    assert not result.is_eligible
    assert not result.hard_blocked
    assert result.disqualifiers == (
        "Requires minimum annual income of $80,000. Your income: $40,000",
        "Cannot determine credit score. Requires minimum credit score of 700",
        "Requires credit utilization below 30%. Current: 65%",
        "User already has a savings account",
    )


def test_passing_checks_record_reasons():
    result = evaluate_offer(
        offer(min_income=30000, min_credit_score=650, max_utilization=0.5, excluded_account_types=("cd",)),
        profile(),
    )

    assert result.is_eligible
    assert result.reasons == (
        "Income requirement met: $60,000 >= $30,000",
        "Credit score requirement met: 720 >= 650",
        "Credit utilization acceptable: 20% <= 50%",
        "User does not have excluded account types: cd",
    )
    assert result.checks.credit_score.actual == 720


def test_unknown_utilization_skips_check(caplog):
    result = evaluate_offer(offer(max_utilization=0.3), profile(max_utilization=None))

    assert result.is_eligible
    assert result.checks.max_utilization is None
    assert "Could not check utilization" in caplog.text


def test_has_account_type_is_fuzzy():
    accounts = [Account("sav_1", "user_1", "depository", "savings")]

    assert has_account_type(accounts, ["high_yield_savings"])
    assert has_account_type(accounts, ["SAVINGS"])
    assert not has_account_type(accounts, ["credit"])
    assert not has_account_type([Account("x", "user_1", "", "")], ["credit"])
    assert not has_account_type(accounts, [""])


def test_estimate_credit_score_without_cards(store, make_user, make_account):
    make_user("user_1")
    make_account("chk_0001")

    assert estimate_credit_score(analyze_credit_for_user(store, "user_1", today=TODAY)) is None


@pytest.mark.parametrize(
    "balance,expected",
    [(-1000.0, 750), (-2000.0, 700), (-3000.0, 650), (-4250.0, 600), (-4750.0, 550)],
)
def test_estimate_credit_score_bands(store, make_user, make_account, balance, expected):
    make_user("user_1")
    make_account("card_0001", type="credit", subtype="credit card", current_balance=balance, credit_limit=5000.0)

    assert estimate_credit_score(analyze_credit_for_user(store, "user_1", today=TODAY)) == expected


def test_estimate_credit_score_penalties(store, make_user, make_account, make_liability, make_transaction):
    make_user("user_1")
    make_account("card_0001", type="credit", subtype="credit card", current_balance=-1000.0, credit_limit=5000.0)
    make_liability("card_0001", is_overdue=True, minimum_payment_amount=50.0, last_payment_amount=50.0)
    make_transaction("card_0001", TODAY - timedelta(days=10), -18.0, merchant_name="Interest Charge")

    # 750 - 20 interest - 50 overdue - 10 minimum payment
    assert estimate_credit_score(analyze_credit_for_user(store, "user_1", today=TODAY)) == 670


def test_estimate_annual_income(store, make_user, make_account, make_transaction):
    make_user("user_1")
    make_account("chk_0001")

    assert estimate_annual_income(analyze_income_for_user(store, "user_1", today=TODAY)) is None

    for days_ago in (10, 40, 70, 100, 130, 160):
        make_transaction("chk_0001", TODAY - timedelta(days=days_ago), 3000.0, merchant_name="Payroll", payment_channel="ach")

    monthly = round(18000 / (180 / 30.44), 2)
    assert estimate_annual_income(analyze_income_for_user(store, "user_1", today=TODAY)) == round(monthly * 12)


def test_guardrail_blocks_prohibited_offer_without_analysis(store):
    # Unknown user with no data: the prohibited check must not need any
    result = EligibilityGuardrail(store, TODAY).check_offer_eligibility(offer(category="payday loan"), "nobody")

    assert result.hard_blocked


def test_guardrail_filter_keeps_annotated_eligible_offers(store, high_utilization_user):
    offers = [
        offer("needs_low_utilization", max_utilization=0.3),
        offer("open_to_all"),
        offer("predatory", title="Payday Advance"),
    ]

    eligible = EligibilityGuardrail(store, TODAY).filter_eligible_offers(offers, high_utilization_user)

    assert [checked.offer.id for checked in eligible] == ["open_to_all"]
    assert eligible[0].eligibility.is_eligible


def test_require_eligible_offer_raises(store, high_utilization_user):
    guardrail = EligibilityGuardrail(store, TODAY)

    with pytest.raises(IneligibleOfferError) as exc_info:
        guardrail.require_eligible_offer(offer(title="Balance Transfer", max_utilization=0.3), high_utilization_user)

    assert exc_info.value.disqualifiers == ["Requires credit utilization below 30%. Current: 85%"]
    assert 'Offer "Balance Transfer" is not eligible for user user_1' in str(exc_info.value)
