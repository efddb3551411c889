"""Eligibility guardrail - keeps ineligible and predatory offers away from users"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional, Sequence

from spendsense.domain.constants import CREDIT_SCORE_ESTIMATE, CREDIT_THRESHOLDS, PROHIBITED_PRODUCT_TYPES
from spendsense.domain.exceptions import AnalyzerComputationError, IneligibleOfferError
from spendsense.domain.features.credit import CreditSummary, analyze_credit_for_user, utilization_band
from spendsense.domain.features.income import IncomeSummary, analyze_income_for_user
from spendsense.domain.models import Account, PartnerOffer
from spendsense.domain.ports import FinancialDataStore

PROHIBITED_DISQUALIFIER = "This product type is prohibited (predatory product)"


@dataclass(frozen=True)
class ThresholdCheck:
    required: float
    actual: Optional[float]
    meets_requirement: bool


@dataclass(frozen=True)
class AccountTypeCheck:
    excluded_types: tuple[str, ...]
    has_excluded_type: bool


@dataclass(frozen=True)
class EligibilityChecks:
    """Breakdown of every check that ran; None means the offer had no such requirement"""

    prohibited_product: bool = False
    income: Optional[ThresholdCheck] = None
    credit_score: Optional[ThresholdCheck] = None
    max_utilization: Optional[ThresholdCheck] = None
    account_type: Optional[AccountTypeCheck] = None


@dataclass(frozen=True)
class EligibilityResult:
    """Eligibility of one offer for one user"""

    is_eligible: bool
    reasons: tuple[str, ...] = ()
    disqualifiers: tuple[str, ...] = ()
    checks: EligibilityChecks = field(default_factory=EligibilityChecks)

    @property
    def hard_blocked(self) -> bool:
        return self.checks.prohibited_product


@dataclass(frozen=True)
class AnnotatedOffer:
    offer: PartnerOffer
    eligibility: EligibilityResult


@dataclass(frozen=True)
class FinancialProfile:
    """
    Attributes the guardrail derives for a user.

    annual_income and credit_score are None when they cannot be determined.
    max_utilization is 0.0 for users without cards and None when the credit
    analysis failed.
    """

    user_id: str
    annual_income: Optional[int]
    credit_score: Optional[int]
    max_utilization: Optional[float]
    accounts: tuple[Account, ...] = ()


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


def estimate_credit_score(credit: CreditSummary) -> Optional[int]:
    """
    Heuristic credit score proxy from card utilization and payment behaviour.

    Base score by the long-term maximum utilization:
    - < 30%:  750
    - 30-50%: 700
    - 50-80%: 650
    - 80-90%: 600
    - >= 90%: 550
    Penalties: interest charges -20, overdue -50, minimum-payment-only -10.
    Clamped to 300-850. Users without credit cards cannot be scored.
    """
    analysis = credit.long_term if credit.long_term.credit_card_count else credit.short_term
    if analysis.max_utilization is None:
        return None

    max_utilization = analysis.max_utilization
    if max_utilization >= CREDIT_THRESHOLDS.very_high_utilization:
        score = CREDIT_SCORE_ESTIMATE.very_high
    else:
        score = getattr(CREDIT_SCORE_ESTIMATE, utilization_band(max_utilization))

    if analysis.has_interest_charges:
        score -= CREDIT_SCORE_ESTIMATE.interest_penalty
    if analysis.has_overdue:
        score -= CREDIT_SCORE_ESTIMATE.overdue_penalty
    if analysis.has_minimum_payment_only:
        score -= CREDIT_SCORE_ESTIMATE.minimum_payment_penalty

    return max(CREDIT_SCORE_ESTIMATE.floor, min(CREDIT_SCORE_ESTIMATE.ceiling, score))


def estimate_annual_income(income: IncomeSummary) -> Optional[int]:
    """12x average monthly payroll income, long-term window preferred"""
    for analysis in (income.long_term, income.short_term):
        if analysis.avg_monthly_income > 0:
            return round(analysis.avg_monthly_income * 12)
    return None


def has_account_type(accounts: Iterable[Account], account_types: Iterable[str]) -> bool:
    """Fuzzy type/subtype match: case-insensitive substring in either direction"""
    wanted = [t.lower() for t in account_types if t]

    for account in accounts:
        for held in ((account.type or "").lower(), (account.subtype or "").lower()):
            if not held:
                continue
            if any(held in check or check in held for check in wanted):
                return True
    return False


def is_prohibited_product(offer: PartnerOffer) -> bool:
    """Category, type, title or description mentions a predatory product"""
    fields = [
        (offer.offer_category or "").lower(),
        (offer.offer_type or "").lower(),
        (offer.title or "").lower(),
        (offer.description or "").lower(),
    ]
    return any(prohibited in text for prohibited in PROHIBITED_PRODUCT_TYPES for text in fields)


def evaluate_offer(offer: PartnerOffer, profile: FinancialProfile) -> EligibilityResult:
    """
    Run the eligibility cascade for one offer against a derived profile.

    1. Prohibited product: hard block, no further checks
    2. Minimum annual income
    3. Minimum estimated credit score
    4. Maximum credit utilization (skipped when utilization is unknown)
    5. Excluded account types already held

    Checks 2-5 are soft: each failure adds its own disqualifier.
    """
    if is_prohibited_product(offer):
        return EligibilityResult(
            is_eligible=False,
            disqualifiers=(PROHIBITED_DISQUALIFIER,),
            checks=EligibilityChecks(prohibited_product=True),
        )

    requirements = offer.eligibility
    reasons: list[str] = []
    disqualifiers: list[str] = []
    income_check = credit_check = utilization_check = account_check = None

    if requirements.min_income is not None:
        income = profile.annual_income
        income_check = ThresholdCheck(
            required=requirements.min_income,
            actual=income,
            meets_requirement=income is not None and income >= requirements.min_income,
        )
        if income is None:
            disqualifiers.append(
                f"Cannot determine income. Requires minimum annual income of {_money(requirements.min_income)}"
            )
        elif income < requirements.min_income:
            disqualifiers.append(
                f"Requires minimum annual income of {_money(requirements.min_income)}. Your income: {_money(income)}"
            )
        else:
            reasons.append(f"Income requirement met: {_money(income)} >= {_money(requirements.min_income)}")

    if requirements.min_credit_score is not None:
        score = profile.credit_score
        credit_check = ThresholdCheck(
            required=requirements.min_credit_score,
            actual=score,
            meets_requirement=score is not None and score >= requirements.min_credit_score,
        )
        if score is None:
            disqualifiers.append(
                f"Cannot determine credit score. Requires minimum credit score of {requirements.min_credit_score}"
            )
        elif score < requirements.min_credit_score:
            disqualifiers.append(
                f"Requires minimum credit score of {requirements.min_credit_score}. Estimated score: {score}"
            )
        else:
            reasons.append(f"Credit score requirement met: {score} >= {requirements.min_credit_score}")

    if requirements.max_utilization is not None:
        utilization = profile.max_utilization
        if utilization is None:
            logging.warning(
                f"Could not check utilization for user {profile.user_id}",
                extra={"user_id": profile.user_id, "offer_id": offer.id, "step": "eligibility_utilization"},
            )
        else:
            ceiling = requirements.max_utilization
            utilization_check = ThresholdCheck(
                required=ceiling,
                actual=utilization,
                meets_requirement=utilization <= ceiling,
            )
            if utilization > ceiling:
                disqualifiers.append(
                    f"Requires credit utilization below {ceiling:.0%}. Current: {utilization:.0%}"
                )
            else:
                reasons.append(f"Credit utilization acceptable: {utilization:.0%} <= {ceiling:.0%}")

    excluded = requirements.excluded_account_types
    if excluded:
        has_excluded = has_account_type(profile.accounts, excluded)
        account_check = AccountTypeCheck(excluded_types=tuple(excluded), has_excluded_type=has_excluded)
        if has_excluded:
            disqualifiers.append(f"User already has a {' or '.join(excluded)} account")
        else:
            reasons.append(f"User does not have excluded account types: {', '.join(excluded)}")

    return EligibilityResult(
        is_eligible=not disqualifiers,
        reasons=tuple(reasons),
        disqualifiers=tuple(disqualifiers),
        checks=EligibilityChecks(
            prohibited_product=False,
            income=income_check,
            credit_score=credit_check,
            max_utilization=utilization_check,
            account_type=account_check,
        ),
    )


class EligibilityGuardrail:
    """Checks partner offers against a user's derived financial profile"""

    def __init__(self, store: FinancialDataStore, today: Optional[date] = None):
        self.store = store
        self.today = today

    def build_profile(self, user_id: str) -> FinancialProfile:
        """
        Derive income, credit score and utilization for a user.

        A failing analyzer leaves its attributes undetermined instead of
        aborting the eligibility check.
        """
        annual_income = None
        try:
            annual_income = estimate_annual_income(analyze_income_for_user(self.store, user_id, self.today))
        except AnalyzerComputationError as e:
            logging.warning(f"Error getting income for user {user_id}: {e}", extra={"user_id": user_id})

        credit_score = None
        max_utilization = None
        try:
            credit = analyze_credit_for_user(self.store, user_id, self.today)
            credit_score = estimate_credit_score(credit)
            max_utilization = credit.long_term.max_utilization or 0.0
        except AnalyzerComputationError as e:
            logging.warning(f"Error getting credit profile for user {user_id}: {e}", extra={"user_id": user_id})

        return FinancialProfile(
            user_id=user_id,
            annual_income=annual_income,
            credit_score=credit_score,
            max_utilization=max_utilization,
            accounts=tuple(self.store.list_accounts_for_user(user_id)),
        )

    def check_offer_eligibility(self, offer: PartnerOffer, user_id: str) -> EligibilityResult:
        """Evaluate one offer; prohibited products are rejected before any analysis runs"""
        if is_prohibited_product(offer):
            return evaluate_offer(offer, FinancialProfile(user_id, None, None, None))
        return evaluate_offer(offer, self.build_profile(user_id))

    def evaluate_offers(self, offers: Sequence[PartnerOffer], user_id: str) -> list[AnnotatedOffer]:
        """
        Eligibility of every offer, in input order.

        The profile is derived at most once, and only if some offer is not
        a prohibited product.
        """
        profile = None
        evaluated = []
        for offer in offers:
            if is_prohibited_product(offer):
                result = evaluate_offer(offer, FinancialProfile(user_id, None, None, None))
            else:
                if profile is None:
                    profile = self.build_profile(user_id)
                result = evaluate_offer(offer, profile)
            evaluated.append(AnnotatedOffer(offer=offer, eligibility=result))
        return evaluated

    def filter_eligible_offers(self, offers: Sequence[PartnerOffer], user_id: str) -> list[AnnotatedOffer]:
        """Keep eligible offers, each annotated with its eligibility result"""
        return [checked for checked in self.evaluate_offers(offers, user_id) if checked.eligibility.is_eligible]

    def require_eligible_offer(self, offer: PartnerOffer, user_id: str) -> EligibilityResult:
        """
        Guardrail form of check_offer_eligibility.

        Raises:
            IneligibleOfferError: offer failed any check
        """
        result = self.check_offer_eligibility(offer, user_id)
        if not result.is_eligible:
            raise IneligibleOfferError(offer.title or offer.id, user_id, list(result.disqualifiers))
        return result
