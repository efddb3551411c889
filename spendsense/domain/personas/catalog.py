"""Persona definitions - behavioral archetypes with measurable criteria"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Iterator, Optional

from spendsense.domain.constants import (
    CREDIT_THRESHOLDS,
    INCOME_THRESHOLDS,
    NEW_USER_LOW_CREDIT_LIMIT,
    NEW_USER_MAX_ACCOUNT_AGE_DAYS,
    NEW_USER_MAX_ACCOUNTS,
    SAVINGS_THRESHOLDS,
    SUBSCRIPTION_THRESHOLDS,
)
from spendsense.domain.features.credit import CreditSummary
from spendsense.domain.features.income import IncomeAnalysis, IncomeSummary
from spendsense.domain.features.savings import SavingsAnalysis, SavingsSummary
from spendsense.domain.features.subscriptions import SubscriptionAnalysis, SubscriptionSummary
from spendsense.domain.models import User

ANALYZER_FAMILIES = ("credit", "income", "savings", "subscriptions")


@dataclass(frozen=True)
class PersonaInputs:
    """Everything a persona predicate may look at; None means the analysis is unavailable"""

    today: date
    user: Optional[User] = None
    account_count: int = 0
    credit: Optional[CreditSummary] = None
    income: Optional[IncomeSummary] = None
    savings: Optional[SavingsSummary] = None
    subscriptions: Optional[SubscriptionSummary] = None

    def restricted_to(self, families: frozenset[str]) -> "PersonaInputs":
        """Copy with every analyzer family outside `families` blanked out"""
        return replace(self, **{family: None for family in ANALYZER_FAMILIES if family not in families})


class Persona:
    """Base persona: subclasses implement matches() and rationale()"""

    id: str = ""
    name: str = ""
    description: str = ""
    priority: int = 0
    consumes: frozenset[str] = frozenset()
    educational_focus: str = ""
    recommendation_types: tuple[str, ...] = ()

    def matches(self, inputs: PersonaInputs) -> bool:
        raise NotImplementedError

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, priority={self.priority})"


class HighUtilizationPersona(Persona):
    """Any card >= 50% utilization, interest charges, minimum-payment-only or overdue"""

    id = "high_utilization"
    name = "High Utilization"
    description = "Users with high credit card utilization, interest charges, or payment issues"
    priority = 5
    consumes = frozenset({"credit"})
    educational_focus = "Reduce utilization and interest through payment planning and autopay education"
    recommendation_types = ("debt_paydown", "payment_planning", "autopay_setup", "balance_transfer")

    def matches(self, inputs: PersonaInputs) -> bool:
        if inputs.credit is None:
            return False
        return inputs.credit.meets_threshold

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        if inputs.credit is None or not inputs.credit.cards:
            return None

        cards = inputs.credit.cards
        reasons = []

        utilized = [c for c in cards if c.is_high_utilization] or [c for c in cards if c.is_medium_utilization]
        if utilized:
            card = utilized[0]
            reasons.append(f"your {card.account_name} has {card.utilization_percentage}% utilization")

        interest_cards = [c for c in cards if c.has_interest_charges]
        if interest_cards:
            reasons.append(f"you're paying ${interest_cards[0].total_interest_charges:.2f} in interest charges")

        if any(c.is_minimum_payment_only for c in cards):
            reasons.append("you're making minimum payments only")

        if any(c.is_overdue for c in cards):
            reasons.append("you have overdue payments")

        if not reasons:
            return "You have credit utilization concerns."
        return f"We noticed {', '.join(reasons)}."


def _variable_income_window(window: IncomeAnalysis) -> bool:
    return window.meets_threshold


class VariableIncomePersona(Persona):
    """Median pay gap > 45 days and cash-flow buffer < 1 month"""

    id = "variable_income"
    name = "Variable Income Budgeter"
    description = "Users with irregular income patterns and limited cash flow buffer"
    priority = 4
    consumes = frozenset({"income"})
    educational_focus = "Percent-based budgets, emergency fund basics, smoothing strategies"
    recommendation_types = ("budgeting", "emergency_fund", "income_smoothing", "savings_strategy")

    def matches(self, inputs: PersonaInputs) -> bool:
        if inputs.income is None:
            return False
        return _variable_income_window(inputs.income.short_term) or _variable_income_window(inputs.income.long_term)

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        if inputs.income is None:
            return None

        window = inputs.income.short_term
        if not _variable_income_window(window) and _variable_income_window(inputs.income.long_term):
            window = inputs.income.long_term

        reasons = []
        if window.median_pay_gap_days is not None and window.median_pay_gap_days > INCOME_THRESHOLDS.max_pay_gap_days:
            reasons.append(f"your paychecks come {window.median_pay_gap_days:g} days apart on average")
        if window.cash_flow_buffer_months < INCOME_THRESHOLDS.min_cash_flow_buffer_months:
            reasons.append(f"you have {window.cash_flow_buffer_months:.1f} months of expenses saved")

        if not reasons:
            return "You have variable income patterns."
        return f"We noticed {' and '.join(reasons)}."


def _subscription_heavy_window(window: SubscriptionAnalysis) -> bool:
    enough_merchants = window.recurring_merchant_count >= SUBSCRIPTION_THRESHOLDS.min_recurring_merchants
    enough_spend = window.total_monthly_recurring_spend >= SUBSCRIPTION_THRESHOLDS.min_monthly_recurring_spend
    enough_share = window.subscription_share >= SUBSCRIPTION_THRESHOLDS.min_subscription_share
    return enough_merchants and (enough_spend or enough_share)


class SubscriptionHeavyPersona(Persona):
    """>= 3 recurring merchants and (>= $50/month recurring or >= 10% of spend)"""

    id = "subscription_heavy"
    name = "Subscription-Heavy"
    description = "Users with multiple recurring subscriptions consuming significant spending"
    priority = 3
    consumes = frozenset({"subscriptions"})
    educational_focus = "Subscription audit, cancellation/negotiation tips, bill alerts"
    recommendation_types = ("subscription_audit", "bill_management", "spending_tracking", "negotiation_tips")

    def matches(self, inputs: PersonaInputs) -> bool:
        if inputs.subscriptions is None:
            return False
        summary = inputs.subscriptions
        return _subscription_heavy_window(summary.short_term) or _subscription_heavy_window(summary.long_term)

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        if inputs.subscriptions is None:
            return None

        window = inputs.subscriptions.short_term
        if not _subscription_heavy_window(window) and _subscription_heavy_window(inputs.subscriptions.long_term):
            window = inputs.subscriptions.long_term

        reasons = []
        if window.recurring_merchant_count >= SUBSCRIPTION_THRESHOLDS.min_recurring_merchants:
            reasons.append(f"you have {window.recurring_merchant_count} recurring subscriptions")
        if window.total_monthly_recurring_spend >= SUBSCRIPTION_THRESHOLDS.min_monthly_recurring_spend:
            reasons.append(f"you're spending ${window.total_monthly_recurring_spend:.2f}/month on subscriptions")
        if window.subscription_share >= SUBSCRIPTION_THRESHOLDS.min_subscription_share:
            reasons.append(f"subscriptions make up {window.subscription_share * 100:.0f}% of your spending")

        if not reasons:
            return "You have multiple recurring subscriptions."
        return f"We noticed {', '.join(reasons)}."


def _saving_window(window: SavingsAnalysis) -> bool:
    return (
        window.growth_rate >= SAVINGS_THRESHOLDS.min_growth_rate
        or window.monthly_net_inflow >= SAVINGS_THRESHOLDS.min_monthly_inflow
    )


def _all_cards_low_utilization(credit: Optional[CreditSummary]) -> bool:
    if credit is None:
        return True
    return all(card.utilization < CREDIT_THRESHOLDS.low_utilization for card in credit.cards)


class SavingsBuilderPersona(Persona):
    """Growth >= 2% or net inflow >= $200/month, with every card under 30% utilization"""

    id = "savings_builder"
    name = "Savings Builder"
    description = "Users actively building savings with good credit utilization"
    priority = 2
    # Card utilization gates the match as well as savings activity
    consumes = frozenset({"savings", "credit"})
    educational_focus = "Goal setting, automation, APY optimization (HYSA/CD basics)"
    recommendation_types = ("savings_goals", "automation", "hysa", "cd_basics", "investment_basics")

    def matches(self, inputs: PersonaInputs) -> bool:
        if inputs.savings is None:
            return False
        if not (_saving_window(inputs.savings.short_term) or _saving_window(inputs.savings.long_term)):
            return False
        return _all_cards_low_utilization(inputs.credit)

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        if inputs.savings is None:
            return None

        window = inputs.savings.short_term
        if not _saving_window(window) and _saving_window(inputs.savings.long_term):
            window = inputs.savings.long_term

        reasons = []
        if window.growth_rate >= SAVINGS_THRESHOLDS.min_growth_rate:
            reasons.append(f"your savings are growing at {window.growth_rate * 100:.1f}%")
        if window.monthly_net_inflow >= SAVINGS_THRESHOLDS.min_monthly_inflow:
            reasons.append(f"you're saving ${window.monthly_net_inflow:.2f}/month")
        if inputs.credit is not None and inputs.credit.cards and _all_cards_low_utilization(inputs.credit):
            reasons.append("you're keeping credit utilization low")

        if not reasons:
            return "You're actively building your savings."
        return f"Great job! We noticed {', '.join(reasons)}."


def _days_since_signup(user: User, today: date) -> int:
    return (today - user.created_at.date()).days


class NewUserPersona(Persona):
    """Joined within 90 days, no meaningful credit, at most two accounts; also the fallback"""

    id = "new_user"
    name = "New User"
    description = "Recently joined users with limited credit history or accounts"
    priority = 1
    consumes = frozenset({"credit"})
    educational_focus = "Build credit history, understand financial products, establish good habits"
    recommendation_types = ("credit_building", "first_credit_card", "financial_basics", "account_setup")

    def matches(self, inputs: PersonaInputs) -> bool:
        user = inputs.user
        if user is None or user.created_at is None:
            return False
        if _days_since_signup(user, inputs.today) > NEW_USER_MAX_ACCOUNT_AGE_DAYS:
            return False

        cards = inputs.credit.cards if inputs.credit is not None else ()
        limited_credit = all((card.limit or 0) < NEW_USER_LOW_CREDIT_LIMIT for card in cards)
        few_accounts = inputs.account_count <= NEW_USER_MAX_ACCOUNTS

        return limited_credit and few_accounts

    def rationale(self, inputs: PersonaInputs) -> Optional[str]:
        user = inputs.user
        if user is None or user.created_at is None:
            return None
        days = _days_since_signup(user, inputs.today)
        return (
            f"Welcome! You've been with us for {days} days. "
            "We'd like to help you build your financial foundation."
        )


@dataclass(frozen=True)
class PersonaMatch:
    """A persona whose predicate held, with the rationale it produced"""

    persona: Persona
    rationale: Optional[str]


def priority_order_key(persona: Persona) -> tuple[int, str]:
    """Higher priority first; equal priorities ordered by persona id"""
    return (-persona.priority, persona.id)


def _normalize_name(value: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in value.lower())


@dataclass(frozen=True)
class PersonaCatalog:
    """Immutable, ordered set of personas plus the fallback persona id"""

    personas: tuple[Persona, ...]
    default_persona_id: str = NewUserPersona.id

    def __post_init__(self) -> None:
        ids = [persona.id for persona in self.personas]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate persona ids in catalog: {ids}")
        if self.default_persona_id not in ids:
            raise ValueError(f"Default persona {self.default_persona_id!r} is not in the catalog")

    def __iter__(self) -> Iterator[Persona]:
        return iter(self.personas)

    def __len__(self) -> int:
        return len(self.personas)

    def get(self, persona_id: str) -> Optional[Persona]:
        normalized = persona_id.lower()
        return next((p for p in self.personas if p.id == normalized), None)

    def get_by_name(self, persona_name: str) -> Optional[Persona]:
        """Lookup by display name, e.g. 'Savings Builder' or 'subscription-heavy'"""
        normalized = _normalize_name(persona_name)
        return next((p for p in self.personas if normalized in (p.id, _normalize_name(p.name))), None)

    @property
    def default_persona(self) -> Persona:
        return self.get(self.default_persona_id)


def build_default_catalog() -> PersonaCatalog:
    return PersonaCatalog(
        personas=(
            HighUtilizationPersona(),
            VariableIncomePersona(),
            SubscriptionHeavyPersona(),
            SavingsBuilderPersona(),
            NewUserPersona(),
        )
    )


DEFAULT_CATALOG = build_default_catalog()
