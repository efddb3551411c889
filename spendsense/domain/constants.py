"""Fixed thresholds for behavioral analysis, personas and eligibility"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeWindows:
    short_term: int = 30
    long_term: int = 180


@dataclass(frozen=True)
class CreditThresholds:
    low_utilization: float = 0.30
    medium_utilization: float = 0.50
    high_utilization: float = 0.80
    very_high_utilization: float = 0.90
    minimum_payment_tolerance: float = 0.05


@dataclass(frozen=True)
class IncomeThresholds:
    max_pay_gap_days: float = 45
    min_cash_flow_buffer_months: float = 1
    max_coefficient_of_variation: float = 0.4


@dataclass(frozen=True)
class SavingsThresholds:
    min_growth_rate: float = 0.02
    min_monthly_inflow: float = 200


@dataclass(frozen=True)
class SubscriptionThresholds:
    min_recurring_merchants: int = 3
    recurring_period_days: int = 90
    min_monthly_recurring_spend: float = 50
    min_subscription_share: float = 0.10
    max_coefficient_of_variation: float = 0.5


@dataclass(frozen=True)
class CreditScoreEstimate:
    """Heuristic credit score proxy, not a bureau score"""

    excellent: int = 750
    low: int = 700
    medium: int = 650
    high: int = 600
    very_high: int = 550
    interest_penalty: int = 20
    overdue_penalty: int = 50
    minimum_payment_penalty: int = 10
    floor: int = 300
    ceiling: int = 850


TIME_WINDOWS = TimeWindows()
CREDIT_THRESHOLDS = CreditThresholds()
INCOME_THRESHOLDS = IncomeThresholds()
SAVINGS_THRESHOLDS = SavingsThresholds()
SUBSCRIPTION_THRESHOLDS = SubscriptionThresholds()
CREDIT_SCORE_ESTIMATE = CreditScoreEstimate()

# Average month length used to normalise window totals to per-month figures
DAYS_PER_MONTH = 30.44

SAVINGS_SUBTYPES = ("savings", "money market", "hsa", "cash management")

INTEREST_KEYWORDS = ("interest", "finance charge", "apr", "annual percentage")

PAYROLL_KEYWORDS = (
    "payroll",
    "salary",
    "wages",
    "paycheck",
    "direct deposit",
    "employer",
    "pay",
    "income",
    "pay stub",
    "directdeposit",
)

PAYROLL_CHANNELS = ("ach", "direct_deposit")

# Predatory product categories; matched as case-insensitive substrings
PROHIBITED_PRODUCT_TYPES = (
    "payday",
    "title loan",
    "cash advance",
    "rent-to-own",
    "rent to own",
    "pawn",
    "check cashing",
    "refund anticipation",
    "debt settlement",
    "credit repair",
)

NEW_USER_MAX_ACCOUNT_AGE_DAYS = 90
NEW_USER_MAX_ACCOUNTS = 2
NEW_USER_LOW_CREDIT_LIMIT = 1000
