"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """Customer record as seen by the analysis core"""

    user_id: str
    name: str
    consent_status: str = "revoked"  # "granted" or "revoked"
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Account:
    """Financial account (checking, savings, credit card, loan, ...)"""

    account_id: str
    user_id: str
    type: str  # depository | credit | loan | investment | other
    subtype: Optional[str] = None
    available_balance: Optional[float] = None
    current_balance: Optional[float] = None
    credit_limit: Optional[float] = None
    iso_currency_code: str = "USD"


@dataclass(frozen=True)
class Transaction:
    """Posted or pending transaction; positive amount = inflow, negative = outflow"""

    transaction_id: str
    account_id: str
    date: date
    amount: float
    merchant_name: Optional[str] = None
    payment_channel: Optional[str] = None
    category_primary: Optional[str] = None
    category_detailed: Optional[str] = None
    pending: bool = False


@dataclass(frozen=True)
class Liability:
    """Statement data for a credit account"""

    account_id: str
    apr_percentage: Optional[float] = None
    minimum_payment_amount: Optional[float] = None
    last_payment_amount: Optional[float] = None
    last_statement_balance: Optional[float] = None
    is_overdue: bool = False
    next_payment_due_date: Optional[date] = None


@dataclass(frozen=True)
class Consent:
    """Latest opt-in/opt-out record for a user"""

    user_id: str
    opted_in: bool
    timestamp: Optional[datetime] = None
    consent_id: Optional[int] = None


@dataclass(frozen=True)
class Window:
    """Trailing date range ending at analysis time (bounds inclusive)"""

    start_date: date
    end_date: date

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class TransactionFilter:
    """Date/pending filter for transaction queries"""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    include_pending: bool = False

    @classmethod
    def for_window(cls, window: Window, include_pending: bool = False) -> "TransactionFilter":
        return cls(start_date=window.start_date, end_date=window.end_date, include_pending=include_pending)


@dataclass(frozen=True)
class OfferEligibility:
    """Requirements a partner attaches to an offer; None means no requirement"""

    min_income: Optional[float] = None
    min_credit_score: Optional[int] = None
    max_utilization: Optional[float] = None
    excluded_account_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class PartnerOffer:
    """Third-party product that may be recommended to a user"""

    id: str
    title: str
    offer_category: str
    description: str = ""
    offer_type: str = ""
    partner_name: str = ""
    persona_fit: tuple[str, ...] = ()
    recommendation_types: tuple[str, ...] = ()
    eligibility: OfferEligibility = field(default_factory=OfferEligibility)
