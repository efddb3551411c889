"""Consent guardrail - no data processing without an opt-in"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from spendsense.domain.exceptions import ConsentRequiredError
from spendsense.domain.ports import FinancialDataStore

GRANTED_MESSAGE = "User has granted consent for data processing."
REVOKED_MESSAGE = "User has revoked consent. Data processing is blocked."
NO_CONSENT_MESSAGE = "No consent record found. User has not opted in."


@dataclass(frozen=True)
class ConsentStatus:
    user_id: str
    has_consent: bool
    status: str  # granted | revoked | no_consent
    message: str
    timestamp: Optional[datetime] = None
    consent_id: Optional[int] = None


@dataclass(frozen=True)
class ConsentCheck:
    allowed: bool
    error: Optional[str] = None


def get_consent_status(store: FinancialDataStore, user_id: str) -> ConsentStatus:
    """
    Consent status of a user.

    The latest consent record is authoritative. Without one, the user's own
    consent_status decides; anything other than granted/revoked is no_consent.
    """
    consent = store.get_consent(user_id)
    if consent is not None:
        return ConsentStatus(
            user_id=user_id,
            has_consent=consent.opted_in,
            status="granted" if consent.opted_in else "revoked",
            message=GRANTED_MESSAGE if consent.opted_in else REVOKED_MESSAGE,
            timestamp=consent.timestamp,
            consent_id=consent.consent_id,
        )

    user = store.get_user(user_id)
    if user is not None and user.consent_status == "granted":
        return ConsentStatus(user_id=user_id, has_consent=True, status="granted", message=GRANTED_MESSAGE)
    if user is not None and user.consent_status == "revoked":
        return ConsentStatus(user_id=user_id, has_consent=False, status="revoked", message=REVOKED_MESSAGE)

    return ConsentStatus(user_id=user_id, has_consent=False, status="no_consent", message=NO_CONSENT_MESSAGE)


def has_consent(store: FinancialDataStore, user_id: str) -> bool:
    return get_consent_status(store, user_id).has_consent


def require_consent(store: FinancialDataStore, user_id: str) -> None:
    """
    Raises:
        ConsentRequiredError: user has not opted in
    """
    if not has_consent(store, user_id):
        raise ConsentRequiredError(user_id)


def check_consent(store: FinancialDataStore, user_id: str) -> ConsentCheck:
    """Non-raising form of require_consent"""
    if has_consent(store, user_id):
        return ConsentCheck(allowed=True)
    return ConsentCheck(allowed=False, error=f"User {user_id} has not granted consent for data processing.")
