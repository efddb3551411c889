"""Unit tests for the consent guardrail"""

from datetime import timedelta

import pytest

from spendsense.domain.exceptions import ConsentRequiredError
from spendsense.domain.guardrails.consent import check_consent, get_consent_status, has_consent, require_consent
from tests.support import NOW


def test_consent_record_is_authoritative(store, make_user, make_consent):
    make_user("user_1", consent_status="granted")
    make_consent("user_1", opted_in=False)

    status = get_consent_status(store, "user_1")

    assert status.status == "revoked"
    assert not status.has_consent
    assert status.consent_id is not None


def test_latest_consent_record_wins(store, make_user, make_consent):
    make_user("user_1", consent_status="revoked")
    make_consent("user_1", opted_in=False, timestamp=NOW - timedelta(days=3))
    make_consent("user_1", opted_in=True, timestamp=NOW)

    assert has_consent(store, "user_1")


def test_falls_back_to_user_consent_status(store, make_user):
    make_user("user_1", consent_status="granted")
    make_user("user_2", consent_status="revoked")

    assert get_consent_status(store, "user_1").status == "granted"
    assert get_consent_status(store, "user_2").status == "revoked"


def test_unknown_user_has_no_consent(store):
    status = get_consent_status(store, "ghost")

    assert status.status == "no_consent"
    assert status.message == "No consent record found. User has not opted in."


def test_require_consent(store, make_user):
    make_user("user_1", consent_status="revoked")

    with pytest.raises(ConsentRequiredError, match="User user_1 has not granted consent"):
        require_consent(store, "user_1")

    check = check_consent(store, "user_1")
    assert not check.allowed
    assert check.error == "User user_1 has not granted consent for data processing."
