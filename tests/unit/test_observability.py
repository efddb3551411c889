"""Unit tests for structured logging, metrics and session helpers"""

import json
import logging

from sqlalchemy.orm import Session

from spendsense.domain.guardrails.eligibility import EligibilityChecks, EligibilityResult
from spendsense.infrastructure.database.repositories import SqlAlchemyFinancialDataStore
from spendsense.infrastructure.database.session import engine, engine_options, financial_data_store, get_db
from spendsense.infrastructure.observability.logging import (
    CustomJsonFormatter,
    log_eligibility_decision,
    log_persona_assignment,
    setup_logging,
)
from spendsense.infrastructure.observability.metrics import eligibility_outcome


def test_json_formatter_adds_service_metadata():
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    record = logging.LogRecord("spendsense", logging.INFO, __file__, 1, "Persona assigned", None, None)
    record.persona_id = "savings_builder"

    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Persona assigned"
    assert payload["level"] == "INFO"
    assert payload["service"] == "spendsense-core"
    assert payload["persona_id"] == "savings_builder"
    assert "timestamp" in payload


def test_log_helpers_pass_structured_fields(caplog):
    caplog.set_level(logging.INFO)

    log_persona_assignment("user_1", "new_user", [], ["income"], {"selected_persona": "new_user"})
    log_eligibility_decision("user_1", "offer_1", "soft_fail", ["Requires minimum credit score of 700"])

    assignment, eligibility = caplog.records
    assert assignment.step == "persona_assigned"
    assert assignment.failed_families == ["income"]
    assert eligibility.eligibility_outcome == "soft_fail"
    assert eligibility.disqualifiers == ["Requires minimum credit score of 700"]


def test_eligibility_outcome_labels():
    assert eligibility_outcome(EligibilityResult(is_eligible=True)) == "eligible"
    assert eligibility_outcome(EligibilityResult(is_eligible=False, disqualifiers=("x",))) == "soft_fail"
    blocked = EligibilityResult(is_eligible=False, checks=EligibilityChecks(prohibited_product=True))
    assert eligibility_outcome(blocked) == "hard_block"


def test_engine_options_per_backend():
    assert engine_options("sqlite:///./spendsense.db") == {"connect_args": {"check_same_thread": False}}
    assert engine_options("postgresql://localhost/spendsense")["pool_pre_ping"] is True


def test_get_db_yields_and_closes_session():
    sessions = get_db()
    db = next(sessions)

    assert isinstance(db, Session)
    sessions.close()


def test_financial_data_store_wraps_a_session():
    with financial_data_store() as store:
        assert isinstance(store, SqlAlchemyFinancialDataStore)
        assert store.db.get_bind() is engine


def test_setup_logging_installs_json_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("DEBUG")

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
