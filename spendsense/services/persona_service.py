"""Persona assignment - run the analyzers, resolve a persona, record the outcome"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, Optional

from spendsense.domain.exceptions import AnalyzerComputationError, DomainException, UserNotFoundError
from spendsense.domain.features.credit import CreditSummary, analyze_credit_for_user
from spendsense.domain.features.income import IncomeSummary, analyze_income_for_user
from spendsense.domain.features.savings import SavingsSummary, analyze_savings_for_user
from spendsense.domain.features.subscriptions import SubscriptionSummary, analyze_subscriptions_for_user
from spendsense.domain.personas.catalog import DEFAULT_CATALOG, Persona, PersonaCatalog, PersonaInputs
from spendsense.domain.personas.resolver import resolve_persona
from spendsense.domain.personas.trace import DecisionTrace
from spendsense.domain.ports import FinancialDataStore
from spendsense.infrastructure.observability.logging import log_persona_assignment
from spendsense.infrastructure.observability.metrics import record_analyzer_failure, record_persona_assignment

ANALYZERS: dict[str, Callable[[FinancialDataStore, str, Optional[date]], object]] = {
    "credit": analyze_credit_for_user,
    "income": analyze_income_for_user,
    "savings": analyze_savings_for_user,
    "subscriptions": analyze_subscriptions_for_user,
}


@dataclass(frozen=True)
class BehavioralSignals:
    """Analyzer summaries for one user; a family is None when its analyzer failed"""

    credit: Optional[CreditSummary] = None
    income: Optional[IncomeSummary] = None
    savings: Optional[SavingsSummary] = None
    subscriptions: Optional[SubscriptionSummary] = None
    failed_families: tuple[str, ...] = ()


@dataclass(frozen=True)
class PersonaAssignment:
    user_id: str
    persona: Persona
    rationale: str
    matching_personas: tuple[Persona, ...]
    decision_trace: DecisionTrace
    signals: BehavioralSignals


@dataclass(frozen=True)
class BatchAssignmentResult:
    user_id: str
    assignment: Optional[PersonaAssignment] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.assignment is not None


class PersonaService:
    """Assigns personas to users from their stored financial data"""

    def __init__(self, store: FinancialDataStore, catalog: PersonaCatalog = DEFAULT_CATALOG):
        self.store = store
        self.catalog = catalog

    def analyze_user(self, user_id: str, today: Optional[date] = None) -> BehavioralSignals:
        """Run every analyzer family; a failing family degrades to None"""
        summaries = {}
        failed = []

        for family, analyzer in ANALYZERS.items():
            try:
                summaries[family] = analyzer(self.store, user_id, today)
            except AnalyzerComputationError as e:
                logging.warning(str(e), extra={"user_id": user_id, "family": family, "step": "analyzer"})
                record_analyzer_failure(family)
                failed.append(family)

        return BehavioralSignals(**summaries, failed_families=tuple(failed))

    def assign_persona_to_user(self, user_id: str, now: Optional[datetime] = None) -> PersonaAssignment:
        """
        Assign the highest priority matching persona.

        Flow:
        1. Load the user
        2. Run the four analyzers for both windows
        3. Resolve the persona against the catalog
        4. Log and count the assignment

        Raises:
            UserNotFoundError: unknown user
            DataAccessError: user or account lookup failed
        """
        now = now or datetime.now(timezone.utc)
        today = now.date()

        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        signals = self.analyze_user(user_id, today)
        inputs = PersonaInputs(
            today=today,
            user=user,
            account_count=len(self.store.list_accounts_for_user(user_id)),
            credit=signals.credit,
            income=signals.income,
            savings=signals.savings,
            subscriptions=signals.subscriptions,
        )
        resolution = resolve_persona(self.catalog, inputs, now)

        record_persona_assignment(resolution.persona.id)
        log_persona_assignment(
            user_id=user_id,
            persona_id=resolution.persona.id,
            matching_persona_ids=[p.id for p in resolution.matching_personas],
            failed_families=signals.failed_families,
            decision_trace=resolution.decision_trace.to_dict(),
        )

        return PersonaAssignment(
            user_id=user_id,
            persona=resolution.persona,
            rationale=resolution.rationale,
            matching_personas=resolution.matching_personas,
            decision_trace=resolution.decision_trace,
            signals=signals,
        )

    def assign_personas_to_users(
        self, user_ids: Iterable[str], now: Optional[datetime] = None
    ) -> list[BatchAssignmentResult]:
        """Assign personas to many users; a failure is reported per user"""
        results = []
        for user_id in user_ids:
            try:
                assignment = self.assign_persona_to_user(user_id, now)
            except DomainException as e:
                logging.error(f"Persona assignment failed: {e}", extra={"user_id": user_id})
                results.append(BatchAssignmentResult(user_id=user_id, error=str(e)))
                continue
            results.append(BatchAssignmentResult(user_id=user_id, assignment=assignment))
        return results
