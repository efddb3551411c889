"""Partner offer recommendations - consent, persona and eligibility in one flow"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

from spendsense.domain.exceptions import OfferCatalogError, UserNotFoundError
from spendsense.domain.guardrails.consent import require_consent
from spendsense.domain.guardrails.eligibility import AnnotatedOffer, EligibilityGuardrail, EligibilityResult
from spendsense.domain.guardrails.tone import ProhibitedPhrases, check_tone
from spendsense.domain.models import PartnerOffer
from spendsense.domain.offers import eligible_only, evaluate_offers_for_persona, get_offer_by_id
from spendsense.domain.personas.catalog import DEFAULT_CATALOG, PersonaCatalog
from spendsense.domain.ports import FinancialDataStore
from spendsense.infrastructure.catalog.partner_offers import load_partner_offers
from spendsense.infrastructure.catalog.prohibited_phrases import load_prohibited_phrases
from spendsense.infrastructure.observability.logging import log_eligibility_decision
from spendsense.infrastructure.observability.metrics import record_eligibility, record_tone_rejection
from spendsense.services.persona_service import PersonaAssignment, PersonaService


@dataclass(frozen=True)
class Recommendation:
    user_id: str
    assignment: PersonaAssignment
    offers: tuple[AnnotatedOffer, ...]


class RecommendationService:
    """Selects eligible partner offers for a consenting user's persona"""

    def __init__(
        self,
        store: FinancialDataStore,
        offers: Optional[Sequence[PartnerOffer]] = None,
        catalog: PersonaCatalog = DEFAULT_CATALOG,
        max_offers: int = 3,
        phrases: Optional[ProhibitedPhrases] = None,
    ):
        self.store = store
        self.offers = list(offers) if offers is not None else load_partner_offers()
        self.persona_service = PersonaService(store, catalog)
        self.max_offers = max_offers
        self.phrases = phrases if phrases is not None else load_prohibited_phrases()

    def _record(self, user_id: str, offer: PartnerOffer, result: EligibilityResult) -> None:
        outcome = record_eligibility(result)
        log_eligibility_decision(user_id, offer.id, outcome, result.disqualifiers)

    def _tone_allowed(self, user_id: str, offer: PartnerOffer, rationale: str) -> bool:
        """Offer text and the persona rationale shown with it must pass the tone guardrail"""
        check = check_tone(
            {"title": offer.title, "description": offer.description, "rationale": rationale},
            self.phrases,
        )
        if not check.allowed:
            record_tone_rejection(check.validation.violations)
            logging.warning(
                f"Offer {offer.id} failed tone validation: {check.error}",
                extra={
                    "user_id": user_id,
                    "step": "tone_rejected",
                    "offer_id": offer.id,
                    "found_phrases": list(check.validation.found_phrases),
                },
            )
        return check.allowed

    def recommend_offers(self, user_id: str, now: Optional[datetime] = None) -> Recommendation:
        """
        Recommend up to max_offers eligible partner offers whose text, shown
        with the persona rationale, passes the tone guardrail.

        Raises:
            UserNotFoundError: unknown user
            ConsentRequiredError: user has not opted in
        """
        now = now or datetime.now(timezone.utc)

        if self.store.get_user(user_id) is None:
            raise UserNotFoundError(user_id)
        require_consent(self.store, user_id)

        assignment = self.persona_service.assign_persona_to_user(user_id, now)
        guardrail = EligibilityGuardrail(self.store, now.date())

        evaluated = evaluate_offers_for_persona(assignment.persona, self.offers, guardrail, user_id)
        for checked in evaluated:
            self._record(user_id, checked.offer, checked.eligibility)

        candidates = [
            checked
            for checked in evaluated
            if checked.eligibility.is_eligible and self._tone_allowed(user_id, checked.offer, assignment.rationale)
        ]
        selected = eligible_only(candidates, self.max_offers)
        logging.info(
            f"Selected {len(selected)} offers for persona {assignment.persona.id}",
            extra={"user_id": user_id, "step": "offers_selected", "offer_ids": [s.offer.id for s in selected]},
        )

        return Recommendation(user_id=user_id, assignment=assignment, offers=tuple(selected))

    def check_offer(self, offer_id: str, user_id: str, now: Optional[datetime] = None) -> EligibilityResult:
        """
        Eligibility of one catalog offer for a user.

        Raises:
            OfferCatalogError: offer id not in the catalog
            ConsentRequiredError: user has not opted in
        """
        offer = get_offer_by_id(self.offers, offer_id)
        if offer is None:
            raise OfferCatalogError(f"Unknown partner offer: {offer_id}")
        require_consent(self.store, user_id)

        today = (now or datetime.now(timezone.utc)).date()
        result = EligibilityGuardrail(self.store, today).check_offer_eligibility(offer, user_id)
        self._record(user_id, offer, result)
        return result
