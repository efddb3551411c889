"""Partner offer queries and persona-based offer selection"""

from dataclasses import dataclass
from typing import Optional, Sequence

from spendsense.domain.guardrails.eligibility import AnnotatedOffer, EligibilityGuardrail
from spendsense.domain.models import PartnerOffer
from spendsense.domain.personas.catalog import Persona

PERSONA_FIT_SCORE = 10
RECOMMENDATION_TYPE_SCORE = 5


@dataclass(frozen=True)
class ScoredOffer:
    offer: PartnerOffer
    score: int


def get_offer_by_id(offers: Sequence[PartnerOffer], offer_id: str) -> Optional[PartnerOffer]:
    return next((offer for offer in offers if offer.id == offer_id), None)


def get_offers_by_persona(offers: Sequence[PartnerOffer], persona_id: str) -> list[PartnerOffer]:
    return [offer for offer in offers if persona_id in offer.persona_fit]


def get_offers_by_category(offers: Sequence[PartnerOffer], category: str) -> list[PartnerOffer]:
    return [offer for offer in offers if offer.offer_category == category]


def get_offers_by_recommendation_type(offers: Sequence[PartnerOffer], recommendation_type: str) -> list[PartnerOffer]:
    return [offer for offer in offers if recommendation_type in offer.recommendation_types]


def score_offer(offer: PartnerOffer, persona: Persona) -> int:
    """+10 when the offer targets the persona, +5 per shared recommendation type"""
    score = PERSONA_FIT_SCORE if persona.id in offer.persona_fit else 0
    shared = [t for t in offer.recommendation_types if t in persona.recommendation_types]
    return score + RECOMMENDATION_TYPE_SCORE * len(shared)


def rank_offers(offers: Sequence[PartnerOffer], persona: Persona) -> list[ScoredOffer]:
    """Offers by score, highest first; equal scores keep catalog order"""
    scored = [ScoredOffer(offer=offer, score=score_offer(offer, persona)) for offer in offers]
    return sorted(scored, key=lambda s: s.score, reverse=True)


def evaluate_offers_for_persona(
    persona: Persona,
    offers: Sequence[PartnerOffer],
    guardrail: EligibilityGuardrail,
    user_id: str,
) -> list[AnnotatedOffer]:
    """Every offer ranked for the persona and annotated with its eligibility"""
    ranked = [s.offer for s in rank_offers(offers, persona)]
    return guardrail.evaluate_offers(ranked, user_id)


def eligible_only(evaluated: Sequence[AnnotatedOffer], max_offers: int = 3) -> list[AnnotatedOffer]:
    if max_offers <= 0:
        return []
    return [checked for checked in evaluated if checked.eligibility.is_eligible][:max_offers]


def select_offers_for_persona(
    persona: Persona,
    offers: Sequence[PartnerOffer],
    guardrail: EligibilityGuardrail,
    user_id: str,
    max_offers: int = 3,
) -> list[AnnotatedOffer]:
    """
    Best matching eligible offers for a persona.

    Every offer goes through the eligibility guardrail; ineligible and
    prohibited offers are never returned.
    """
    if max_offers <= 0 or not offers:
        return []
    return eligible_only(evaluate_offers_for_persona(persona, offers, guardrail, user_id), max_offers)
