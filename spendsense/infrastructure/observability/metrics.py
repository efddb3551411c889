"""Prometheus metrics for persona assignments, eligibility outcomes and analyzer health"""

from typing import Iterable

from prometheus_client import Counter

from spendsense.domain.guardrails.eligibility import EligibilityResult
from spendsense.domain.guardrails.tone import ToneViolation

# Persona metrics
persona_assignment_counter = Counter(
    "spendsense_persona_assignments_total",
    "Personas assigned to users",
    ["persona"],
)

# Guardrail metrics
eligibility_counter = Counter(
    "spendsense_eligibility_checks_total",
    "Offer eligibility checks by outcome",
    ["outcome"],  # eligible | soft_fail | hard_block
)

# Tone guardrail
tone_violation_counter = Counter(
    "spendsense_tone_violations_total",
    "Prohibited phrases found in recommendation content",
    ["category"],  # shaming | judgmental | negative_framing | comparison | pressure
)

# Analyzer health
analyzer_failure_counter = Counter(
    "spendsense_analyzer_failures_total",
    "Feature analyzer failures",
    ["family"],  # credit | income | savings | subscriptions
)


def eligibility_outcome(result: EligibilityResult) -> str:
    if result.is_eligible:
        return "eligible"
    if result.hard_blocked:
        return "hard_block"
    return "soft_fail"


def record_persona_assignment(persona_id: str) -> None:
    persona_assignment_counter.labels(persona=persona_id).inc()


def record_eligibility(result: EligibilityResult) -> str:
    """Count one eligibility check; returns the outcome label"""
    outcome = eligibility_outcome(result)
    eligibility_counter.labels(outcome=outcome).inc()
    return outcome


def record_analyzer_failure(family: str) -> None:
    analyzer_failure_counter.labels(family=family).inc()


def record_tone_rejection(violations: Iterable[ToneViolation]) -> None:
    for violation in violations:
        tone_violation_counter.labels(category=violation.category).inc()
