"""Persona resolution - evaluate the catalog and pick the highest priority match"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from spendsense.domain.exceptions import PersonaPredicateError
from spendsense.domain.personas.catalog import (
    Persona,
    PersonaCatalog,
    PersonaInputs,
    PersonaMatch,
    priority_order_key,
)
from spendsense.domain.personas.trace import DecisionTrace, build_decision_trace

FALLBACK_RATIONALE = "No specific patterns detected. Welcome!"


@dataclass(frozen=True)
class PersonaResolution:
    """Outcome of resolving a catalog against one user's analyzer outputs"""

    persona: Persona
    rationale: str
    matches: tuple[PersonaMatch, ...]
    decision_trace: DecisionTrace

    @property
    def matching_personas(self) -> tuple[Persona, ...]:
        return tuple(m.persona for m in self.matches)


def evaluate_persona(persona: Persona, inputs: PersonaInputs) -> Optional[PersonaMatch]:
    """
    Run one persona's predicate and rationale on the analyzer families it consumes.

    Any exception raised by the persona makes it non-matching.
    """
    scoped = inputs.restricted_to(persona.consumes)
    try:
        if not persona.matches(scoped):
            return None
        rationale = persona.rationale(scoped)
    except Exception as e:
        error = PersonaPredicateError(persona.id, e)
        logging.warning(str(error), extra={"persona_id": persona.id, "step": "persona_predicate"})
        return None

    return PersonaMatch(persona=persona, rationale=rationale)


def find_matching_personas(catalog: PersonaCatalog, inputs: PersonaInputs) -> list[PersonaMatch]:
    """All matching personas, in catalog order"""
    matches = []
    for persona in catalog:
        match = evaluate_persona(persona, inputs)
        if match is not None:
            matches.append(match)
    return matches


def prioritize_personas(matches: Sequence[PersonaMatch]) -> Optional[PersonaMatch]:
    """Highest priority match; ties go to the lexicographically smallest persona id"""
    if not matches:
        return None
    return min(matches, key=lambda m: priority_order_key(m.persona))


def resolve_persona(
    catalog: PersonaCatalog,
    inputs: PersonaInputs,
    now: Optional[datetime] = None,
) -> PersonaResolution:
    """
    Assign a persona from the catalog.

    Never raises for persona failures: with no match the catalog's default
    persona is selected with its own rationale.
    """
    matches = find_matching_personas(catalog, inputs)
    selected = prioritize_personas(matches)

    if selected is None:
        default = catalog.default_persona
        return PersonaResolution(
            persona=default,
            rationale=evaluate_persona_rationale(default, inputs) or FALLBACK_RATIONALE,
            matches=(),
            decision_trace=build_decision_trace((), default, now),
        )

    return PersonaResolution(
        persona=selected.persona,
        rationale=selected.rationale or f"You match the {selected.persona.name} persona.",
        matches=tuple(matches),
        decision_trace=build_decision_trace(matches, selected.persona, now),
    )


def evaluate_persona_rationale(persona: Persona, inputs: PersonaInputs) -> Optional[str]:
    """Rationale of a persona that did not match, or None if it cannot produce one"""
    try:
        return persona.rationale(inputs.restricted_to(persona.consumes))
    except Exception as e:
        error = PersonaPredicateError(persona.id, e)
        logging.warning(str(error), extra={"persona_id": persona.id, "step": "persona_rationale"})
        return None
