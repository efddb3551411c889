"""Decision trace - audit record of why a persona was selected"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from spendsense.domain.personas.catalog import Persona, PersonaMatch, priority_order_key

FALLBACK_SELECTION_REASON = "No personas matched - using default fallback"


@dataclass(frozen=True)
class TraceMatch:
    persona_id: str
    persona_name: str
    priority: int
    rationale: Optional[str]


@dataclass(frozen=True)
class DecisionTrace:
    """Timestamped record of every matching persona and the selection made"""

    timestamp: datetime
    all_matches: tuple[TraceMatch, ...]
    selected_persona_id: str
    selected_persona_name: str
    selection_reason: str
    priority_order: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "all_matches": [
                {
                    "persona_id": m.persona_id,
                    "persona_name": m.persona_name,
                    "priority": m.priority,
                    "rationale": m.rationale,
                }
                for m in self.all_matches
            ],
            "selected_persona": self.selected_persona_id,
            "selected_persona_name": self.selected_persona_name,
            "selection_reason": self.selection_reason,
            "priority_order": list(self.priority_order),
        }


def selection_reason(persona: Persona) -> str:
    return f"Selected highest priority persona (priority: {persona.priority})"


def build_decision_trace(
    matches: Sequence[PersonaMatch],
    selected: Persona,
    now: Optional[datetime] = None,
) -> DecisionTrace:
    """
    Build the trace for a resolution.

    Matches keep catalog order; priority_order lists the matched persona ids
    highest priority first. With no matches the trace records the fallback.
    """
    timestamp = now or datetime.now(timezone.utc)

    if not matches:
        return DecisionTrace(
            timestamp=timestamp,
            all_matches=(),
            selected_persona_id=selected.id,
            selected_persona_name=selected.name,
            selection_reason=FALLBACK_SELECTION_REASON,
            priority_order=(),
        )

    ordered = sorted(matches, key=lambda m: priority_order_key(m.persona))

    return DecisionTrace(
        timestamp=timestamp,
        all_matches=tuple(
            TraceMatch(
                persona_id=m.persona.id,
                persona_name=m.persona.name,
                priority=m.persona.priority,
                rationale=m.rationale,
            )
            for m in matches
        ),
        selected_persona_id=selected.id,
        selected_persona_name=selected.name,
        selection_reason=selection_reason(selected),
        priority_order=tuple(m.persona.id for m in ordered),
    )
