"""Prohibited phrase list for the tone guardrail, loaded from JSON"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spendsense.config import settings
from spendsense.domain.exceptions import PhraseCatalogError
from spendsense.domain.guardrails.tone import ProhibitedPhrases

BUNDLED_PHRASES_PATH = Path(__file__).with_name("prohibited_phrases.json")


class ProhibitedPhrasesSchema(BaseModel):
    """Phrase lists keyed by category; unknown categories are rejected"""

    model_config = ConfigDict(extra="forbid")

    shaming_phrases: List[str] = Field(default_factory=list)
    judgmental_terms: List[str] = Field(default_factory=list)
    negative_framing: List[str] = Field(default_factory=list)
    comparison_phrases: List[str] = Field(default_factory=list)
    pressure_phrases: List[str] = Field(default_factory=list)

    def to_domain(self) -> ProhibitedPhrases:
        return ProhibitedPhrases(
            shaming=_clean(self.shaming_phrases),
            judgmental=_clean(self.judgmental_terms),
            negative_framing=_clean(self.negative_framing),
            comparison=_clean(self.comparison_phrases),
            pressure=_clean(self.pressure_phrases),
        )


def _clean(phrases: List[str]) -> tuple[str, ...]:
    return tuple(p.strip() for p in phrases if p.strip())


def parse_prohibited_phrases(raw: object) -> ProhibitedPhrases:
    """
    Raises:
        PhraseCatalogError: not an object of phrase lists
    """
    try:
        return ProhibitedPhrasesSchema.model_validate(raw).to_domain()
    except ValidationError as e:
        raise PhraseCatalogError(f"Invalid prohibited phrase list: {e}") from e


def load_prohibited_phrases(path: Optional[str] = None) -> ProhibitedPhrases:
    """
    Load the prohibited phrase list.

    Uses the given path, else SPENDSENSE_PROHIBITED_PHRASES_PATH, else the
    list bundled with the package.

    Raises:
        PhraseCatalogError: file missing, not JSON or malformed
    """
    phrases_path = Path(path or settings.prohibited_phrases_path or BUNDLED_PHRASES_PATH)

    try:
        raw = json.loads(phrases_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise PhraseCatalogError(f"Cannot read prohibited phrase list {phrases_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise PhraseCatalogError(f"Prohibited phrase list {phrases_path} is not valid JSON: {e}") from e

    phrases = parse_prohibited_phrases(raw)
    logging.debug(f"Loaded {len(phrases)} prohibited phrases", extra={"phrases_path": str(phrases_path)})
    return phrases
