"""Tone guardrail - user-facing text must stay supportive and free of shaming or pressure"""

from dataclasses import dataclass
from typing import Iterator, Mapping, Optional, Union

from spendsense.domain.exceptions import ToneViolationError

HIGH_SEVERITY_CATEGORIES = frozenset({"shaming", "judgmental"})

Content = Union[str, Mapping[str, Optional[str]]]


@dataclass(frozen=True)
class ProhibitedPhrases:
    """Prohibited phrases grouped by violation category"""

    shaming: tuple[str, ...] = ()
    judgmental: tuple[str, ...] = ()
    negative_framing: tuple[str, ...] = ()
    comparison: tuple[str, ...] = ()
    pressure: tuple[str, ...] = ()

    def __iter__(self) -> Iterator[tuple[str, str]]:
        """(category, phrase) pairs in category order"""
        for category in ("shaming", "judgmental", "negative_framing", "comparison", "pressure"):
            for phrase in getattr(self, category):
                yield category, phrase

    def __len__(self) -> int:
        return sum(1 for _ in self)


@dataclass(frozen=True)
class ToneViolation:
    phrase: str
    category: str
    severity: str  # high | medium
    field: Optional[str] = None


@dataclass(frozen=True)
class ToneValidation:
    is_valid: bool
    message: str
    violations: tuple[ToneViolation, ...] = ()

    @property
    def found_phrases(self) -> tuple[str, ...]:
        return tuple(v.phrase for v in self.violations)


@dataclass(frozen=True)
class ToneCheck:
    allowed: bool
    error: Optional[str] = None
    validation: Optional[ToneValidation] = None


def check_prohibited_phrases(
    text: Optional[str],
    phrases: ProhibitedPhrases,
    case_sensitive: bool = False,
    field_name: Optional[str] = None,
) -> list[ToneViolation]:
    """Every prohibited phrase contained in `text` (substring match)"""
    if not text:
        return []

    haystack = text if case_sensitive else text.lower()
    violations = []
    for category, phrase in phrases:
        needle = phrase if case_sensitive else phrase.lower()
        if needle and needle in haystack:
            severity = "high" if category in HIGH_SEVERITY_CATEGORIES else "medium"
            violations.append(ToneViolation(phrase=phrase, category=category, severity=severity, field=field_name))
    return violations


def validate_tone(text: Optional[str], phrases: ProhibitedPhrases, case_sensitive: bool = False) -> ToneValidation:
    violations = check_prohibited_phrases(text, phrases, case_sensitive)
    if not violations:
        return ToneValidation(is_valid=True, message="Text passes tone validation")
    return ToneValidation(
        is_valid=False,
        message=f"Text contains {len(violations)} prohibited phrase(s)",
        violations=tuple(violations),
    )


def validate_content(
    content: Mapping[str, Optional[str]],
    phrases: ProhibitedPhrases,
    case_sensitive: bool = False,
) -> ToneValidation:
    """Validate each text field, e.g. title, description and rationale"""
    violations = []
    for name, value in content.items():
        violations.extend(check_prohibited_phrases(value, phrases, case_sensitive, field_name=name))

    if not violations:
        return ToneValidation(is_valid=True, message="All content passes tone validation")
    return ToneValidation(
        is_valid=False,
        message=f"Content contains {len(violations)} tone violation(s) across {len(content)} field(s)",
        violations=tuple(violations),
    )


def _validate(content: Content, phrases: ProhibitedPhrases) -> ToneValidation:
    if isinstance(content, str):
        return validate_tone(content, phrases)
    return validate_content(content, phrases)


def require_valid_tone(content: Content, phrases: ProhibitedPhrases) -> None:
    """
    Block content with prohibited phrasing.

    Raises:
        ToneViolationError: at least one prohibited phrase found
    """
    validation = _validate(content, phrases)
    if validation.is_valid:
        return

    details = "; ".join(
        f'"{v.phrase}" [{v.category}]' + (f" (field: {v.field})" if v.field else "")
        for v in validation.violations
    )
    raise ToneViolationError(
        f"Content failed tone validation: {validation.message}. Found violations: {details}",
        list(validation.violations),
    )


def check_tone(content: Content, phrases: ProhibitedPhrases) -> ToneCheck:
    """Non-raising form of require_valid_tone"""
    validation = _validate(content, phrases)
    return ToneCheck(
        allowed=validation.is_valid,
        error=None if validation.is_valid else validation.message,
        validation=validation,
    )
