"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class DataAccessError(DomainException):
    """Storage layer failed to answer a read query"""

    pass


class UserNotFoundError(DomainException):
    """Requested user does not exist"""

    def __init__(self, user_id: str):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class AnalyzerComputationError(DomainException):
    """A feature analyzer could not produce a result for a user"""

    def __init__(self, family: str, user_id: str, detail: str = ""):
        message = f"{family} analysis failed for user {user_id}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.family = family
        self.user_id = user_id


class PersonaPredicateError(DomainException):
    """A persona predicate or rationale raised during resolution"""

    def __init__(self, persona_id: str, cause: Exception):
        super().__init__(f"Persona {persona_id} evaluation failed: {cause!r}")
        self.persona_id = persona_id
        self.cause = cause


class IneligibleOfferError(DomainException):
    """Offer failed the eligibility guardrail"""

    def __init__(self, offer_label: str, user_id: str, disqualifiers: list[str]):
        reasons = "; ".join(disqualifiers)
        super().__init__(f'Offer "{offer_label}" is not eligible for user {user_id}: {reasons}')
        self.user_id = user_id
        self.disqualifiers = list(disqualifiers)


class ConsentRequiredError(DomainException):
    """User has not opted in to data processing"""

    def __init__(self, user_id: str):
        super().__init__(
            f"User {user_id} has not granted consent for data processing. "
            "Please opt-in before proceeding."
        )
        self.user_id = user_id


class OfferCatalogError(DomainException):
    """Partner offer catalog is missing or malformed"""

    pass


class ToneViolationError(DomainException):
    """User-facing text contains prohibited phrasing"""

    def __init__(self, message: str, violations: list):
        super().__init__(message)
        self.violations = list(violations)


class PhraseCatalogError(DomainException):
    """Prohibited phrase list is missing or malformed"""

    pass
