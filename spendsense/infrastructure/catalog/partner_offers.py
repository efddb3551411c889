"""Partner offer catalog loaded from JSON and validated with Pydantic"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from spendsense.config import settings
from spendsense.domain.exceptions import OfferCatalogError
from spendsense.domain.models import OfferEligibility, PartnerOffer

BUNDLED_CATALOG_PATH = Path(__file__).with_name("partner_offers.json")


class EligibilitySchema(BaseModel):
    """Partner requirements for an offer"""

    min_income: Optional[float] = Field(None, ge=0, description="Minimum annual income")
    min_credit_score: Optional[int] = Field(None, ge=300, le=850)
    max_utilization: Optional[float] = Field(None, ge=0, le=1, description="Maximum credit utilization ratio")
    excluded_account_types: List[str] = Field(default_factory=list)

    def to_domain(self) -> OfferEligibility:
        return OfferEligibility(
            min_income=self.min_income,
            min_credit_score=self.min_credit_score,
            max_utilization=self.max_utilization,
            excluded_account_types=tuple(self.excluded_account_types),
        )


class PartnerOfferSchema(BaseModel):
    """Single partner offer entry"""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    offer_category: str = Field(..., min_length=1)
    description: str = ""
    offer_type: str = ""
    partner_name: str = ""
    persona_fit: List[str] = Field(default_factory=list)
    recommendation_types: List[str] = Field(default_factory=list)
    eligibility: EligibilitySchema = Field(default_factory=EligibilitySchema)

    def to_domain(self) -> PartnerOffer:
        return PartnerOffer(
            id=self.id,
            title=self.title,
            offer_category=self.offer_category,
            description=self.description,
            offer_type=self.offer_type,
            partner_name=self.partner_name,
            persona_fit=tuple(self.persona_fit),
            recommendation_types=tuple(self.recommendation_types),
            eligibility=self.eligibility.to_domain(),
        )


_catalog_adapter = TypeAdapter(List[PartnerOfferSchema])


def parse_partner_offers(raw: object) -> List[PartnerOffer]:
    """
    Validate decoded JSON into partner offers.

    Raises:
        OfferCatalogError: entries are malformed or ids repeat
    """
    try:
        entries = _catalog_adapter.validate_python(raw)
    except ValidationError as e:
        raise OfferCatalogError(f"Invalid partner offer catalog: {e}") from e

    seen = set()
    for entry in entries:
        if entry.id in seen:
            raise OfferCatalogError(f"Duplicate partner offer id: {entry.id}")
        seen.add(entry.id)

    return [entry.to_domain() for entry in entries]


def load_partner_offers(path: Optional[str] = None) -> List[PartnerOffer]:
    """
    Load the partner offer catalog.

    Uses the given path, else SPENDSENSE_PARTNER_OFFERS_PATH, else the
    catalog bundled with the package.

    Raises:
        OfferCatalogError: file missing, not JSON or malformed
    """
    catalog_path = Path(path or settings.partner_offers_path or BUNDLED_CATALOG_PATH)

    try:
        raw = json.loads(catalog_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise OfferCatalogError(f"Cannot read partner offer catalog {catalog_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise OfferCatalogError(f"Partner offer catalog {catalog_path} is not valid JSON: {e}") from e

    offers = parse_partner_offers(raw)
    logging.debug(f"Loaded {len(offers)} partner offers", extra={"catalog_path": str(catalog_path)})
    return offers
