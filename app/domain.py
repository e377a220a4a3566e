"""Domain vocabulary and strict schemas for spray advisories.

This module defines the canonical shapes every provider is normalized into
(products, labels, forecasts) and the result types returned to callers.
No scoring or rule logic lives here.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


DISCLAIMER = (
    "This compliance guidance is advisory only and is not legal advice. "
    "Always verify registration status and follow the product label and your state "
    "regulations independently before application."
)


class _StrictBaseModel(BaseModel):
    """Base model with strict extra handling."""

    model_config = ConfigDict(extra="forbid")


class _FrozenModel(BaseModel):
    """Strict, immutable base for data fetched from external sources."""

    model_config = ConfigDict(extra="forbid", frozen=True)


class ProductType(str, Enum):
    """Broad registry category inferred from the product name."""
    PESTICIDE = "pesticide"
    VETERINARY = "veterinary"
    OTHER = "other"


class SprayConditions(str, Enum):
    """Categorical spray-suitability rating."""
    EXCELLENT = "excellent"
    GOOD = "good"
    MARGINAL = "marginal"
    POOR = "poor"


class Product(_FrozenModel):
    """A registered chemical product, normalized from a registry record."""
    id: str
    product_name: str
    registration_number: str
    registration_holder: str = ""
    active_constituents: Tuple[str, ...] = ()
    registration_status: str = "Active"
    product_type: ProductType = ProductType.OTHER
    registration_date: str
    expiry_date: str | None = None
    restrictions: Tuple[str, ...] = ()
    label_url: str | None = None

    @property
    def is_active(self) -> bool:
        """True when the registry lists the product as active."""
        return self.registration_status.strip().lower() == "active"


class Label(_StrictBaseModel):
    """Regulatory metadata derived from a Product (see app.labels)."""
    product_id: str
    registration_number: str
    label_url: str | None = None
    approved_uses: List[str] = Field(default_factory=list)
    application_rates: Dict[str, str] = Field(default_factory=dict)
    withholding_periods: Dict[str, int] = Field(default_factory=dict)
    safety_directions: List[str] = Field(default_factory=list)
    first_aid_instructions: List[str] = Field(default_factory=list)
    environmental_precautions: List[str] = Field(default_factory=list)
    restricted_use: bool = False
    state_restrictions: Dict[str, List[str]] = Field(default_factory=dict)


class TemperatureRange(_FrozenModel):
    """Daily temperature range in degrees Celsius."""
    min: float
    max: float


class Forecast(_FrozenModel):
    """One day of normalized weather with its spray rating.

    Build instances through `app.spray_scoring.scored_forecast` so that
    `spray_conditions` and `warnings` always match the numeric fields.
    """
    location: str
    postcode: str
    date: str
    temperature: TemperatureRange
    humidity: float
    wind_speed: float
    wind_direction: str
    rainfall: float
    rainfall_probability: float
    spray_conditions: SprayConditions
    warnings: List[str] = Field(default_factory=list)
    source: str = "unknown"


class ApplicationContext(_StrictBaseModel):
    """Where and how the caller intends to apply a product."""
    state: str
    crop: str | None = None
    application_method: str | None = None
    near_waterways: bool = False
    residential_area: bool = False


class ComplianceResult(_StrictBaseModel):
    """Outcome of a compliance check; advisory only."""
    compliant: bool
    warnings: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _explain_non_compliance(self) -> "ComplianceResult":
        """A non-compliant verdict must say why."""
        if not self.compliant and not any(w.strip() for w in self.warnings):
            raise ValueError("non-compliant results require at least one warning")
        return self


class PermitResult(_StrictBaseModel):
    """Whether a permit is needed and who to contact."""
    permit_required: bool
    permit_type: str | None = None
    contact_info: str
    processing_time: str | None = None


class Recommendation(_StrictBaseModel):
    """Go/no-go advice for applying a product today."""
    recommended: bool
    reason: str
    warnings: List[str] = Field(default_factory=list)
    alternative_time: str | None = None
    forecast: Forecast | None = None
