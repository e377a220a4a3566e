"""HTTP API for the spray advisory service."""

import hmac
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel

from .advisor import ServiceStatus, SprayAdvisor
from .config import settings
from .domain import (
    DISCLAIMER,
    ApplicationContext,
    ComplianceResult,
    Forecast,
    Label,
    PermitResult,
    Product,
    Recommendation,
)
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="app/api")


def require_api_key(x_api_key: str | None = Header(default=None)):
    """Validate the X-API-Key header against the configured key, if one is set."""
    if not settings.api_key:
        logger.debug("No API key configured; allowing all requests")
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])
ADVISOR = SprayAdvisor(settings)


def get_advisor() -> SprayAdvisor:
    """Dependency hook so tests can swap the advisor."""
    return ADVISOR


class ComplianceRequest(BaseModel):
    """Incoming compliance check payload."""
    product_id: str
    context: ApplicationContext


class ComplianceResponse(BaseModel):
    """Compliance result with the mandatory disclaimer."""
    product_id: str
    result: ComplianceResult
    disclaimer: str = DISCLAIMER


class PermitResponse(BaseModel):
    """Permit result with the mandatory disclaimer."""
    product_id: str
    state: str
    result: PermitResult
    disclaimer: str = DISCLAIMER


def _require_product(advisor: SprayAdvisor, registration_number: str) -> Product:
    """Resolve a product or raise 404."""
    product = advisor.get_product(registration_number)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Unknown product '{registration_number}'")
    return product


@router.get("/products", response_model=List[Product])
def search_products(
    q: str = Query(..., max_length=200),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    advisor: SprayAdvisor = Depends(get_advisor),
):
    """Search registered products by name, active constituent or registration number."""
    return advisor.search_products(q, limit)


@router.get("/products/{registration_number}", response_model=Product)
def get_product(registration_number: str, advisor: SprayAdvisor = Depends(get_advisor)):
    """Return one product by registration number."""
    return _require_product(advisor, registration_number)


@router.get("/products/{registration_number}/label", response_model=Label)
def get_label(registration_number: str, advisor: SprayAdvisor = Depends(get_advisor)):
    """Return derived label metadata for a product."""
    label = advisor.get_label(registration_number)
    if label is None:
        raise HTTPException(status_code=404, detail=f"Unknown product '{registration_number}'")
    return label


@router.get("/forecast/{postcode}", response_model=List[Forecast])
def get_forecast(postcode: str, advisor: SprayAdvisor = Depends(get_advisor)):
    """Return spray-rated forecasts for a postcode."""
    return advisor.forecast(postcode)


@router.post("/compliance", response_model=ComplianceResponse)
def post_compliance(req: ComplianceRequest, advisor: SprayAdvisor = Depends(get_advisor)):
    """Check compliance for a product and application context."""
    result = advisor.check_compliance(req.product_id, req.context)
    return ComplianceResponse(product_id=req.product_id, result=result)


@router.get("/permits/{product_id}", response_model=PermitResponse)
def get_permit(product_id: str, state: str = Query(..., min_length=1, max_length=8),
               advisor: SprayAdvisor = Depends(get_advisor)):
    """Check permit requirements for a product in a state."""
    result = advisor.check_permit(product_id, state)
    return PermitResponse(product_id=product_id, state=state.upper(), result=result)


@router.get("/recommendation/{postcode}", response_model=Recommendation)
def get_recommendation(postcode: str, hint: str = Query(default=""),
                       advisor: SprayAdvisor = Depends(get_advisor)):
    """Advise whether to apply a product today."""
    return advisor.recommend(postcode, hint)


@router.get("/status", response_model=ServiceStatus)
def get_status(advisor: SprayAdvisor = Depends(get_advisor)):
    """Report provider configuration."""
    return advisor.service_status()
