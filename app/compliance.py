"""Compliance and permit evaluation for a product at a location.

Every rule in `check_compliance` runs; none short-circuits. Results are
advisory and must be shown alongside `app.domain.DISCLAIMER`.
"""

from __future__ import annotations

from typing import List, Optional

from app import rules
from app.domain import ApplicationContext, ComplianceResult, Label, PermitResult, Product

PRODUCT_UNAVAILABLE_WARNING = "Product information not available"
VERIFY_REGISTRATION = "Verify registration before use"


def _append_unique(target: List[str], items) -> None:
    """Extend `target` with items not already present, keeping order."""
    for item in items:
        if item and item not in target:
            target.append(item)


def unresolved_compliance() -> ComplianceResult:
    """Conservative verdict for a product or label that could not be found."""
    return ComplianceResult(
        compliant=False,
        warnings=[PRODUCT_UNAVAILABLE_WARNING],
        requirements=[VERIFY_REGISTRATION],
        restrictions=[],
    )


def check_compliance(
    product: Optional[Product],
    label: Optional[Label],
    context: ApplicationContext,
) -> ComplianceResult:
    """Evaluate registration, state, environment, crop and biosecurity rules."""
    if product is None or label is None:
        return unresolved_compliance()

    compliant = True
    warnings: List[str] = []
    requirements: List[str] = []
    restrictions: List[str] = []
    state = (context.state or "").strip().upper()

    # registration status
    if not product.is_active:
        compliant = False
        warnings.append(f"Product registration status: {product.registration_status}")

    # state restrictions
    state_items = label.state_restrictions.get(state) or []
    if state_items:
        _append_unique(restrictions, state_items)
        requirements.append(f"Consult the {state} state agriculture department before application")

    # waterways
    if context.near_waterways:
        water_precautions = [
            p for p in label.environmental_precautions if rules.matches_any(p, rules.WATERWAY_KEYWORDS)
        ]
        if water_precautions:
            warnings.append("Product requires special care near waterways")
            _append_unique(requirements, water_precautions)

    # residential use of restricted products
    if context.residential_area and label.restricted_use:
        warnings.append("Restricted use product in a residential area")
        requirements.append("Check local council regulations before application")

    # crop approval
    crop = (context.crop or "").strip()
    if crop and not any(crop.lower() in use.lower() for use in label.approved_uses):
        compliant = False
        warnings.append(f"Product not approved for {crop}")

    # notifiable diseases
    texts = [product.product_name, *label.approved_uses]
    if any(rules.matches_any(text, rules.NOTIFIABLE_DISEASE_KEYWORDS) for text in texts):
        _append_unique(requirements, rules.NOTIFIABLE_DISEASE_REQUIREMENTS)

    _append_unique(restrictions, product.restrictions)

    return ComplianceResult(
        compliant=compliant,
        warnings=warnings,
        requirements=requirements,
        restrictions=restrictions,
    )


def state_contact(state: str | None) -> str:
    """Return the agriculture department contact for a state code."""
    return rules.STATE_CONTACTS.get((state or "").strip().upper(), rules.UNKNOWN_STATE_CONTACT)


def check_permit(product: Optional[Product], state: str | None) -> PermitResult:
    """Decide whether applying `product` in `state` needs a permit."""
    contact = state_contact(state)
    if product is None:
        return PermitResult(permit_required=True, permit_type=VERIFY_REGISTRATION, contact_info=contact)

    restricted = any(
        rules.matches_any(constituent, rules.RESTRICTED_SUBSTANCES)
        for constituent in product.active_constituents
    )
    if restricted:
        return PermitResult(
            permit_required=True,
            permit_type=rules.PERMIT_TYPE,
            contact_info=contact,
            processing_time=rules.PERMIT_PROCESSING_TIME,
        )
    return PermitResult(permit_required=False, contact_info=contact)
