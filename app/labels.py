"""Derive regulatory label metadata from a registry Product.

The registry does not expose label content, so `derive_label` classifies a
product from its name and active constituents using the tables in app.rules.
Treat the result as a placeholder policy for guidance, not as a regulatory
source of truth. Labels are recomputed on every request rather than cached, so
they always reflect the Product they were derived from.
"""

from __future__ import annotations

from typing import List

from app import rules
from app.domain import Label, Product


def _approved_uses(product: Product) -> List[str]:
    """Pick approved uses from the first constituent keyword that matches."""
    for keyword, uses in rules.APPROVED_USES_BY_CONSTITUENT:
        if any(keyword in c.lower() for c in product.active_constituents):
            return list(uses)
    return list(rules.DEFAULT_APPROVED_USES)


def derive_label(product: Product) -> Label:
    """Build a Label for `product`. Pure and deterministic."""
    return Label(
        product_id=product.id,
        registration_number=product.registration_number,
        label_url=product.label_url,
        approved_uses=_approved_uses(product),
        application_rates=dict(rules.APPLICATION_RATES),
        withholding_periods=dict(rules.WITHHOLDING_PERIODS),
        safety_directions=list(rules.SAFETY_DIRECTIONS),
        first_aid_instructions=list(rules.FIRST_AID_INSTRUCTIONS),
        environmental_precautions=list(rules.ENVIRONMENTAL_PRECAUTIONS),
        restricted_use=bool(product.restrictions),
        state_restrictions={state: list(items) for state, items in rules.STATE_RESTRICTIONS.items()},
    )
