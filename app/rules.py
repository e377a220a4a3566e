"""Rule data for label classification, compliance and permit checks.

Kept as plain tables so the data can be reviewed and versioned separately from
the evaluators in app.labels and app.compliance. All keyword matching is
case-insensitive substring matching.
"""

from typing import Dict, List, Tuple

# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------

NOTIFIABLE_DISEASE_KEYWORDS: Tuple[str, ...] = (
    "citrus canker",
    "fire blight",
    "bacterial fruit blotch",
    "panama disease",
    "myrtle rust",
    "xylella",
    "banana freckle",
)

NOTIFIABLE_DISEASE_REQUIREMENTS: Tuple[str, ...] = (
    "Contact the Department of Agriculture immediately",
    "Do not move plant material from the affected area",
    "Do not treat without authorization",
)

WATERWAY_KEYWORDS: Tuple[str, ...] = ("water", "stream")

STATE_RESTRICTIONS: Dict[str, List[str]] = {
    "QLD": ["Notify Department of Agriculture for citrus applications"],
    "WA": ["Restricted near Swan River catchment"],
    "SA": ["Additional permits required for commercial use"],
}

# ---------------------------------------------------------------------------
# Permits
# ---------------------------------------------------------------------------

RESTRICTED_SUBSTANCES: Tuple[str, ...] = (
    "paraquat",
    "diquat",
    "chlorpyrifos",
    "fenthion",
    "methyl bromide",
    "aluminium phosphide",
    "sodium fluoroacetate",
    "strychnine",
    "endosulfan",
)

PERMIT_TYPE = "Restricted Chemical Product Permit"
PERMIT_PROCESSING_TIME = "10-15 business days"
UNKNOWN_STATE_CONTACT = "Contact your state agriculture department"

STATE_CONTACTS: Dict[str, str] = {
    "NSW": "NSW Department of Primary Industries: 1800 808 095",
    "VIC": "Agriculture Victoria: 136 186",
    "QLD": "Biosecurity Queensland: 13 25 23",
    "WA": "Department of Primary Industries and Regional Development WA: (08) 9368 3333",
    "SA": "Primary Industries and Regions SA: (08) 8226 0900",
    "TAS": "Biosecurity Tasmania: 03 6165 3777",
    "NT": "NT Department of Industry, Tourism and Trade: 08 8999 2118",
    "ACT": "ACT Environment, Planning and Sustainable Development: 13 22 81",
}

# ---------------------------------------------------------------------------
# Label classification (placeholder policy, see app.labels)
# ---------------------------------------------------------------------------

APPROVED_USES_BY_CONSTITUENT: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("copper", (
        "Fungal disease control on fruit trees",
        "Leaf spot control on vegetables",
        "Blight prevention",
    )),
    ("pyrethrum", (
        "Aphid control",
        "Scale insect control",
        "General garden pest control",
    )),
    ("glyphosate", (
        "Non-selective weed control",
        "Pre-planting weed control",
    )),
    ("sulfur", (
        "Powdery mildew control",
        "Mite control on grapes and vegetables",
    )),
)

DEFAULT_APPROVED_USES: Tuple[str, ...] = ("As per product label",)

APPLICATION_RATES: Dict[str, str] = {
    "General use": "20g per 10L water",
    "Preventive": "15g per 10L water",
    "Curative": "25g per 10L water",
}

WITHHOLDING_PERIODS: Dict[str, int] = {
    "Leafy vegetables": 7,
    "Fruit crops": 14,
    "Root vegetables": 21,
}

SAFETY_DIRECTIONS: Tuple[str, ...] = (
    "Wear protective clothing and gloves",
    "Do not inhale spray mist",
    "Wash hands after use",
    "Keep away from children and pets",
)

FIRST_AID_INSTRUCTIONS: Tuple[str, ...] = (
    "If in eyes, flush with clean water for 15 minutes",
    "If on skin, wash immediately with soap and water",
    "If swallowed, do not induce vomiting - seek medical attention",
    "Take this label with you to medical attention",
)

ENVIRONMENTAL_PRECAUTIONS: Tuple[str, ...] = (
    "Do not contaminate streams, rivers or waterways",
    "Avoid application in windy conditions",
    "Do not apply before rain",
    "Store in original container in cool, dry place",
)

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PRODUCT_TYPE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("pesticide", ("pesticide", "herbicide", "fungicide")),
    ("veterinary", ("veterinary", "animal")),
)


def matches_any(text: str, keywords) -> bool:
    """Case-insensitive substring match of `text` against any keyword."""
    lowered = (text or "").lower()
    return any(k.lower() in lowered for k in keywords)
