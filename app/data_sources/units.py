"""Unit conversions shared by the weather provider normalizers."""

from __future__ import annotations

import math
from typing import Iterable, Optional

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

# factors to km/h
WIND_UNIT_FACTORS = {
    "km/h": 1.0,
    "kmh": 1.0,
    "m/s": 3.6,
    "mph": 1.609344,
    "kn": 1.852,
    "knots": 1.852,
}

# used when a provider reports no humidity; sits between both humidity penalties
NEUTRAL_HUMIDITY_PCT = 60.0

PRECIPITATION_CLASSES = {"rain", "drizzle", "thunderstorm", "snow", "sleet", "hail"}
PRECIPITATION_WORDS = ("rain", "drizzle", "shower", "storm", "thunder", "snow", "sleet", "hail")


def to_kmh(speed: float, unit: str) -> float:
    """Convert a wind speed in `unit` to km/h."""
    factor = WIND_UNIT_FACTORS.get(unit.strip().lower())
    if factor is None:
        raise ValueError(f"Unknown wind speed unit '{unit}'")
    return speed * factor


def degrees_to_compass(degrees: float) -> str:
    """Map a bearing in degrees to one of 16 compass labels."""
    index = int((degrees % 360) / 22.5 + 0.5) % 16
    return COMPASS_POINTS[index]


def normalize_compass(value: object) -> Optional[str]:
    """Accept either a bearing or a compass label and return a compass label."""
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return degrees_to_compass(float(value))
    text = str(value).strip().upper()
    if text in COMPASS_POINTS:
        return text
    try:
        return degrees_to_compass(float(text))
    except ValueError:
        return None


def mean_bearing(degrees: Iterable[float]) -> Optional[float]:
    """Circular mean of bearings (so 350 and 10 average to 0, not 180)."""
    values = list(degrees)
    if not values:
        return None
    sin_sum = sum(math.sin(math.radians(d)) for d in values)
    cos_sum = sum(math.cos(math.radians(d)) for d in values)
    return math.degrees(math.atan2(sin_sum, cos_sum)) % 360


def is_precipitation(classification: object) -> bool:
    """True when a provider's weather classification describes precipitation."""
    if not classification:
        return False
    text = str(classification).strip().lower()
    if text in PRECIPITATION_CLASSES:
        return True
    return any(word in text for word in PRECIPITATION_WORDS)


def precipitation_probability(classifications: Iterable[object]) -> float:
    """Percentage of sub-intervals whose classification indicates precipitation."""
    values = list(classifications)
    if not values:
        return 0.0
    wet = sum(1 for c in values if is_precipitation(c))
    return round(100.0 * wet / len(values), 1)
