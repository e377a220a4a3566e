"""Deterministic spray-suitability scoring.

Converts a day's weather into a SprayConditions category and a list of
human-readable warnings. Category and warnings use separate threshold tables:
warnings fire earlier so that a "good" day can still carry advice.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from app.domain import Forecast, SprayConditions, TemperatureRange

BASELINE_SCORE = 100

# (threshold, penalty) pairs, most severe first; only the first bracket exceeded applies.
WIND_PENALTIES: Sequence[Tuple[float, int]] = ((25, 40), (20, 30), (15, 20), (10, 10))
RAIN_PENALTIES: Sequence[Tuple[float, int]] = ((80, 30), (60, 20), (40, 10))
HEAT_PENALTIES: Sequence[Tuple[float, int]] = ((35, 25), (30, 15), (28, 5))
LOW_HUMIDITY = (30, 10)
HIGH_HUMIDITY = (90, 15)

# minimum score for each category, best first
CATEGORY_FLOORS: Sequence[Tuple[int, SprayConditions]] = (
    (85, SprayConditions.EXCELLENT),
    (70, SprayConditions.GOOD),
    (50, SprayConditions.MARGINAL),
)

# warning cutoffs
WIND_SEVERE_WARNING_KMH = 20
WIND_WARNING_KMH = 15
RAIN_LIKELY_WARNING_PCT = 70
RAIN_POSSIBLE_WARNING_PCT = 40
HEAT_WARNING_C = 32
LOW_HUMIDITY_WARNING_PCT = 30
FUNGAL_HUMIDITY_PCT = 85
FUNGAL_TEMP_C = 25


def _bracket_penalty(value: float, brackets: Sequence[Tuple[float, int]]) -> int:
    """Return the penalty of the most severe bracket `value` exceeds."""
    for threshold, penalty in brackets:
        if value > threshold:
            return penalty
    return 0


def _in_severe_bracket(value: float, brackets: Sequence[Tuple[float, int]]) -> bool:
    """True when `value` is past the top bracket of a table."""
    return value > brackets[0][0]


def spray_score(wind_speed: float, rainfall_probability: float, max_temp: float, humidity: float) -> int:
    """Return the 0-100 suitability score."""
    score = BASELINE_SCORE
    score -= _bracket_penalty(wind_speed, WIND_PENALTIES)
    score -= _bracket_penalty(rainfall_probability, RAIN_PENALTIES)
    score -= _bracket_penalty(max_temp, HEAT_PENALTIES)
    if humidity < LOW_HUMIDITY[0]:
        score -= LOW_HUMIDITY[1]
    if humidity > HIGH_HUMIDITY[0]:
        score -= HIGH_HUMIDITY[1]
    return max(0, score)


def _category(score: int, hard_stop: bool) -> SprayConditions:
    """Map a score to a category; any axis in its most severe bracket is always poor."""
    if hard_stop:
        return SprayConditions.POOR
    for floor, category in CATEGORY_FLOORS:
        if score >= floor:
            return category
    return SprayConditions.POOR


def spray_warnings(wind_speed: float, rainfall_probability: float, max_temp: float, humidity: float) -> List[str]:
    """Return advisory warnings for the given conditions, in a stable order."""
    warnings: List[str] = []

    if wind_speed > WIND_SEVERE_WARNING_KMH:
        warnings.append(f"High wind ({wind_speed:.0f} km/h) - severe spray drift risk, do not spray")
    elif wind_speed > WIND_WARNING_KMH:
        warnings.append(f"Moderate wind ({wind_speed:.0f} km/h) - spray drift risk, use drift-reducing nozzles")

    if rainfall_probability > RAIN_LIKELY_WARNING_PCT:
        warnings.append(f"Rain likely ({rainfall_probability:.0f}%) - spray may be washed off")
    elif rainfall_probability > RAIN_POSSIBLE_WARNING_PCT:
        warnings.append(f"Possible rain ({rainfall_probability:.0f}%) - check rain-free period on label")

    if max_temp > HEAT_WARNING_C:
        warnings.append(
            f"High temperature ({max_temp:.0f}°C) - risk of volatilisation and leaf burn, avoid oil-based sprays"
        )

    if humidity < LOW_HUMIDITY_WARNING_PCT:
        warnings.append(f"Low humidity ({humidity:.0f}%) - rapid droplet evaporation")
    elif humidity > FUNGAL_HUMIDITY_PCT and max_temp > FUNGAL_TEMP_C:
        warnings.append("Warm, humid conditions - elevated fungal disease risk")

    return warnings


def score_conditions(
    wind_speed: float,
    rainfall_probability: float,
    max_temp: float,
    humidity: float,
) -> Tuple[SprayConditions, List[str]]:
    """Pure function: numeric weather -> (category, warnings)."""
    hard_stop = (
        _in_severe_bracket(wind_speed, WIND_PENALTIES)
        or _in_severe_bracket(rainfall_probability, RAIN_PENALTIES)
        or _in_severe_bracket(max_temp, HEAT_PENALTIES)
    )
    score = spray_score(wind_speed, rainfall_probability, max_temp, humidity)
    return _category(score, hard_stop), spray_warnings(wind_speed, rainfall_probability, max_temp, humidity)


def score_forecast(forecast: Forecast) -> Tuple[SprayConditions, List[str]]:
    """Score a Forecast from its own numeric fields."""
    return score_conditions(
        forecast.wind_speed,
        forecast.rainfall_probability,
        forecast.temperature.max,
        forecast.humidity,
    )


def scored_forecast(
    *,
    location: str,
    postcode: str,
    date: str,
    temp_min: float,
    temp_max: float,
    humidity: float,
    wind_speed: float,
    wind_direction: str,
    rainfall: float,
    rainfall_probability: float,
    source: str = "unknown",
) -> Forecast:
    """Build a Forecast with spray_conditions and warnings filled in."""
    category, warnings = score_conditions(wind_speed, rainfall_probability, temp_max, humidity)
    return Forecast(
        location=location,
        postcode=postcode,
        date=date,
        temperature=TemperatureRange(min=temp_min, max=temp_max),
        humidity=humidity,
        wind_speed=wind_speed,
        wind_direction=wind_direction,
        rainfall=rainfall,
        rainfall_probability=rainfall_probability,
        spray_conditions=category,
        warnings=warnings,
        source=source,
    )


def rescore(forecast: Forecast) -> Forecast:
    """Return a copy of `forecast` with its rating recomputed from its numbers."""
    category, warnings = score_forecast(forecast)
    return forecast.model_copy(update={"spray_conditions": category, "warnings": warnings})
