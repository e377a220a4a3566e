"""Primary weather provider: OpenWeatherMap geocoding + 5 day / 3 hour forecast."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from statistics import mean
from typing import Any, Dict, List, Optional

from app import config
from app.data_sources.http import build_session
from app.data_sources.units import (
    NEUTRAL_HUMIDITY_PCT,
    degrees_to_compass,
    mean_bearing,
    precipitation_probability,
    to_kmh,
)
from app.domain import Forecast
from app.errors import MalformedPayloadError, ProviderConfigurationError
from app.spray_scoring import scored_forecast
from utils.logging_utils import get_tagged_logger, mask_url_secrets

logger = get_tagged_logger(__name__, tag="openweather_client")

PROVIDER_NAME = "openweather"
GEOCODE_PATH = "/geo/1.0/zip"
FORECAST_PATH = "/data/2.5/forecast"
# units=metric reports wind in m/s
OPENWEATHER_WIND_UNIT = "m/s"

session = build_session()


@dataclass
class GeocodedPostcode:
    """Coordinates and place name resolved from a postcode."""
    postcode: str
    name: str
    latitude: float
    longitude: float


@dataclass
class ForecastSlot:
    """One 3-hour forecast interval, already in metric units."""
    time: dt.datetime  # local wall-clock time at the forecast location
    temp_min: float
    temp_max: float
    humidity: Optional[float]
    wind_speed_kmh: Optional[float]
    wind_bearing: Optional[float]
    rain_mm: float
    classification: Optional[str]


def _get_json(url: str, params: Dict[str, Any], timeout: float) -> Any:
    """GET `url` and return decoded JSON, raising on HTTP errors."""
    resp = session.get(url, params=params, timeout=timeout)
    logger.debug("OpenWeather request", extra={"url": mask_url_secrets(getattr(resp, "url", url))})
    resp.raise_for_status()
    return resp.json()


def _require_api_key(settings: config.Settings) -> str:
    """Return the configured API key or raise a configuration error."""
    if not settings.openweather_api_key:
        raise ProviderConfigurationError("OpenWeatherMap API key is not configured (SPRAY_OPENWEATHER_API_KEY)")
    return settings.openweather_api_key


def geocode_postcode(postcode: str, *, settings: config.Settings | None = None) -> GeocodedPostcode:
    """Resolve a postcode to coordinates with the zip geocoding endpoint."""
    settings = settings or config.settings
    api_key = _require_api_key(settings)
    data = _get_json(
        f"{settings.openweather_base_url}{GEOCODE_PATH}",
        {"zip": f"{postcode},{settings.country_code}", "appid": api_key},
        settings.http_timeout_seconds,
    )
    try:
        return GeocodedPostcode(
            postcode=postcode,
            name=data.get("name") or f"Postcode {postcode}",
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"Unexpected geocoding payload: {exc}") from exc


def _parse_slot(item: Dict[str, Any], utc_offset: int) -> ForecastSlot:
    """Convert one entry of the forecast `list` into a ForecastSlot."""
    main = item["main"]
    wind = item.get("wind") or {}
    weather = item.get("weather") or [{}]
    rain = item.get("rain") or {}
    speed = wind.get("speed")
    bearing = wind.get("deg")
    return ForecastSlot(
        time=dt.datetime.fromtimestamp(int(item["dt"]) + utc_offset, tz=dt.timezone.utc).replace(tzinfo=None),
        temp_min=float(main.get("temp_min", main["temp"])),
        temp_max=float(main.get("temp_max", main["temp"])),
        humidity=float(main["humidity"]) if main.get("humidity") is not None else None,
        wind_speed_kmh=to_kmh(float(speed), OPENWEATHER_WIND_UNIT) if speed is not None else None,
        wind_bearing=float(bearing) if bearing is not None else None,
        rain_mm=float(rain.get("3h", 0.0) or 0.0),
        classification=weather[0].get("main"),
    )


def fetch_forecast_slots(
    latitude: float,
    longitude: float,
    *,
    settings: config.Settings | None = None,
) -> tuple[List[ForecastSlot], Optional[str]]:
    """Fetch 3-hourly forecast slots; returns (slots, city name reported by the API)."""
    settings = settings or config.settings
    api_key = _require_api_key(settings)
    data = _get_json(
        f"{settings.openweather_base_url}{FORECAST_PATH}",
        {"lat": latitude, "lon": longitude, "units": "metric", "appid": api_key},
        settings.http_timeout_seconds,
    )
    try:
        city = data.get("city") or {}
        offset = int(city.get("timezone") or 0)
        slots = [_parse_slot(item, offset) for item in data["list"]]
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"Unexpected forecast payload: {exc}") from exc
    return slots, city.get("name")


def _summarize_day(day: dt.date, slots: List[ForecastSlot], *, location: str, postcode: str) -> Forecast:
    """Collapse a day's slots into a single scored Forecast."""
    humidities = [s.humidity for s in slots if s.humidity is not None]
    speeds = [s.wind_speed_kmh for s in slots if s.wind_speed_kmh is not None]
    bearing = mean_bearing(s.wind_bearing for s in slots if s.wind_bearing is not None)
    return scored_forecast(
        location=location,
        postcode=postcode,
        date=day.isoformat(),
        temp_min=round(min(s.temp_min for s in slots), 1),
        temp_max=round(max(s.temp_max for s in slots), 1),
        humidity=round(mean(humidities), 1) if humidities else NEUTRAL_HUMIDITY_PCT,
        wind_speed=round(mean(speeds), 1) if speeds else 0.0,
        wind_direction=degrees_to_compass(bearing) if bearing is not None else "N",
        rainfall=round(sum(s.rain_mm for s in slots), 1),
        rainfall_probability=precipitation_probability(s.classification for s in slots),
        source=PROVIDER_NAME,
    )


def group_slots_by_day(slots: List[ForecastSlot], max_days: int) -> Dict[dt.date, List[ForecastSlot]]:
    """Group slots by local date, keeping the first `max_days` dates in order."""
    days: Dict[dt.date, List[ForecastSlot]] = {}
    for slot in sorted(slots, key=lambda s: s.time):
        key = slot.time.date()
        if key not in days and len(days) >= max_days:
            break
        days.setdefault(key, []).append(slot)
    return days


def fetch_openweather_forecast(postcode: str, *, settings: config.Settings | None = None) -> List[Forecast]:
    """Geocode `postcode`, fetch its forecast and return up to `forecast_days` daily Forecasts."""
    settings = settings or config.settings
    place = geocode_postcode(postcode, settings=settings)
    logger.info("Geocoded postcode", extra={"postcode": postcode, "lat": place.latitude, "lon": place.longitude})

    slots, city_name = fetch_forecast_slots(place.latitude, place.longitude, settings=settings)
    location = place.name or city_name or f"Postcode {postcode}"
    days = group_slots_by_day(slots, settings.forecast_days)

    return [
        _summarize_day(day, day_slots, location=location, postcode=postcode)
        for day, day_slots in days.items()
    ]
