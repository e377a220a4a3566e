"""Secondary weather provider: public hourly observations keyed by postcode.

The endpoint needs no API key and returns the station-observation JSON layout:

    {"observations": {"header": [{"name": ...}],
                      "data": [{"local_date_time_full": "20261019143000",
                                "air_temp": 21.3, "rel_hum": 60,
                                "wind_spd_kmh": 9, "wind_dir": "SW",
                                "rain_trace": "0.2", "weather": "-"}, ...]}}

Rows are newest first. Observations only describe today, so this provider
always yields a single Forecast.
"""
from __future__ import annotations

import datetime as dt
from statistics import mean
from typing import Any, Dict, List, Optional

from app import config
from app.data_sources.http import build_session
from app.data_sources.units import NEUTRAL_HUMIDITY_PCT, normalize_compass, precipitation_probability
from app.domain import Forecast
from app.errors import MalformedPayloadError
from app.spray_scoring import scored_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="observation_client")

PROVIDER_NAME = "observations"

session = build_session()


def _float_or_none(value: Any) -> Optional[float]:
    """Parse numeric observation fields, which may arrive as strings or '-'."""
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _observation_date(row: Dict[str, Any]) -> str:
    """ISO date of an observation row, or today's date when it has no timestamp."""
    stamp = str(row.get("local_date_time_full") or "")
    try:
        return dt.datetime.strptime(stamp[:8], "%Y%m%d").date().isoformat()
    except ValueError:
        return dt.date.today().isoformat()


def fetch_observations(postcode: str, *, settings: config.Settings | None = None) -> tuple[str | None, List[Dict[str, Any]]]:
    """Fetch raw observation rows for `postcode`; returns (station name, rows)."""
    settings = settings or config.settings
    resp = session.get(settings.observation_url, params={"postcode": postcode}, timeout=settings.http_timeout_seconds)
    resp.raise_for_status()
    data = resp.json()
    try:
        obs = data["observations"]
        rows = list(obs["data"])
        header = obs.get("header") or [{}]
        station = header[0].get("name")
    except (AttributeError, IndexError, KeyError, TypeError) as exc:
        raise MalformedPayloadError(f"Unexpected observation payload: {exc}") from exc
    return station, [r for r in rows if isinstance(r, dict)]


def summarize_observations(rows: List[Dict[str, Any]], *, postcode: str, location: str) -> Optional[Forecast]:
    """Collapse observation rows into today's Forecast; None when no row has a temperature."""
    temps = [t for t in (_float_or_none(r.get("air_temp")) for r in rows) if t is not None]
    if not temps:
        return None
    humidities = [h for h in (_float_or_none(r.get("rel_hum")) for r in rows) if h is not None]
    speeds = [w for w in (_float_or_none(r.get("wind_spd_kmh")) for r in rows) if w is not None]
    directions = [d for d in (normalize_compass(r.get("wind_dir")) for r in rows) if d]
    latest = rows[0]
    rainfall = _float_or_none(latest.get("rain_trace")) or 0.0

    return scored_forecast(
        location=location,
        postcode=postcode,
        date=_observation_date(latest),
        temp_min=round(min(temps), 1),
        temp_max=round(max(temps), 1),
        humidity=round(mean(humidities), 1) if humidities else NEUTRAL_HUMIDITY_PCT,
        wind_speed=round(mean(speeds), 1) if speeds else 0.0,
        wind_direction=directions[0] if directions else "N",
        rainfall=round(rainfall, 1),
        rainfall_probability=precipitation_probability(r.get("weather") for r in rows),
        source=PROVIDER_NAME,
    )


def fetch_observation_forecast(postcode: str, *, settings: config.Settings | None = None) -> List[Forecast]:
    """Return a single-day Forecast built from today's observations, or [] if none."""
    station, rows = fetch_observations(postcode, settings=settings)
    logger.debug("Fetched observations", extra={"postcode": postcode, "rows": len(rows)})
    forecast = summarize_observations(rows, postcode=postcode, location=station or f"Postcode {postcode}")
    return [forecast] if forecast else []
