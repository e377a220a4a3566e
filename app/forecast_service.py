"""Resolve a postcode to spray-rated forecasts through the provider chain."""
from __future__ import annotations

import datetime as dt
from typing import Callable, List, Sequence

from app import config
from app.cache import TTLCache
from app.data_sources.base import WeatherProvider, first_successful
from app.domain import Forecast
from app.spray_scoring import scored_forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="forecast_service")

SYNTHETIC_SOURCE = "seasonal_average"


def synthetic_forecast(postcode: str, *, today: dt.date | None = None) -> Forecast:
    """Average seasonal conditions used when every provider fails."""
    return scored_forecast(
        location=f"Postcode {postcode}",
        postcode=postcode,
        date=(today or dt.date.today()).isoformat(),
        temp_min=16.0,
        temp_max=24.0,
        humidity=65.0,
        wind_speed=8.0,
        wind_direction="SW",
        rainfall=0.0,
        rainfall_probability=15.0,
        source=SYNTHETIC_SOURCE,
    )


class ForecastService:
    """Cached, fallback-aware forecast lookups keyed by postcode."""

    def __init__(
        self,
        providers: Sequence[WeatherProvider],
        *,
        cache: TTLCache[List[Forecast]] | None = None,
        today: Callable[[], dt.date] = dt.date.today,
        settings: config.Settings | None = None,
    ) -> None:
        """Bind an ordered provider list and the weather cache."""
        settings = settings or config.settings
        self.providers = list(providers)
        self.cache = cache or TTLCache(
            settings.weather_cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
            name="weather",
        )
        self._today = today

    def _resolve(self, postcode: str) -> List[Forecast]:
        """Run the provider chain, falling back to the synthetic forecast."""
        result = first_successful(self.providers, postcode)
        if result is None:
            logger.warning("All weather providers failed; using seasonal average", extra={"postcode": postcode})
            return [synthetic_forecast(postcode, today=self._today())]
        _name, forecasts = result
        return sorted(forecasts, key=lambda f: f.date)[:3]

    def forecast(self, postcode: str) -> List[Forecast]:
        """Return 1-3 daily forecasts for `postcode`, today first. Never empty."""
        key = (postcode or "").strip()
        forecasts = self.cache.get_or_fetch(key, lambda: self._resolve(key))
        return list(forecasts)

    def today(self, postcode: str) -> Forecast:
        """Return today's forecast for `postcode`."""
        return self.forecast(postcode)[0]
