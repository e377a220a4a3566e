"""Factory helpers for assembling the weather provider chain at startup."""

from __future__ import annotations

from functools import partial
from typing import List

from app import config
from app.data_sources.base import CallableWeatherProvider, WeatherProvider
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_PROVIDER_ORDER = ("openweather", "observations")


def build_weather_provider(name: str, settings: config.Settings) -> WeatherProvider:
    """Instantiate a single provider by name."""
    if name == "openweather":
        from .openweather_client import fetch_openweather_forecast

        if not settings.openweather_api_key:
            logger.warning("OpenWeatherMap provider enabled without an API key; it will be skipped at runtime")
        return CallableWeatherProvider(name=name, fetch=partial(fetch_openweather_forecast, settings=settings))

    if name == "observations":
        from .observation_client import fetch_observation_forecast

        return CallableWeatherProvider(name=name, fetch=partial(fetch_observation_forecast, settings=settings))

    raise ValueError(f"Unknown weather provider '{name}'")


def build_weather_providers(settings: config.Settings | None = None) -> List[WeatherProvider]:
    """Build the configured providers in priority order."""
    settings = settings or config.settings
    order = settings.provider_order or list(DEFAULT_PROVIDER_ORDER)
    providers = [build_weather_provider(name, settings) for name in order]
    logger.info("Using weather providers", extra={"providers": [p.name for p in providers]})
    return providers
