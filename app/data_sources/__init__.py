"""Registry and weather data sources, normalized into app.domain types."""

from .base import CallableWeatherProvider, WeatherProvider, first_successful
from .factory import build_weather_providers
from .registry_client import RegistryClient

__all__ = [
    "build_weather_providers",
    "CallableWeatherProvider",
    "first_successful",
    "RegistryClient",
    "WeatherProvider",
]
