"""Interfaces and the fallback combinator for weather providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from app.domain import Forecast
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/base")


class WeatherProvider(Protocol):
    """Anything that can turn a postcode into 1-3 days of normalized forecasts."""

    name: str

    def fetch_forecast(self, postcode: str) -> List[Forecast]:
        """Return forecasts for `postcode`, today first. May raise on failure."""
        ...


@dataclass
class CallableWeatherProvider(WeatherProvider):
    """Wrap a callable so providers can be swapped or faked in tests."""

    name: str
    fetch: Callable[[str], List[Forecast]]

    def fetch_forecast(self, postcode: str) -> List[Forecast]:
        """Delegate to the configured callable."""
        return self.fetch(postcode)


def first_successful(
    providers: Sequence[WeatherProvider],
    postcode: str,
) -> Optional[Tuple[str, List[Forecast]]]:
    """Try providers in order and return (provider name, forecasts) from the first that delivers.

    Exceptions and empty results count as failures and move on to the next
    provider. Returns None when every provider fails.
    """
    for provider in providers:
        try:
            forecasts = provider.fetch_forecast(postcode)
        except Exception as exc:
            logger.warning(
                "Weather provider failed; trying next",
                extra={"provider": provider.name, "postcode": postcode, "error": str(exc)},
            )
            continue
        if not forecasts:
            logger.warning("Weather provider returned no data; trying next",
                           extra={"provider": provider.name, "postcode": postcode})
            continue
        logger.info("Weather provider succeeded",
                    extra={"provider": provider.name, "postcode": postcode, "days": len(forecasts)})
        return provider.name, list(forecasts)
    return None
