"""
Caller-facing facade: wires the registry, forecast chain, scorer and rule
evaluators together and composes the application recommendation.
All operations return a value; remote failures are absorbed by the layers below.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel

from app import config
from app.compliance import check_compliance, check_permit
from app.data_sources import RegistryClient, WeatherProvider, build_weather_providers
from app.domain import ApplicationContext, ComplianceResult, Forecast, Label, PermitResult, Product, Recommendation
from app.forecast_service import ForecastService
from app.labels import derive_label
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="advisor")

MAX_WIND_KMH = 15
MAX_RAIN_PROBABILITY = 70
MAX_OIL_SPRAY_TEMP_C = 30

SUITABLE_REASON = "Conditions suitable for application"
WIND_REASON = "Wind speed too high for safe application"
RAIN_REASON = "High chance of rain within spray period"
HEAT_REASON = "Temperature too high for oil-based sprays"
ALTERNATIVE_TIME = "Try early morning or evening when conditions improve"


class ServiceStatus(BaseModel):
    """Which external services are configured, with hints for the ones that are not."""
    registry: str
    weather_providers: List[str]
    configuration_hints: Dict[str, str]


def recommend_from_forecast(forecast: Forecast, hint: str | None) -> Recommendation:
    """Pure go/no-go decision for today's forecast and a product hint.

    The first triggered condition becomes the reason; every triggered condition
    adds a warning.
    """
    reasons: List[str] = []
    warnings: List[str] = []

    if forecast.wind_speed > MAX_WIND_KMH:
        reasons.append(WIND_REASON)
        warnings.append(f"High wind speed: {forecast.wind_speed:g}km/h")

    if forecast.rainfall_probability > MAX_RAIN_PROBABILITY:
        reasons.append(RAIN_REASON)
        warnings.append(f"Rain probability: {forecast.rainfall_probability:g}%")

    if "oil" in (hint or "").lower() and forecast.temperature.max > MAX_OIL_SPRAY_TEMP_C:
        reasons.append(HEAT_REASON)
        warnings.append(f"High temperature: {forecast.temperature.max:g}°C")

    recommended = not reasons
    return Recommendation(
        recommended=recommended,
        reason=reasons[0] if reasons else SUITABLE_REASON,
        warnings=warnings,
        alternative_time=None if recommended else ALTERNATIVE_TIME,
        forecast=forecast,
    )


class SprayAdvisor:
    """Entry point for the API layer."""

    def __init__(
        self,
        settings: config.Settings | None = None,
        *,
        registry: RegistryClient | None = None,
        forecasts: ForecastService | None = None,
        providers: List[WeatherProvider] | None = None,
    ) -> None:
        """Build collaborators from settings unless they are injected."""
        self.settings = settings or config.settings
        self.registry = registry or RegistryClient(self.settings)
        if forecasts is None:
            chain = providers if providers is not None else build_weather_providers(self.settings)
            forecasts = ForecastService(chain, settings=self.settings)
        self.forecasts = forecasts

    def search_products(self, query: str, limit: int | None = None) -> List[Product]:
        """Search registered products."""
        return self.registry.search(query, limit)

    def get_product(self, product_id: str) -> Optional[Product]:
        """Resolve a product by registration number."""
        return self.registry.get_by_registration_number(product_id)

    def get_label(self, product_id: str) -> Optional[Label]:
        """Derive label metadata for a product; None when the product is unknown."""
        product = self.get_product(product_id)
        return derive_label(product) if product else None

    def forecast(self, postcode: str) -> List[Forecast]:
        """Return 1-3 days of spray-rated forecasts."""
        return self.forecasts.forecast(postcode)

    def check_compliance(self, product_id: str, context: ApplicationContext) -> ComplianceResult:
        """Check a product against the application context."""
        product = self.get_product(product_id)
        label = derive_label(product) if product else None
        result = check_compliance(product, label, context)
        logger.info(
            "Compliance check",
            extra={"product_id": product_id, "state": context.state, "compliant": result.compliant},
        )
        return result

    def check_permit(self, product_id: str, state: str) -> PermitResult:
        """Check whether a permit is needed for a product in a state."""
        return check_permit(self.get_product(product_id), state)

    def recommend(self, postcode: str, hint: str | None = None) -> Recommendation:
        """Advise whether to apply today at `postcode`."""
        today = self.forecasts.today(postcode)
        recommendation = recommend_from_forecast(today, hint)
        logger.info(
            "Application recommendation",
            extra={"postcode": postcode, "recommended": recommendation.recommended, "source": today.source},
        )
        return recommendation

    def service_status(self) -> ServiceStatus:
        """Report which providers are configured."""
        hints: Dict[str, str] = {}
        names = [p.name for p in self.forecasts.providers]
        if "openweather" in names and not self.settings.openweather_api_key:
            hints["openweather"] = (
                "Set SPRAY_OPENWEATHER_API_KEY to enable forecast-based spray recommendations; "
                "observations or seasonal averages are used meanwhile."
            )
        if not names:
            hints["weather"] = "No weather providers configured; seasonal averages are used."
        return ServiceStatus(
            registry=self.settings.registry_url,
            weather_providers=names,
            configuration_hints=hints,
        )
