"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the spray advisory service."""
    model_config = SettingsConfigDict(env_prefix="SPRAY_", extra="ignore")

    # chemical registry (CKAN datastore on data.gov.au)
    registry_url: str = "https://data.gov.au/data/api/3/action/datastore_search"
    registry_resource_id: str = "de37904-43e0-4814-b21b-5b64fafefe6f"
    registry_search_limit: int = 20
    registry_portal_url: str = "https://portal.apvma.gov.au/pubcris"

    # weather providers, tried in the listed order
    weather_providers: str = "openweather,observations"
    openweather_api_key: str | None = None
    openweather_base_url: str = "https://api.openweathermap.org"
    observation_url: str = "https://api.weather.community/v1/observations"
    country_code: str = "AU"
    forecast_days: int = 3

    http_timeout_seconds: float = 10.0
    http_retries: int = 2
    user_agent: str = "SprayAdvisor/1.0"

    product_cache_ttl_seconds: int = 3600
    weather_cache_ttl_seconds: int = 1800
    cache_max_entries: int = 512

    api_key: str | None = None

    @field_validator("registry_url", "registry_portal_url", "openweather_base_url", "observation_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("forecast_days", mode="after")
    @classmethod
    def clamp_forecast_days(cls, v: int) -> int:
        """Providers return between one and three days."""
        return max(1, min(3, int(v)))

    @property
    def provider_order(self) -> list[str]:
        """Weather provider names in priority order."""
        return [p.strip().lower() for p in self.weather_providers.split(",") if p.strip()]


settings = Settings()


if __name__ == "__main__":
    logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_api_key', 'api_key'})}")
