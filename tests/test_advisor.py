import unittest

import requests

from app.advisor import (
    ALTERNATIVE_TIME,
    HEAT_REASON,
    RAIN_REASON,
    SUITABLE_REASON,
    WIND_REASON,
    SprayAdvisor,
    recommend_from_forecast,
)
from app.cache import TTLCache
from app.config import Settings
from app.data_sources import CallableWeatherProvider, RegistryClient
from app.domain import ApplicationContext
from app.forecast_service import ForecastService
from app.spray_scoring import scored_forecast


def make_forecast(**overrides):
    fields = dict(
        location="Sydney",
        postcode="2000",
        date="2026-10-19",
        temp_min=14.0,
        temp_max=22.0,
        humidity=55.0,
        wind_speed=5.0,
        wind_direction="SW",
        rainfall=0.0,
        rainfall_probability=10.0,
        source="fake",
    )
    fields.update(overrides)
    return scored_forecast(**fields)


class OfflineSession:
    def get(self, *args, **kwargs):
        raise requests.ConnectionError("offline")


def make_advisor(forecasts, settings=None):
    settings = settings or Settings()
    registry = RegistryClient(settings, session=OfflineSession(), cache=TTLCache(3600))
    provider = CallableWeatherProvider(name="fake", fetch=lambda _pc: list(forecasts))
    service = ForecastService([provider], cache=TTLCache(1800), settings=settings)
    return SprayAdvisor(settings, registry=registry, forecasts=service)


class TestRecommendFromForecast(unittest.TestCase):
    def test_calm_day_is_recommended(self):
        rec = recommend_from_forecast(make_forecast(), "copper")
        self.assertTrue(rec.recommended)
        self.assertEqual(rec.reason, SUITABLE_REASON)
        self.assertEqual(rec.warnings, [])
        self.assertIsNone(rec.alternative_time)

    def test_hot_day_blocks_oil_based_sprays_only(self):
        hot = make_forecast(temp_max=32.0, wind_speed=5.0)
        oil = recommend_from_forecast(hot, "oil-based")
        self.assertFalse(oil.recommended)
        self.assertEqual(oil.reason, HEAT_REASON)
        self.assertIn("High temperature: 32°C", oil.warnings)
        self.assertEqual(oil.alternative_time, ALTERNATIVE_TIME)

        self.assertTrue(recommend_from_forecast(hot, "copper").recommended)

    def test_first_reason_wins_but_all_warnings_are_kept(self):
        rec = recommend_from_forecast(
            make_forecast(wind_speed=22.5, rainfall_probability=80.0, temp_max=34.0), "Summer OIL"
        )
        self.assertFalse(rec.recommended)
        self.assertEqual(rec.reason, WIND_REASON)
        self.assertEqual(
            rec.warnings,
            ["High wind speed: 22.5km/h", "Rain probability: 80%", "High temperature: 34°C"],
        )

    def test_rain_reason(self):
        rec = recommend_from_forecast(make_forecast(rainfall_probability=71.0), None)
        self.assertEqual(rec.reason, RAIN_REASON)

    def test_thresholds_are_exclusive(self):
        rec = recommend_from_forecast(
            make_forecast(wind_speed=15.0, rainfall_probability=70.0, temp_max=30.0), "oil"
        )
        self.assertTrue(rec.recommended)


class TestSprayAdvisor(unittest.TestCase):
    def test_recommend_uses_todays_forecast(self):
        days = [make_forecast(date="2026-10-20"), make_forecast(temp_max=32.0, wind_speed=5.0)]
        advisor = make_advisor(days)

        rec = advisor.recommend("2000", "oil-based")

        self.assertFalse(rec.recommended)
        self.assertIn("Temperature", rec.reason)
        self.assertEqual(rec.forecast.date, "2026-10-19")

    def test_search_falls_back_when_registry_is_down(self):
        advisor = make_advisor([make_forecast()])
        names = [p.product_name for p in advisor.search_products("copper")]
        self.assertEqual(names, ["Copper Oxychloride Fungicide"])

    def test_lookup_through_fallback_catalog(self):
        advisor = make_advisor([make_forecast()])
        product = advisor.get_product("APVMA 52851")
        self.assertIsNotNone(product)
        label = advisor.get_label("APVMA 52851")
        self.assertTrue(label.restricted_use)

    def test_compliance_for_unknown_product_is_conservative(self):
        advisor = make_advisor([make_forecast()])
        result = advisor.check_compliance("APVMA 99999", ApplicationContext(state="NSW"))
        self.assertFalse(result.compliant)
        self.assertEqual(result.warnings, ["Product information not available"])

    def test_compliance_for_known_product(self):
        advisor = make_advisor([make_forecast()])
        result = advisor.check_compliance(
            "APVMA 52851", ApplicationContext(state="NSW", residential_area=True)
        )
        self.assertTrue(result.compliant)
        self.assertIn("Not for use near waterways", result.restrictions)
        self.assertIn("Restricted use product in a residential area", result.warnings)

    def test_permit_for_known_product(self):
        advisor = make_advisor([make_forecast()])
        permit = advisor.check_permit("APVMA 61234", "SA")
        self.assertFalse(permit.permit_required)

    def test_service_status_hints_missing_key(self):
        settings = Settings(openweather_api_key=None)
        registry = RegistryClient(settings, session=OfflineSession())
        providers = [CallableWeatherProvider(name="openweather", fetch=lambda _pc: [])]
        advisor = SprayAdvisor(settings, registry=registry, providers=providers)

        status = advisor.service_status()
        self.assertEqual(status.weather_providers, ["openweather"])
        self.assertIn("openweather", status.configuration_hints)


if __name__ == "__main__":
    unittest.main()
