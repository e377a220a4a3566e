import unittest

import requests
from fastapi.testclient import TestClient

from app.api import get_advisor
from app.advisor import SprayAdvisor
from app.cache import TTLCache
from app.config import Settings, settings
from app.data_sources import CallableWeatherProvider, RegistryClient
from app.domain import DISCLAIMER
from app.forecast_service import ForecastService
from app.main import app as fastapi_app
from app.spray_scoring import scored_forecast


class OfflineSession:
    def get(self, *args, **kwargs):
        raise requests.ConnectionError("offline")


def _forecast(**overrides):
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


def _advisor(forecasts):
    local = Settings()
    registry = RegistryClient(local, session=OfflineSession(), cache=TTLCache(3600))
    provider = CallableWeatherProvider(name="fake", fetch=lambda _pc: list(forecasts))
    service = ForecastService([provider], cache=TTLCache(1800), settings=local)
    return SprayAdvisor(local, registry=registry, forecasts=service)


class TestApi(unittest.TestCase):
    def setUp(self):
        self._orig_api_key = settings.api_key
        settings.api_key = None
        self.advisor = _advisor([_forecast()])
        fastapi_app.dependency_overrides[get_advisor] = lambda: self.advisor
        self.client = TestClient(fastapi_app)

    def tearDown(self):
        fastapi_app.dependency_overrides.clear()
        settings.api_key = self._orig_api_key

    def test_healthz(self):
        resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_search_products(self):
        resp = self.client.get("/v1/products", params={"q": "copper"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual([p["product_name"] for p in body], ["Copper Oxychloride Fungicide"])
        self.assertEqual(body[0]["restrictions"], ["Not for use near waterways"])

    def test_search_requires_query(self):
        resp = self.client.get("/v1/products")
        self.assertEqual(resp.status_code, 422)

    def test_get_product_and_label(self):
        resp = self.client.get("/v1/products/APVMA 61234")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["product_name"], "Pyrethrum Insect Spray")

        label = self.client.get("/v1/products/APVMA 61234/label")
        self.assertEqual(label.status_code, 200)
        self.assertIn("Aphid control", label.json()["approved_uses"])

    def test_unknown_product_404(self):
        self.assertEqual(self.client.get("/v1/products/APVMA 00000").status_code, 404)
        self.assertEqual(self.client.get("/v1/products/APVMA 00000/label").status_code, 404)

    def test_forecast(self):
        resp = self.client.get("/v1/forecast/2000")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(len(body), 1)
        self.assertEqual(body[0]["spray_conditions"], "excellent")
        self.assertEqual(body[0]["temperature"], {"min": 14.0, "max": 22.0})

    def test_compliance_includes_disclaimer(self):
        resp = self.client.post(
            "/v1/compliance",
            json={"product_id": "APVMA 99999", "context": {"state": "NSW"}},
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["disclaimer"], DISCLAIMER)
        self.assertFalse(body["result"]["compliant"])
        self.assertEqual(body["result"]["requirements"], ["Verify registration before use"])

    def test_compliance_rejects_unknown_context_fields(self):
        resp = self.client.post(
            "/v1/compliance",
            json={"product_id": "APVMA 52851", "context": {"state": "NSW", "colour": "blue"}},
        )
        self.assertEqual(resp.status_code, 422)

    def test_permit(self):
        resp = self.client.get("/v1/permits/APVMA 52851", params={"state": "nsw"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["state"], "NSW")
        self.assertFalse(body["result"]["permit_required"])
        self.assertEqual(body["disclaimer"], DISCLAIMER)

    def test_recommendation(self):
        self.advisor = _advisor([_forecast(temp_max=32.0)])
        resp = self.client.get("/v1/recommendation/2000", params={"hint": "oil-based"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertFalse(body["recommended"])
        self.assertIn("Temperature", body["reason"])
        self.assertIsNotNone(body["alternative_time"])

    def test_status(self):
        resp = self.client.get("/v1/status")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["weather_providers"], ["fake"])

    def test_requires_api_key_when_set(self):
        settings.api_key = "sekret"

        missing = self.client.get("/v1/forecast/2000")
        self.assertEqual(missing.status_code, 401)

        wrong = self.client.get("/v1/forecast/2000", headers={"X-API-Key": "nope"})
        self.assertEqual(wrong.status_code, 401)

        ok = self.client.get("/v1/forecast/2000", headers={"X-API-Key": "sekret"})
        self.assertEqual(ok.status_code, 200)

        self.assertEqual(self.client.get("/healthz").status_code, 200)


if __name__ == "__main__":
    unittest.main()
