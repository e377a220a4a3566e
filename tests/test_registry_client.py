import unittest

import requests

from app.cache import TTLCache
from app.config import Settings
from app.data_sources.registry_client import (
    RegistryClient,
    fallback_search,
    normalize_query,
    normalize_record,
    split_list_field,
)
from app.domain import ProductType
from app.errors import MalformedPayloadError


class DummyResp:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self):
        return self._payload


class DummySession:
    def __init__(self, payload=None, exc=None, status=200):
        self.payload = payload
        self.exc = exc
        self.status = status
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return DummyResp(self.payload, self.status)


def registry_payload(*records):
    return {"success": True, "result": {"records": list(records)}}


GLYPHOSATE_RECORD = {
    "_id": 7,
    "product_name": "Roundup Herbicide",
    "registration_number": "APVMA 31209",
    "registration_holder": "Bayer",
    "active_constituents": "Glyphosate 360g/L, Surfactant",
    "status": "Active",
    "registration_date": "2018-03-01",
    "restrictions": "",
}


def make_client(session):
    settings = Settings(registry_portal_url="https://portal.example/product")
    return RegistryClient(settings, session=session, cache=TTLCache(3600))


class TestRegistrySearch(unittest.TestCase):
    def test_unreachable_registry_falls_back_to_catalog(self):
        client = make_client(DummySession(exc=requests.ConnectionError("offline")))
        results = client.search("copper")
        self.assertEqual([p.product_name for p in results], ["Copper Oxychloride Fungicide"])
        self.assertEqual(results[0].restrictions, ("Not for use near waterways",))

    def test_fallback_results_are_not_cached(self):
        session = DummySession(exc=requests.ConnectionError("offline"))
        client = make_client(session)
        client.search("copper")
        session.exc = None
        session.payload = registry_payload(GLYPHOSATE_RECORD)
        results = client.search("copper")
        self.assertEqual(results[0].product_name, "Roundup Herbicide")
        self.assertEqual(len(session.calls), 2)

    def test_malformed_payload_falls_back(self):
        client = make_client(DummySession(payload={"success": True, "result": {}}))
        results = client.search("pyrethrum")
        self.assertEqual([p.registration_number for p in results], ["APVMA 61234"])

    def test_http_error_falls_back(self):
        client = make_client(DummySession(payload={}, status=503))
        self.assertEqual(len(client.search("copper")), 1)

    def test_successful_search_is_cached_by_normalized_query(self):
        session = DummySession(payload=registry_payload(GLYPHOSATE_RECORD))
        client = make_client(session)
        first = client.search("Roundup")
        second = client.search("  roundup ")
        self.assertEqual(first, second)
        self.assertEqual(len(session.calls), 1)
        self.assertEqual(session.calls[0]["params"]["q"], "Roundup")
        self.assertEqual(session.calls[0]["params"]["limit"], 20)

    def test_limit_is_part_of_cache_key(self):
        session = DummySession(payload=registry_payload(GLYPHOSATE_RECORD))
        client = make_client(session)
        client.search("roundup")
        client.search("roundup", limit=5)
        self.assertEqual(len(session.calls), 2)

    def test_empty_query_returns_nothing(self):
        session = DummySession(payload=registry_payload(GLYPHOSATE_RECORD))
        client = make_client(session)
        self.assertEqual(client.search("   "), [])
        self.assertEqual(session.calls, [])

    def test_unreadable_records_are_skipped(self):
        client = make_client(DummySession(payload=registry_payload({"registration_number": "X"}, GLYPHOSATE_RECORD)))
        results = client.search("roundup")
        self.assertEqual(len(results), 1)

    def test_get_by_registration_number_requires_exact_match(self):
        near_miss = dict(GLYPHOSATE_RECORD, registration_number="APVMA 312090", _id=8)
        session = DummySession(payload=registry_payload(near_miss, GLYPHOSATE_RECORD))
        client = make_client(session)
        product = client.get_by_registration_number("APVMA 31209")
        self.assertIsNotNone(product)
        self.assertEqual(product.id, "7")
        self.assertEqual(session.calls[0]["params"]["limit"], 5)

    def test_get_by_registration_number_unknown(self):
        client = make_client(DummySession(payload=registry_payload()))
        self.assertIsNone(client.get_by_registration_number("APVMA 00000"))
        self.assertIsNone(client.get_by_registration_number(""))

    def test_get_by_registration_number_while_registry_is_down(self):
        client = make_client(DummySession(exc=requests.ConnectionError("offline")))
        copper = client.get_by_registration_number("APVMA 52851")
        self.assertIsNotNone(copper)
        self.assertEqual(copper.product_name, "Copper Oxychloride Fungicide")
        self.assertEqual(client.get_by_registration_number("APVMA 61234").id, "apvma_2")
        self.assertIsNone(client.get_by_registration_number("APVMA 00000"))

    def test_cached_products_cannot_be_mutated_by_callers(self):
        session = DummySession(payload=registry_payload(GLYPHOSATE_RECORD))
        client = make_client(session)
        product = client.search("roundup")[0]
        with self.assertRaises(AttributeError):
            product.active_constituents.append("Something else")
        self.assertEqual(
            client.search("roundup")[0].active_constituents, ("Glyphosate 360g/L", "Surfactant")
        )


class TestNormalization(unittest.TestCase):
    def test_normalize_record_maps_fields(self):
        product = normalize_record(GLYPHOSATE_RECORD, portal_url="https://portal.example/product")
        self.assertEqual(product.id, "7")
        self.assertEqual(product.active_constituents, ("Glyphosate 360g/L", "Surfactant"))
        self.assertEqual(product.restrictions, ())
        self.assertEqual(product.product_type, ProductType.PESTICIDE)
        self.assertEqual(product.label_url, "https://portal.example/product/APVMA 31209")

    def test_alternate_keys_are_accepted(self):
        product = normalize_record({"name": "Animal Health Drench", "apvma_number": "APVMA 1", "holder": "Vet Co"})
        self.assertEqual(product.product_name, "Animal Health Drench")
        self.assertEqual(product.registration_holder, "Vet Co")
        self.assertEqual(product.registration_status, "Active")
        self.assertEqual(product.product_type, ProductType.VETERINARY)

    def test_record_without_name_is_malformed(self):
        with self.assertRaises(MalformedPayloadError):
            normalize_record({"registration_number": "APVMA 1"})

    def test_split_list_field(self):
        self.assertEqual(split_list_field(" a, ,b "), ["a", "b"])
        self.assertEqual(split_list_field(["a", None, " c "]), ["a", "c"])
        self.assertEqual(split_list_field(None), [])
        self.assertEqual(split_list_field(42), [])

    def test_normalize_query(self):
        self.assertEqual(normalize_query("  Copper   Oxychloride "), "copper oxychloride")

    def test_fallback_matches_constituents(self):
        self.assertEqual([p.id for p in fallback_search("pyrethrum extract")], ["apvma_2"])
        self.assertEqual(fallback_search("nothing-like-this"), [])

    def test_fallback_matches_registration_number_case_insensitively(self):
        self.assertEqual([p.id for p in fallback_search("apvma 52851")], ["apvma_1"])
        self.assertEqual([p.id for p in fallback_search("APVMA")], ["apvma_1", "apvma_2"])
        self.assertEqual(fallback_search("   "), [])


if __name__ == "__main__":
    unittest.main()
