"""Chemical product registry client (CKAN datastore search on data.gov.au).

Registry records arrive with inconsistent key names and value shapes; every
record is normalized into a `Product` here and nothing registry-shaped leaves
this module. When the registry is unreachable or answers with something we
cannot read, a small built-in catalog is searched instead, so `search` never
raises for a string query.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Dict, List, Mapping, Optional

import requests

from app import config, rules
from app.cache import TTLCache
from app.data_sources.http import build_session
from app.domain import Product, ProductType
from app.errors import MalformedPayloadError
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="registry_client")

REGISTRATION_LOOKUP_LIMIT = 5

FALLBACK_PRODUCTS: tuple[Product, ...] = (
    Product(
        id="apvma_1",
        product_name="Copper Oxychloride Fungicide",
        registration_number="APVMA 52851",
        registration_holder="Australian Garden Products",
        active_constituents=["Copper Oxychloride 500g/kg"],
        registration_status="Active",
        product_type=ProductType.PESTICIDE,
        registration_date="2020-01-15",
        restrictions=["Not for use near waterways"],
    ),
    Product(
        id="apvma_2",
        product_name="Pyrethrum Insect Spray",
        registration_number="APVMA 61234",
        registration_holder="Eco Garden Solutions",
        active_constituents=["Pyrethrum Extract 1g/L"],
        registration_status="Active",
        product_type=ProductType.PESTICIDE,
        registration_date="2019-08-22",
        restrictions=["Do not apply to flowering plants"],
    ),
)


def normalize_query(query: str) -> str:
    """Trim, collapse whitespace and lower-case a search query."""
    return re.sub(r"\s+", " ", (query or "").strip()).lower()


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among `keys`."""
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def split_list_field(value: Any) -> List[str]:
    """Accept a comma-delimited string or a list and return trimmed, non-empty items."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        return []
    return [item.strip() for item in items if item.strip()]


def infer_product_type(product_name: str) -> ProductType:
    """Classify a product from keywords in its name."""
    for type_name, keywords in rules.PRODUCT_TYPE_KEYWORDS:
        if rules.matches_any(product_name, keywords):
            return ProductType(type_name)
    return ProductType.OTHER


def normalize_record(record: Mapping[str, Any], *, portal_url: str | None = None) -> Product:
    """Map one registry record onto a Product."""
    name = _first(record, "product_name", "name")
    if not name:
        raise MalformedPayloadError("registry record has no product name")
    name = str(name).strip()
    reg_number = str(_first(record, "registration_number", "apvma_number") or "").strip()
    record_id = _first(record, "id", "product_id", "_id") or reg_number or name

    return Product(
        id=str(record_id),
        product_name=name,
        registration_number=reg_number,
        registration_holder=str(_first(record, "registration_holder", "holder") or ""),
        active_constituents=split_list_field(record.get("active_constituents")),
        registration_status=str(_first(record, "status", "registration_status") or "Active"),
        product_type=infer_product_type(name),
        registration_date=str(record.get("registration_date") or dt.date.today().isoformat()),
        expiry_date=record.get("expiry_date") or None,
        restrictions=split_list_field(record.get("restrictions")),
        label_url=f"{portal_url}/{reg_number}" if portal_url and reg_number else None,
    )


def fallback_search(query: str) -> List[Product]:
    """Search the built-in catalog by product name, active constituent or registration number."""
    needle = normalize_query(query)
    if not needle:
        return []
    return [
        p for p in FALLBACK_PRODUCTS
        if needle in p.product_name.lower()
        or needle in p.registration_number.lower()
        or any(needle in c.lower() for c in p.active_constituents)
    ]


class RegistryClient:
    """Search the product registry with caching and a static fallback."""

    def __init__(
        self,
        settings: config.Settings | None = None,
        *,
        session: requests.Session | None = None,
        cache: TTLCache[List[Product]] | None = None,
    ) -> None:
        """Bind to settings, an HTTP session and a search cache."""
        self.settings = settings or config.settings
        self.session = session or build_session(self.settings)
        self.cache = cache or TTLCache(
            self.settings.product_cache_ttl_seconds,
            max_entries=self.settings.cache_max_entries,
            name="product_search",
        )

    def _fetch_records(self, query: str, limit: int) -> List[Dict[str, Any]]:
        """Call the registry and return the raw record list."""
        resp = self.session.get(
            self.settings.registry_url,
            params={"resource_id": self.settings.registry_resource_id, "q": query, "limit": limit},
            timeout=self.settings.http_timeout_seconds,
        )
        resp.raise_for_status()
        data = resp.json()
        records = (data.get("result") or {}).get("records") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise MalformedPayloadError("registry response has no result.records list")
        return records

    def _parse_records(self, records: List[Dict[str, Any]]) -> List[Product]:
        """Normalize records, skipping ones we cannot read."""
        products: List[Product] = []
        for record in records:
            try:
                products.append(normalize_record(record, portal_url=self.settings.registry_portal_url))
            except Exception as exc:
                logger.warning("Skipping unreadable registry record", extra={"error": str(exc)})
        return products

    def search(self, query: str, limit: int | None = None) -> List[Product]:
        """Search products by name, constituent or registration number."""
        normalized = normalize_query(query)
        if not normalized:
            return []
        limit = limit or self.settings.registry_search_limit
        cache_key = f"{normalized}:{limit}"

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Product search cache hit", extra={"query": normalized})
            return list(cached)

        try:
            records = self._fetch_records(query.strip(), limit)
            products = self._parse_records(records)
        except Exception as exc:
            logger.warning(
                "Registry search failed; using built-in catalog",
                extra={"query": normalized, "error": str(exc)},
            )
            return fallback_search(normalized)

        self.cache.put(cache_key, products)
        logger.info("Registry search", extra={"query": normalized, "results": len(products)})
        return list(products)

    def get_by_registration_number(self, registration_number: str) -> Optional[Product]:
        """Return the product with exactly this registration number, if any."""
        wanted = (registration_number or "").strip()
        if not wanted:
            return None
        for product in self.search(wanted, REGISTRATION_LOOKUP_LIMIT):
            if product.registration_number == wanted:
                return product
        return None
