"""HTTP session construction shared by registry and weather clients."""
from __future__ import annotations

import requests
from retry_requests import retry

from app import config
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/http")


def build_session(settings: config.Settings | None = None) -> requests.Session:
    """Return a requests session that retries transient 5xx/connection errors."""
    settings = settings or config.settings
    session = retry(requests.Session(), retries=settings.http_retries, backoff_factor=0.2)
    session.headers.update({"Accept": "application/json", "User-Agent": settings.user_agent})
    logger.debug("Built HTTP session", extra={"retries": settings.http_retries})
    return session
