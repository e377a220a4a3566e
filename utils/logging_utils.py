"""
Logging setup shared by the spray advisory service.

Usage
-----
In an entrypoint (API server, one-off script):

    from utils.logging_utils import setup_logging

    def main() -> None:
        setup_logging(level="INFO", job_name="spray_advisor")
        ...

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="registry_client")
    logger.info("Searching registry", extra={"query": "copper"})

Every record carries `job_name` and `tag` so provider fallbacks can be traced
back to the component that triggered them.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


# Early logs (before setup_logging runs) still get timestamps and levels.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SENSITIVE_QUERY_TOKENS = ("appid", "key", "token", "secret", "pass")

_CONFIGURED: bool = False


# ---------------------------------------------------------------------------
# Filters to enrich log records
# ---------------------------------------------------------------------------


class MaxLevelFilter(logging.Filter):
    """Pass only records at or below `max_level` (keeps warnings off stdout)."""

    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Guarantee a `tag` attribute on every record.

    Records emitted through `get_tagged_logger` already have one; plain
    `logging.getLogger` records (third-party libraries) get the last segment of
    their logger name, e.g. "urllib3.connectionpool" -> "connectionpool".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """Stamp a process-wide `job_name` on records that lack one."""

    def __init__(self, job_name: Optional[str] = None) -> None:
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


# ---------------------------------------------------------------------------
# Config builder and setup function
# ---------------------------------------------------------------------------


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig mapping.

    DEBUG/INFO go to stdout and WARNING+ to stderr, so provider fallbacks stand
    out in container logs.

    Parameters
    ----------
    level:
        Root logger level (e.g. "DEBUG", "INFO", logging.INFO).
    log_format:
        Formatter pattern for log messages.
    date_format:
        Formatter pattern for timestamps.
    job_name:
        Logical name for this process (e.g. "spray_advisor"), written to the
        `job_name` field of every record.

    Returns
    -------
    dict suitable for logging.config.dictConfig().
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Configure process-wide logging once.

    Call this from the entrypoint (run_server.py) before the app is imported
    so provider and cache logs use the full format.

    Parameters
    ----------
    level:
        Root logger level (e.g. "DEBUG", "INFO").
    log_format:
        Formatter pattern for log messages. By default includes asctime,
        levelname, job_name, tag, logger name and message.
    date_format:
        Timestamp format for `asctime`.
    job_name:
        Logical name for this process. Appears in `%(job_name)s`.
    override_existing:
        If False (default), repeated calls are no-ops after the first. If True,
        the configuration is reapplied each time.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    logging.config.dictConfig(
        build_logging_config(
            level=level,
            log_format=log_format,
            date_format=date_format,
            job_name=job_name,
        )
    )
    _CONFIGURED = True


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter whose records always carry a `tag` field.

    Parameters
    ----------
    name:
        Base logger name (usually __name__).
    tag:
        Semantic tag for the component, e.g. "registry_client". Defaults to
        the last segment of `name`.

    Returns
    -------
    logging.LoggerAdapter
        Use it like a normal logger; structured context goes in `extra`:

            logger = get_tagged_logger(__name__, tag="openweather_client")
            logger.info("Geocoded postcode", extra={"postcode": "2000"})
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------


def mask_url_secrets(url: str) -> str:
    """Return `url` with credential-looking query parameters replaced by ***.

    Provider URLs carry the OpenWeatherMap key as `appid`; any parameter whose
    name contains one of SENSITIVE_QUERY_TOKENS is masked before the URL is
    logged. Unparseable input is returned as-is.

    Examples
    --------
    - https://api.openweathermap.org/geo/1.0/zip?zip=2000,AU&appid=abc
      -> https://api.openweathermap.org/geo/1.0/zip?zip=2000%2CAU&appid=%2A%2A%2A
    - https://data.gov.au/data/api/3/action/datastore_search -> unchanged
    """
    try:
        parsed = urlparse(url)
    except Exception:
        return url

    if not parsed.query:
        return url

    pairs = []
    for key, value in parse_qsl(parsed.query, keep_blank_values=True):
        if any(token in key.lower() for token in SENSITIVE_QUERY_TOKENS):
            pairs.append((key, "***"))
        else:
            pairs.append((key, value))

    return urlunparse(parsed._replace(query=urlencode(pairs)))
