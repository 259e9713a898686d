from __future__ import annotations

import logging
import re
from urllib.parse import urlparse, urlunparse

import httpx

from .config import Settings

logger = logging.getLogger(__name__)


def normalize_url(raw: str) -> str:
    """Validate a caller-supplied site URL, adding `https://` when no scheme is given.

    Raises ValueError with a short, client-presentable message.
    """
    value = (raw or "").strip()
    if not value:
        raise ValueError("Please provide a URL.")

    if not re.match(r"^[a-zA-Z][a-zA-Z\d+.-]*://", value):
        value = "https://" + value

    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https"):
        raise ValueError("Please use an http(s) website URL.")
    if not parsed.hostname or "." not in parsed.hostname:
        raise ValueError(f"Not a valid website URL: {raw}")

    return urlunparse(parsed._replace(fragment=""))


def _request_headers(settings: Settings) -> dict[str, str]:
    return {
        "user-agent": settings.user_agent,
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "accept-language": "en-US,en;q=0.6",
    }


def fetch_html(url: str, settings: Settings, client: httpx.Client | None = None) -> str:
    """Fetch raw page markup. Any failure is logged and yields an empty string."""
    try:
        if client is None:
            with httpx.Client(timeout=settings.fetch_timeout_s, follow_redirects=True) as own:
                res = own.get(url, headers=_request_headers(settings))
        else:
            res = client.get(url, headers=_request_headers(settings))
    except Exception as e:
        logger.warning("Fetch failed for %s: %s", url, e)
        return ""

    if res.status_code >= 400:
        logger.warning("Fetch for %s returned HTTP %d", url, res.status_code)

    try:
        html = res.text
    except Exception as e:
        logger.warning("Could not decode body from %s: %s", url, e)
        return ""

    logger.info("Fetched %s (%d bytes, HTTP %d)", url, len(html), res.status_code)
    return html
