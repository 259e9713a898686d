from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import Settings
from .mock_metrics import mock_performance
from .models import CategoryScore, CoreMetrics, PerformanceCategory, PerformanceSignal

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
_CATEGORIES = ("PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO")


def _category_score(categories: dict[str, Any], key: str) -> int:
    raw = (categories.get(key) or {}).get("score")
    if raw is None:
        raise ValueError(f"category {key!r} missing from Lighthouse result")
    return max(0, min(100, round(float(raw) * 100)))


def _audit_value(audits: dict[str, Any], key: str) -> float:
    value = (audits.get(key) or {}).get("numericValue")
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def parse_lighthouse(url: str, payload: dict[str, Any]) -> PerformanceSignal:
    """Map a PageSpeed Insights v5 payload onto a PerformanceSignal.

    Raises ValueError/KeyError when the payload lacks a Lighthouse result.
    """
    lighthouse = payload["lighthouseResult"]
    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}

    metrics = CoreMetrics(
        first_contentful_paint=_audit_value(audits, "first-contentful-paint"),
        largest_contentful_paint=_audit_value(audits, "largest-contentful-paint"),
        speed_index=_audit_value(audits, "speed-index"),
        total_blocking_time=_audit_value(audits, "total-blocking-time"),
        cumulative_layout_shift=min(1.0, max(0.0, _audit_value(audits, "cumulative-layout-shift"))),
    )
    return PerformanceSignal(
        url=url,
        source="live",
        performance=PerformanceCategory(score=_category_score(categories, "performance"), metrics=metrics),
        accessibility=CategoryScore(score=_category_score(categories, "accessibility")),
        best_practices=CategoryScore(score=_category_score(categories, "best-practices")),
        seo=CategoryScore(score=_category_score(categories, "seo")),
    )


class PerformanceClient:
    """Lighthouse scores for a URL, live when possible, synthesized otherwise."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self._transport = transport

    def _fetch_live(self, url: str) -> PerformanceSignal | None:
        params: list[tuple[str, str]] = [
            ("url", url),
            ("key", self.settings.pagespeed_api_key),
            ("strategy", self.settings.pagespeed_strategy),
        ]
        params.extend(("category", c) for c in _CATEGORIES)

        with httpx.Client(timeout=self.settings.pagespeed_timeout_s, transport=self._transport) as client:
            res = client.get(PAGESPEED_ENDPOINT, params=params, headers={"accept": "application/json"})

        if res.status_code == 429:
            logger.warning("PageSpeed quota exhausted while measuring %s; using synthetic metrics", url)
            return None
        if res.status_code < 200 or res.status_code >= 300:
            logger.warning("PageSpeed API error for %s: HTTP %d", url, res.status_code)
            return None

        return parse_lighthouse(url, res.json())

    def measure(self, url: str) -> PerformanceSignal:
        """Never raises: every failure path ends in the deterministic generator."""
        if not self.settings.performance_live:
            logger.info("Performance mock mode, synthesizing metrics for %s", url)
            return mock_performance(url)

        try:
            signal = self._fetch_live(url)
        except Exception as e:
            logger.warning("PageSpeed call failed for %s: %s", url, e)
            signal = None

        return signal if signal is not None else mock_performance(url)
