"""Deterministic stand-in for the page performance API.

Used when no PageSpeed credential is configured, mock mode is forced, or the
live call fails. The same URL always yields the same numbers, and every timing
metric worsens as the performance score drops.
"""
from __future__ import annotations

from urllib.parse import urlparse

from .models import CategoryScore, CoreMetrics, PerformanceCategory, PerformanceSignal

# Demo-friendly base performance scores for well-known sites.
KNOWN_DOMAIN_SCORES: dict[str, int] = {
    "google.com": 95,
    "wikipedia.org": 93,
    "github.com": 84,
    "apple.com": 81,
    "stripe.com": 88,
    "microsoft.com": 76,
    "netflix.com": 74,
    "amazon.com": 72,
    "linkedin.com": 68,
    "paypal.com": 70,
    "reddit.com": 58,
    "cnn.com": 41,
}

_BAND_LOW = 45
_BAND_WIDTH = 50


def url_hash(url: str) -> int:
    """Polynomial rolling hash (base 31, 32-bit)."""
    h = 0
    for ch in url:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h


def _registrable_domain_guess(hostname: str) -> str:
    parts = [p for p in hostname.lower().split(".") if p]
    if len(parts) <= 2:
        return ".".join(parts)
    return ".".join(parts[-2:])


def _known_score(url: str) -> int | None:
    host = urlparse(url if "://" in url else f"https://{url}").hostname or ""
    return KNOWN_DOMAIN_SCORES.get(_registrable_domain_guess(host))


def base_performance_score(url: str) -> int:
    known = _known_score(url)
    if known is not None:
        return known
    return _BAND_LOW + url_hash(url) % _BAND_WIDTH


def _secondary_score(h: int, shift: int) -> int:
    # Bands 70-99 taken from different hash bits per category.
    return max(0, min(100, 70 + (h >> shift) % 30))


def derive_core_metrics(score: int) -> CoreMetrics:
    deficit = 100 - max(0, min(100, score))
    fcp = 900 + 45 * deficit
    lcp = fcp + 600 + 40 * deficit
    speed_index = lcp + 400 + 25 * deficit
    return CoreMetrics(
        first_contentful_paint=float(fcp),
        largest_contentful_paint=float(lcp),
        speed_index=float(speed_index),
        total_blocking_time=float(20 + 14 * deficit),
        cumulative_layout_shift=round(0.02 + 0.0035 * deficit, 3),
    )


def mock_performance(url: str) -> PerformanceSignal:
    h = url_hash(url)
    score = base_performance_score(url)
    return PerformanceSignal(
        url=url,
        source="mock",
        performance=PerformanceCategory(score=score, metrics=derive_core_metrics(score)),
        accessibility=CategoryScore(score=_secondary_score(h, 7)),
        best_practices=CategoryScore(score=_secondary_score(h, 13)),
        seo=CategoryScore(score=_secondary_score(h, 19)),
    )
