from __future__ import annotations

import re
from urllib.parse import urlparse

# Keeps the extraction prompt within cost/latency bounds.
MAX_TEXT_CHARS = 12_000

_SCRIPT_RE = re.compile(r"<script\b[^>]*>.*?</script\s*>", re.IGNORECASE | re.DOTALL)
_STYLE_RE = re.compile(r"<style\b[^>]*>.*?</style\s*>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def extract_text(html: str | None, limit: int = MAX_TEXT_CHARS) -> str:
    """Reduce an HTML document to a single line of visible-ish text.

    Script and style blocks are dropped with their contents, every other tag
    becomes a space, whitespace runs collapse to one space. The result is
    trimmed and cut to `limit` characters.
    """
    if not html:
        return ""

    cleaned = _SCRIPT_RE.sub(" ", html)
    cleaned = _STYLE_RE.sub(" ", cleaned)
    cleaned = _TAG_RE.sub(" ", cleaned)
    cleaned = _WS_RE.sub(" ", cleaned).strip()
    return cleaned[:limit].rstrip()


def domain_label(url: str) -> str:
    """Human label for a site: its hostname without a leading `www.`."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        host = None
    if not host:
        return url
    if host.startswith("www."):
        host = host[4:]
    return host
