from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote, urlencode

from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)

# Ordered fallback chain of screenshot providers.
PROVIDER_CHAIN = ("microlink", "thumio", "local")


@dataclass(frozen=True)
class ScreenshotResult:
    mime: str
    data: bytes


def _microlink(url: str, public_base_url: str) -> str | None:
    query = urlencode({"url": url, "screenshot": "true", "meta": "false", "embed": "screenshot.url"})
    return f"https://api.microlink.io/?{query}"


def _thumio(url: str, public_base_url: str) -> str | None:
    return f"https://image.thum.io/get/width/1200/crop/800/noanimate/{quote(url, safe=':/?&=%')}"


def _local(url: str, public_base_url: str) -> str | None:
    # Only usable when this service knows the address browsers can reach it on.
    if not public_base_url:
        return None
    return f"{public_base_url.rstrip('/')}/screenshot?{urlencode({'url': url})}"


_BUILDERS = {"microlink": _microlink, "thumio": _thumio, "local": _local}


def screenshot_url(url: str, provider: str = "microlink", public_base_url: str = "") -> str:
    """Image URL rendering `url`.

    Walks PROVIDER_CHAIN starting at `provider` (wrapping around to the head)
    and returns the first link a provider can build. Unknown providers start
    at the head of the chain.
    """
    start = PROVIDER_CHAIN.index(provider) if provider in PROVIDER_CHAIN else 0
    for name in PROVIDER_CHAIN[start:] + PROVIDER_CHAIN[:start]:
        link = _BUILDERS[name](url, public_base_url)
        if link:
            if name != provider:
                logger.debug("Screenshot provider %s unavailable, using %s", provider, name)
            return link
    # microlink always builds a link; kept for type checkers.
    return _microlink(url, public_base_url) or ""


async def capture_screenshot(
    url: str,
    *,
    timeout_ms: int = 12000,
    full_page: bool = False,
    user_agent: str | None = None,
    viewport: tuple[int, int] = (1365, 768),
    settle_ms: int = 450,
) -> ScreenshotResult:
    """Render `url` in headless Chromium and return a PNG.

    `settle_ms` is how long to wait after DOMContentLoaded so client-side
    rendered pricing tables have painted.
    """
    width, height = viewport
    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"],
        )
        try:
            context = await browser.new_context(
                viewport={"width": width, "height": height},
                user_agent=user_agent,
                ignore_https_errors=True,
            )
            try:
                page = await context.new_page()
                await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                if settle_ms > 0:
                    await page.wait_for_timeout(settle_ms)
                data = await page.screenshot(type="png", full_page=full_page)
            finally:
                await context.close()
        finally:
            await browser.close()

    logger.info("Captured %s screenshot of %s (%d bytes)", "full-page" if full_page else "viewport", url, len(data))
    return ScreenshotResult(mime="image/png", data=data)
