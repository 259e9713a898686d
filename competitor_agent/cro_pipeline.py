from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from .config import Settings
from .fetcher import fetch_html
from .llm_extractor import ANALYSIS_FAILED, UNABLE_TO_FETCH, PageAnalyzer, ParsedOk
from .models import PageAnalysis, PageSignal
from .screenshot import screenshot_url
from .text_extract import extract_text

logger = logging.getLogger(__name__)

_MAX_WORKERS = 8


def _analyze_one(url: str, settings: Settings, analyzer: PageAnalyzer) -> PageAnalysis:
    text = extract_text(fetch_html(url, settings))
    if not text:
        logger.warning("No usable text from %s", url)
        return UNABLE_TO_FETCH

    logger.info("Extracted %d chars of text from %s", len(text), url)
    result = analyzer.analyze(text, url=url)
    if isinstance(result, ParsedOk):
        return result.analysis
    return ANALYSIS_FAILED


def analyze_landing_pages(
    urls: list[str],
    settings: Settings,
    analyzer: PageAnalyzer | None = None,
) -> list[PageSignal]:
    """Fetch, strip and analyze each URL independently.

    The result has exactly one entry per input URL, in input order. A failure
    for one URL degrades only that URL's entry to a sentinel analysis.
    """
    if analyzer is None:
        analyzer = PageAnalyzer(settings)

    logger.info("Analyzing %d landing pages", len(urls))
    slots: list[PageAnalysis | None] = [None] * len(urls)

    if urls:
        with ThreadPoolExecutor(max_workers=min(_MAX_WORKERS, len(urls))) as pool:
            futures = {pool.submit(_analyze_one, url, settings, analyzer): i for i, url in enumerate(urls)}
            for fut in as_completed(futures):
                i = futures[fut]
                try:
                    slots[i] = fut.result()
                except Exception:
                    logger.exception("Pipeline failed for %s", urls[i])
                    slots[i] = ANALYSIS_FAILED

    signals = [
        PageSignal(
            url=url,
            analysis=analysis or ANALYSIS_FAILED,
            screenshot=screenshot_url(url, settings.screenshot_provider, settings.public_base_url),
        )
        for url, analysis in zip(urls, slots)
    ]
    logger.info("Analysis complete for %d pages", len(signals))
    return signals
