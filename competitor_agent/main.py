from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .cro_pipeline import analyze_landing_pages
from .fetcher import normalize_url
from .insights import compare_pages, compare_performance, match_subject
from .models import (
    AnalyzeLandingPagesRequest,
    AnalyzeLandingPagesResponse,
    ComparePagesRequest,
    ComparePagesResponse,
    CompareRequest,
    CompareResponse,
    ScreenshotRequest,
)
from .performance import PerformanceClient
from .screenshot import capture_screenshot

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    app = FastAPI(title="Competitor Agent", version="0.1.0")
    app.state.settings = settings
    app.state.playwright_semaphore = asyncio.Semaphore(settings.playwright_concurrency)

    if not settings.llm_api_key and not settings.gemini_api_key:
        logger.warning("No LLM API key configured; landing page analyses will report 'Analysis failed'")
    if not settings.performance_live:
        logger.info("Performance data in mock mode (no PAGESPEED_API_KEY or USE_MOCK_PERFORMANCE set)")

    # For local dev, this defaults to allowing http://localhost:3000.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _on_validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def _on_http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @asynccontextmanager
    async def _playwright_slot():
        try:
            await asyncio.wait_for(
                app.state.playwright_semaphore.acquire(),
                timeout=settings.playwright_acquire_timeout_s,
            )
        except asyncio.TimeoutError:
            raise HTTPException(
                status_code=503,
                detail="Agent busy (too many concurrent browser jobs). Please retry.",
                headers={"Retry-After": "2"},
            )
        try:
            yield
        finally:
            app.state.playwright_semaphore.release()

    @app.get("/healthz")
    def healthz():
        return {"ok": True, "performanceMode": "live" if settings.performance_live else "mock"}

    @app.post("/analyze-landing-pages", response_model=AnalyzeLandingPagesResponse)
    def analyze_landing_pages_endpoint(req: AnalyzeLandingPagesRequest):
        try:
            urls = [normalize_url(u) for u in req.urls]
            subject = None
            if req.subject_url:
                subject = urls[match_subject(urls, normalize_url(req.subject_url))]
        except ValueError as e:
            return _error(400, str(e))

        try:
            analyses = analyze_landing_pages(urls, settings)
            insights = compare_pages(analyses, subject_url=subject)
        except Exception as e:
            logger.exception("Error in analyze-landing-pages")
            return _error(500, str(e) or "Failed to analyze landing pages")

        return AnalyzeLandingPagesResponse(analyses=analyses, insights=insights)

    @app.post("/compare-pages", response_model=ComparePagesResponse)
    def compare_pages_endpoint(req: ComparePagesRequest):
        subject = None
        if req.subject_url:
            urls = [a.url for a in req.analyses]
            try:
                subject = urls[match_subject(urls, normalize_url(req.subject_url))]
            except ValueError as e:
                return _error(400, str(e))
        return ComparePagesResponse(insights=compare_pages(req.analyses, subject_url=subject))

    @app.post("/analyze", response_model=CompareResponse)
    def analyze_endpoint(req: CompareRequest):
        try:
            your_url = normalize_url(req.your_url)
            competitor_url = normalize_url(req.competitor_url)
        except ValueError as e:
            return _error(400, str(e))

        logger.info("Starting performance comparison: %s vs %s", your_url, competitor_url)
        client = PerformanceClient(settings)
        try:
            with ThreadPoolExecutor(max_workers=2) as pool:
                yours_fut = pool.submit(client.measure, your_url)
                theirs_fut = pool.submit(client.measure, competitor_url)
                yours, theirs = yours_fut.result(), theirs_fut.result()
        except Exception:
            logger.exception("Performance comparison failed")
            return _error(500, "Failed to analyze websites")

        return CompareResponse(
            your_site=yours,
            competitor_site=theirs,
            comparison=compare_performance(yours, theirs),
        )

    async def _render(url: str, timeout_ms: int, full_page: bool) -> Response:
        try:
            target = normalize_url(url)
        except ValueError as e:
            return _error(400, str(e))

        async with _playwright_slot():
            try:
                shot = await capture_screenshot(
                    target,
                    timeout_ms=timeout_ms,
                    full_page=full_page,
                    user_agent=settings.user_agent,
                    viewport=settings.screenshot_viewport,
                    settle_ms=settings.screenshot_settle_ms,
                )
            except Exception as e:
                logger.warning("Screenshot failed for %s: %s", target, e)
                return _error(502, f"Screenshot failed: {e}")
        return Response(content=shot.data, media_type=shot.mime, headers={"cache-control": "no-store"})

    @app.post("/screenshot")
    async def screenshot_endpoint(req: ScreenshotRequest):
        return await _render(req.url, req.timeout_ms, req.full_page)

    # Image links built for the "local" screenshot provider point here.
    @app.get("/screenshot")
    async def screenshot_link(url: str, full_page: bool = False):
        return await _render(url, 12000, full_page)

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("competitor_agent.main:app", host="0.0.0.0", port=8000)
