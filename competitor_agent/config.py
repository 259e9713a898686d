"""Service configuration: API credentials, provider choice, timeouts.

Values are read from the environment once (after loading `.env`) and handed to
components explicitly, so nothing below the HTTP layer touches `os.environ`.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

_HERE = Path(__file__).resolve()
_PKG_ROOT = _HERE.parents[1]
_PARENT_ROOT = _HERE.parents[2]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

_TRUTHY = {"1", "true", "yes", "on"}


def load_env_files() -> None:
    # Real environment variables always win over .env values.
    load_dotenv(_PKG_ROOT / ".env", override=False)
    load_dotenv(_PARENT_ROOT / ".env", override=False)


def _flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _viewport(raw: str) -> tuple[int, int]:
    """Parse "WIDTHxHEIGHT"."""
    width, _, height = raw.strip().lower().partition("x")
    return int(width), int(height)


def _csv(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip() or default
    return tuple(o.strip() for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    # Language model used as a text-to-JSON extractor.
    llm_provider: str = "chat"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.nexos.ai/v1"
    llm_model: str = ""
    llm_temperature: float = 0.3
    llm_timeout_s: float = 30.0
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Page performance measurement.
    pagespeed_api_key: str = ""
    pagespeed_strategy: str = "mobile"
    pagespeed_timeout_s: float = 60.0
    use_mock_performance: bool = False

    # Page fetching and screenshots.
    fetch_timeout_s: float = 20.0
    user_agent: str = DEFAULT_USER_AGENT
    screenshot_provider: str = "microlink"
    public_base_url: str = "http://localhost:8000"
    screenshot_viewport: tuple[int, int] = (1365, 768)
    screenshot_settle_ms: int = 450

    # HTTP surface.
    cors_origins: tuple[str, ...] = field(default=("http://localhost:3000",))
    playwright_concurrency: int = 1
    playwright_acquire_timeout_s: float = 0.25

    @property
    def performance_live(self) -> bool:
        """Live PageSpeed calls need both mock mode off and a credential."""
        return not self.use_mock_performance and bool(self.pagespeed_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        load_env_files()
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "chat").strip().lower() or "chat",
            llm_api_key=os.getenv("LLM_API_KEY", "").strip(),
            llm_base_url=os.getenv("LLM_BASE_URL", "https://api.nexos.ai/v1").strip().rstrip("/"),
            llm_model=os.getenv("LLM_MODEL", "").strip(),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
            llm_timeout_s=float(os.getenv("LLM_TIMEOUT_S", "30")),
            gemini_api_key=os.getenv("GEMINI_API_KEY", "").strip(),
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip(),
            pagespeed_api_key=os.getenv("PAGESPEED_API_KEY", "").strip(),
            pagespeed_strategy=os.getenv("PAGESPEED_STRATEGY", "mobile").strip().lower(),
            pagespeed_timeout_s=float(os.getenv("PAGESPEED_TIMEOUT_S", "60")),
            use_mock_performance=_flag("USE_MOCK_PERFORMANCE"),
            fetch_timeout_s=float(os.getenv("FETCH_TIMEOUT_S", "20")),
            user_agent=os.getenv("FETCH_USER_AGENT", DEFAULT_USER_AGENT),
            screenshot_provider=os.getenv("SCREENSHOT_PROVIDER", "microlink").strip().lower(),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").strip().rstrip("/"),
            screenshot_viewport=_viewport(os.getenv("SCREENSHOT_VIEWPORT", "1365x768")),
            screenshot_settle_ms=max(0, int(os.getenv("SCREENSHOT_SETTLE_MS", "450"))),
            cors_origins=_csv("COMPETITOR_CORS_ORIGINS", "http://localhost:3000"),
            playwright_concurrency=max(1, int(os.getenv("PLAYWRIGHT_CONCURRENCY", "1"))),
            playwright_acquire_timeout_s=float(os.getenv("PLAYWRIGHT_ACQUIRE_TIMEOUT_S", "0.25")),
        )
