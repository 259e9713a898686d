"""
Landing-page field extraction with a chat-completion language model.

The model is used purely as a text-to-JSON extractor: it reads the stripped
page text and returns the five CRO fields. Replies are parsed into a tagged
result so callers never branch on exceptions.
"""
from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Union

import httpx

from .config import Settings
from .models import PageAnalysis

logger = logging.getLogger(__name__)


UNABLE_TO_FETCH = PageAnalysis(
    main_headline="Unable to fetch page",
    has_pricing=False,
    pricing_starts_from="N/A",
    has_discount=False,
    has_free_trial=False,
)

ANALYSIS_FAILED = PageAnalysis(
    main_headline="Analysis failed",
    has_pricing=False,
    pricing_starts_from="N/A",
    has_discount=False,
    has_free_trial=False,
)


@dataclass(frozen=True)
class ParsedOk:
    analysis: PageAnalysis


@dataclass(frozen=True)
class ParseFailed:
    reason: str


ParseResult = Union[ParsedOk, ParseFailed]


_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)

_REQUIRED_KEYS = ("mainHeadline", "hasPricing", "pricingStartsFrom", "hasDiscount", "hasFreeTrial")

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0", "", "none", "null", "n/a"}


def _as_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if value is None:
        return False
    s = str(value).strip().lower()
    if s in _TRUE_STRINGS:
        return True
    if s in _FALSE_STRINGS:
        return False
    return None


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_page_analysis(reply: str | None) -> ParseResult:
    """Pull the five-field JSON object out of a free-form model reply."""
    if not reply or not reply.strip():
        return ParseFailed("empty reply")

    m = _JSON_OBJECT_RE.search(_strip_fences(reply))
    if not m:
        return ParseFailed("no JSON object in reply")

    try:
        raw = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        return ParseFailed(f"invalid JSON: {e.msg}")

    if not isinstance(raw, dict):
        return ParseFailed("JSON value is not an object")

    for key in _REQUIRED_KEYS:
        if key not in raw:
            return ParseFailed(f"missing {key}")

    flags: dict[str, bool] = {}
    for key in ("hasPricing", "hasDiscount", "hasFreeTrial"):
        value = _as_bool(raw.get(key))
        if value is None:
            return ParseFailed(f"{key} is not a boolean: {raw.get(key)!r}")
        flags[key] = value

    headline = str(raw.get("mainHeadline") or "").strip() or "Unknown"
    price = str(raw.get("pricingStartsFrom") or "").strip() or "N/A"

    return ParsedOk(
        PageAnalysis(
            main_headline=headline,
            has_pricing=flags["hasPricing"],
            pricing_starts_from=price,
            has_discount=flags["hasDiscount"],
            has_free_trial=flags["hasFreeTrial"],
        )
    )


def build_extraction_prompt(content: str) -> str:
    return f"""You are analyzing a pricing or landing page. Extract the following information with EXTREME ACCURACY. Read the ENTIRE content carefully.

**TASK:**
1. **Main Headline**: The primary H1 or main marketing headline (not the page title).
2. **Has Pricing**: Are there ANY prices, pricing tiers, or cost information displayed? (true/false)
3. **Pricing Starts From**: The LOWEST **FINAL** paid price on the page, with currency and unit (e.g. "$4/GB", "€9/month").
   - If a price is struck through or shown as a "was" price, IGNORE it.
   - If two prices appear together (e.g. "$8 $4/GB"), use the final one ("$4/GB").
   - Free trial or "$0" is NOT a price; use the first PAID plan instead.
4. **Has Discount**: TRUE only for an ACTIVE discount on the main pricing:
   - two prices shown together (old + new), or a strikethrough price
   - a percentage-off badge (e.g. "50% OFF") or a promo code / coupon banner
   - IGNORE yearly-vs-monthly differences, volume discounts and conditional offers.
5. **Free Trial**: Is "free trial", "start free", "try free" or similar explicitly offered?

**RULES:**
- Find pricing for THE MAIN PRODUCT ONLY, not related or other products.
- Return "N/A" for pricingStartsFrom when no paid price is shown.

**Landing Page Content:**
{content}

**Respond with ONLY this JSON (no other text):**
{{
  "mainHeadline": "exact headline text",
  "hasPricing": true/false,
  "pricingStartsFrom": "exact price with unit (e.g., $4/GB, €9/month) or N/A",
  "hasDiscount": true/false,
  "hasFreeTrial": true/false
}}"""


class LLMError(Exception):
    pass


class PageAnalyzer:
    """Runs the extraction prompt against the configured language model provider."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self._transport = transport
        self._model_id: str | None = settings.llm_model or None
        self._model_lock = threading.Lock()

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.settings.llm_base_url,
            timeout=self.settings.llm_timeout_s,
            headers={"authorization": f"Bearer {self.settings.llm_api_key}"},
            transport=self._transport,
        )

    def _resolve_model(self, client: httpx.Client) -> str:
        if self._model_id:
            return self._model_id

        # Pool workers share one analyzer; only the first one lists models.
        with self._model_lock:
            if self._model_id:
                return self._model_id

            res = client.get("/models")
            if res.status_code < 200 or res.status_code >= 300:
                raise LLMError(f"model listing failed with HTTP {res.status_code}")

            data = res.json().get("data") or []
            ids = [str(m.get("id")) for m in data if isinstance(m, dict) and m.get("id")]
            chosen = (
                next((i for i in ids if "gpt-4" in i), None)
                or next((i for i in ids if "gpt" in i), None)
                or (ids[0] if ids else None)
            )
            if not chosen:
                raise LLMError("no model available for this API key")

            logger.info("Using extraction model %s", chosen)
            self._model_id = chosen
            return chosen

    def _call_chat(self, prompt: str) -> str:
        if not self.settings.llm_api_key:
            raise LLMError("LLM_API_KEY is not set")

        with self._client() as client:
            model = self._resolve_model(client)
            res = client.post(
                "/chat/completions",
                json={
                    "model": model,
                    "messages": [{"role": "user", "content": prompt}],
                    "temperature": self.settings.llm_temperature,
                },
            )
            if res.status_code < 200 or res.status_code >= 300:
                raise LLMError(f"chat completion failed with HTTP {res.status_code}: {res.text[:200]}")
            data = res.json()

        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"unexpected completion payload: {e}") from e

    def _call_gemini(self, prompt: str) -> str:
        """Call Gemini via the official google-genai SDK."""
        if not self.settings.gemini_api_key:
            raise LLMError("GEMINI_API_KEY is not set")

        from google import genai
        from google.genai import types

        client = genai.Client(api_key=self.settings.gemini_api_key)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=self.settings.llm_temperature,
            max_output_tokens=1024,
        )
        resp = client.models.generate_content(
            model=self.settings.gemini_model,
            contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
            config=config,
        )
        return (getattr(resp, "text", None) or "").strip()

    def complete(self, prompt: str) -> str:
        if self.settings.llm_provider == "gemini":
            return self._call_gemini(prompt)
        return self._call_chat(prompt)

    def analyze(self, text: str, url: str = "") -> ParseResult:
        """Extract CRO fields from page text. Never raises."""
        try:
            reply = self.complete(build_extraction_prompt(text))
        except Exception as e:
            logger.warning("LLM extraction failed for %s: %s", url or "<text>", e)
            return ParseFailed(str(e))

        result = parse_page_analysis(reply)
        if isinstance(result, ParseFailed):
            logger.warning("Unparseable LLM reply for %s: %s", url or "<text>", result.reason)
        return result
