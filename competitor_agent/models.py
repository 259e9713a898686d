from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

InsightKind = Literal["advantage", "disadvantage", "recommendation"]
Winner = Literal["yours", "competitor", "tie"]


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PageAnalysis(WireModel):
    main_headline: str
    has_pricing: bool
    pricing_starts_from: str
    has_discount: bool
    has_free_trial: bool


class PageSignal(WireModel):
    url: str
    analysis: PageAnalysis
    screenshot: str | None = None


class ComparisonInsight(WireModel):
    kind: InsightKind
    text: str


class AnalyzeLandingPagesRequest(WireModel):
    urls: list[str] = Field(..., min_length=1, max_length=20)
    # Site the insights are written for; defaults to the first URL.
    subject_url: str | None = None


class AnalyzeLandingPagesResponse(WireModel):
    analyses: list[PageSignal]
    insights: list[ComparisonInsight] = []


class ComparePagesRequest(WireModel):
    analyses: list[PageSignal] = Field(..., min_length=2)
    subject_url: str | None = None


class ComparePagesResponse(WireModel):
    insights: list[ComparisonInsight]


class CoreMetrics(WireModel):
    first_contentful_paint: float
    largest_contentful_paint: float
    speed_index: float
    total_blocking_time: float
    cumulative_layout_shift: float = Field(..., ge=0.0, le=1.0)


class PerformanceCategory(WireModel):
    score: int = Field(..., ge=0, le=100)
    metrics: CoreMetrics


class CategoryScore(WireModel):
    score: int = Field(..., ge=0, le=100)


class PerformanceSignal(WireModel):
    url: str
    source: Literal["live", "mock"]
    performance: PerformanceCategory
    accessibility: CategoryScore
    best_practices: CategoryScore
    seo: CategoryScore


class CompareRequest(WireModel):
    your_url: str = Field(..., min_length=1)
    competitor_url: str = Field(..., min_length=1)


class PerformanceComparison(WireModel):
    performance_winner: Winner
    insights: list[ComparisonInsight]


class CompareResponse(WireModel):
    your_site: PerformanceSignal | None
    competitor_site: PerformanceSignal | None
    comparison: PerformanceComparison


class ScreenshotRequest(WireModel):
    url: str = Field(..., min_length=1)
    full_page: bool = Field(False)
    timeout_ms: int = Field(12000, ge=1000, le=30000)
