"""Pydantic models for the page analysis service."""

import time
from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, computed_field


class SessionStatus(str, Enum):
    """Status of a batch analysis session."""
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = (SessionStatus.COMPLETED, SessionStatus.ERROR, SessionStatus.CANCELLED)


class AnalyzeRequest(BaseModel):
    """Request to start a new batch analysis."""
    urls: List[str] = Field(default_factory=list)
    language: Optional[str] = None  # Report language: en, ja


class AnalyzerFacts(BaseModel):
    """Common fields of every analyzer output.

    ``degraded`` is set when the check could not run and the record holds
    defaults, so an empty result is never mistaken for a clean page.
    """
    degraded: bool = False
    error: Optional[str] = None


class PerformanceFacts(AnalyzerFacts):
    """Timing data read from the loaded page (milliseconds)."""
    load_time: int = 0
    dom_content_loaded: Optional[int] = None
    load_complete: Optional[int] = None
    fcp: Optional[int] = None  # First Contentful Paint
    lcp: Optional[int] = None  # Largest Contentful Paint
    cls: Optional[float] = None  # Cumulative Layout Shift


class HeadingCounts(BaseModel):
    h1: int = 0
    h2: int = 0
    h3: int = 0


class ImageCounts(BaseModel):
    total: int = 0
    with_alt: int = 0
    without_alt: int = 0


class SeoFacts(AnalyzerFacts):
    """On-page SEO facts extracted from the rendered markup."""
    title: Optional[str] = None
    meta_description: Optional[str] = None
    canonical: Optional[str] = None
    lang: Optional[str] = None
    headings: HeadingCounts = Field(default_factory=HeadingCounts)
    images: ImageCounts = Field(default_factory=ImageCounts)


class ResponsiveFacts(BaseModel):
    has_media_queries: Optional[bool] = None  # None = stylesheets not readable


class TouchTargetFacts(BaseModel):
    total_targets: int = 0
    adequate_targets: int = 0
    small_targets: int = 0


class MobileFacts(AnalyzerFacts):
    """Viewport and touch target measurements."""
    viewport: Optional[str] = None
    responsive: ResponsiveFacts = Field(default_factory=ResponsiveFacts)
    touch_targets: TouchTargetFacts = Field(default_factory=TouchTargetFacts)


class AccessibilityViolation(BaseModel):
    id: str
    help: str = ""
    impact: Optional[str] = None
    description: str = ""
    nodes: int = 0


class AccessibilityFacts(AnalyzerFacts):
    """Rule violations from axe-core or the local structural checks."""
    engine: str = "none"  # axe-core, basic, none
    violations: List[AccessibilityViolation] = Field(default_factory=list)
    summary: str = ""

    @computed_field
    @property
    def count(self) -> int:
        return len(self.violations)


class LeadFacts(AnalyzerFacts):
    """Lead-generation readiness signals."""
    score: int = 3
    message: Optional[str] = None
    form_count: int = 0
    button_count: int = 0
    cta_count: int = 0
    has_contact_page: bool = False
    has_company_info: bool = False
    has_case_studies: bool = False
    has_pricing_page: bool = False
    has_resource_downloads: bool = False
    has_faq: bool = False
    has_privacy_policy: bool = False
    has_news_section: bool = False


class Scores(BaseModel):
    """Five 1-5 sub-scores and their 5-25 sum."""
    performance: int
    seo: int
    mobile: int
    accessibility: int
    b2b_lead: int
    overall: int

    @property
    def percentage(self) -> int:
        return round(self.overall / 25 * 100)


class PageResult(BaseModel):
    """Scored analysis of one page."""
    url: str
    scores: Scores
    performance: PerformanceFacts
    seo: SeoFacts
    mobile: MobileFacts
    accessibility: AccessibilityFacts
    lead: LeadFacts
    suggestions: Optional[str] = None  # narrative HTML fragment
    narrative_source: Optional[str] = None  # ai, fallback


class PageError(BaseModel):
    """A page whose analysis failed; carries no scores."""
    url: str
    error: str
    error_type: str = "analysis"  # navigation, timeout, analysis


class Session(BaseModel):
    """Progress and results of one batch request."""
    id: str
    status: SessionStatus = SessionStatus.RUNNING
    progress: int = 0
    total: int = 0
    current_url: Optional[str] = None
    results: List[Union[PageResult, PageError]] = Field(default_factory=list)
    created_at: float = Field(default_factory=time.time)
    completed_at: Optional[float] = None
    error: Optional[str] = None
    language: str = "en"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
