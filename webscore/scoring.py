"""Deterministic five-part page scoring."""

from typing import Optional

from .config import settings
from .models import MobileFacts, PerformanceFacts, Scores, SeoFacts


def calculate_scores(
    performance: PerformanceFacts,
    seo: SeoFacts,
    mobile: MobileFacts,
    violation_count: int,
    lead_score: Optional[int],
    slow_threshold_ms: Optional[int] = None,
) -> Scores:
    """
    Score a page on five 1-5 dimensions.

    - performance: 5, minus 1 when the load took longer than the threshold
    - seo: 5, minus 1 each for a missing title and meta description
    - mobile: 5 with a viewport meta tag, else 3
    - accessibility: 5 minus one per two violations, at least 1
    - b2b_lead: the lead score, 3 when absent
    """
    threshold = slow_threshold_ms if slow_threshold_ms is not None else settings.SLOW_LOAD_THRESHOLD_MS

    perf_score = 5
    if performance.load_time > threshold:
        perf_score -= 1

    seo_score = 5
    if not seo.title:
        seo_score -= 1
    if not seo.meta_description:
        seo_score -= 1

    mobile_score = 5 if mobile.viewport else 3
    a11y_score = max(1, 5 - violation_count // 2)
    lead = lead_score or 3

    perf_score = max(1, perf_score)
    seo_score = max(1, seo_score)

    return Scores(
        performance=perf_score,
        seo=seo_score,
        mobile=mobile_score,
        accessibility=a11y_score,
        b2b_lead=lead,
        overall=perf_score + seo_score + mobile_score + a11y_score + lead,
    )
