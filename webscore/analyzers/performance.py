"""Performance timing analyzer."""

from typing import Any, Optional

from playwright.async_api import Page

from ..models import PerformanceFacts
from .base import BaseAnalyzer

# Navigation and paint timings are read from the Performance API. LCP and CLS
# are only exposed to observers, so buffered observers are drained briefly.
TIMING_SCRIPT = """
async () => {
  const nav = performance.getEntriesByType('navigation')[0];
  const paint = performance.getEntriesByType('paint')
    .find(e => e.name === 'first-contentful-paint');

  const observe = (type, reduce) => new Promise(resolve => {
    let value = null;
    try {
      const po = new PerformanceObserver(list => {
        for (const entry of list.getEntries()) value = reduce(value, entry);
      });
      po.observe({ type, buffered: true });
      setTimeout(() => { po.disconnect(); resolve(value); }, 100);
    } catch (e) {
      resolve(null);
    }
  });

  const lcp = await observe('largest-contentful-paint', (_, e) => e.startTime);
  const cls = await observe('layout-shift',
    (acc, e) => e.hadRecentInput ? acc : (acc || 0) + e.value);

  return {
    domContentLoaded: nav ? Math.round(nav.domContentLoadedEventEnd) : null,
    loadComplete: nav ? Math.round(nav.loadEventEnd) : null,
    fcp: paint ? Math.round(paint.startTime) : null,
    lcp: lcp === null ? null : Math.round(lcp),
    cls: cls === null ? null : Math.round(cls * 1000) / 1000,
  };
}
"""


def _as_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class PerformanceAnalyzer(BaseAnalyzer):
    """Collects load and paint timings for the loaded page."""

    name = "performance"
    facts_model = PerformanceFacts

    async def analyze(self, page: Page, load_time: int = 0, **kwargs: Any) -> PerformanceFacts:
        metrics = await page.evaluate(TIMING_SCRIPT) or {}
        cls = metrics.get("cls")
        return PerformanceFacts(
            load_time=load_time,
            dom_content_loaded=_as_int(metrics.get("domContentLoaded")),
            load_complete=_as_int(metrics.get("loadComplete")),
            fcp=_as_int(metrics.get("fcp")),
            lcp=_as_int(metrics.get("lcp")),
            cls=float(cls) if cls is not None else None,
        )

    async def run(self, page: Page, load_time: int = 0, **kwargs: Any) -> PerformanceFacts:
        facts = await super().run(page, load_time=load_time, **kwargs)
        # The navigation duration is known even when the timing script fails
        if facts.degraded:
            facts.load_time = load_time
        return facts
