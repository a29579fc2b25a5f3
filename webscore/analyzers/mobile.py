"""Mobile friendliness analyzer."""

from typing import Any

from playwright.async_api import Page

from ..config import settings
from ..models import MobileFacts, ResponsiveFacts, TouchTargetFacts
from .base import BaseAnalyzer

VIEWPORT_SCRIPT = """
() => {
  const meta = Array.from(document.querySelectorAll('meta[name]'))
    .find(m => m.getAttribute('name').toLowerCase() === 'viewport');
  return meta ? meta.getAttribute('content') : null;
}
"""

TOUCH_TARGET_SCRIPT = """
(minSize) => {
  const elements = document.querySelectorAll(
    'button, a[href], input, select, textarea, [role="button"], [tabindex="0"]'
  );
  let totalTargets = 0, adequateTargets = 0, smallTargets = 0;
  elements.forEach(el => {
    const rect = el.getBoundingClientRect();
    if (rect.width > 0 && rect.height > 0) {
      totalTargets++;
      if (rect.width >= minSize && rect.height >= minSize) adequateTargets++;
      else smallTargets++;
    }
  });
  return { totalTargets, adequateTargets, smallTargets };
}
"""

# Cross-origin stylesheets throw on cssRules; null means nothing was readable
MEDIA_QUERY_SCRIPT = """
() => {
  let readable = false;
  for (const sheet of Array.from(document.styleSheets)) {
    let rules;
    try { rules = sheet.cssRules; } catch (e) { continue; }
    readable = true;
    if (sheet.media && sheet.media.length) return true;
    for (const rule of Array.from(rules || [])) {
      if (rule.type === CSSRule.MEDIA_RULE) return true;
    }
  }
  return readable ? false : null;
}
"""


class MobileAnalyzer(BaseAnalyzer):
    """Analyzer for mobile viewport and touch target sizing."""

    name = "mobile"
    facts_model = MobileFacts

    def __init__(self, language: str = None, min_target_size: int = None):
        super().__init__(language)
        self.min_target_size = min_target_size or settings.TOUCH_TARGET_MIN_SIZE

    async def analyze(self, page: Page, **kwargs: Any) -> MobileFacts:
        viewport = await page.evaluate(VIEWPORT_SCRIPT)
        targets = await page.evaluate(TOUCH_TARGET_SCRIPT, self.min_target_size) or {}
        has_media_queries = await page.evaluate(MEDIA_QUERY_SCRIPT)

        return MobileFacts(
            viewport=viewport or None,
            responsive=ResponsiveFacts(has_media_queries=has_media_queries),
            touch_targets=TouchTargetFacts(
                total_targets=targets.get("totalTargets", 0),
                adequate_targets=targets.get("adequateTargets", 0),
                small_targets=targets.get("smallTargets", 0),
            ),
        )
