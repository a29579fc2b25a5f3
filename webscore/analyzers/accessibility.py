"""Accessibility analyzer: axe-core with a local structural fallback."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
from playwright.async_api import Page

from ..config import settings
from ..http_client import get_session
from ..models import AccessibilityFacts, AccessibilityViolation
from .base import BaseAnalyzer

logger = logging.getLogger(__name__)

AXE_TAGS = ["wcag2a", "wcag2aa", "wcag21a", "wcag21aa"]

AXE_AVAILABLE_SCRIPT = "() => typeof window.axe !== 'undefined'"

AXE_RUN_SCRIPT = """
async (tags) => {
  const results = await window.axe.run({
    runOnly: { type: 'tag', values: tags },
  });
  return results.violations.map(v => ({
    id: v.id,
    help: v.help,
    impact: v.impact,
    description: v.description,
    nodes: v.nodes.length,
  }));
}
"""

BASIC_CHECKS_SCRIPT = """
() => {
  const found = [];
  const html = document.documentElement;
  if (!html.hasAttribute('lang') || !html.getAttribute('lang').trim()) {
    found.push({ id: 'html-has-lang', impact: 'serious', nodes: 1 });
  }

  const images = document.querySelectorAll('img:not([alt])');
  if (images.length > 0) {
    found.push({ id: 'image-alt', impact: 'critical', nodes: images.length });
  }

  let inputs = 0;
  document.querySelectorAll(
    'input:not([type="hidden"]):not([aria-label]):not([aria-labelledby])'
  ).forEach(input => {
    const byFor = input.id ? document.querySelectorAll(`label[for="${CSS.escape(input.id)}"]`) : [];
    if (byFor.length === 0 && !input.closest('label')) inputs++;
  });
  if (inputs > 0) found.push({ id: 'label', impact: 'critical', nodes: inputs });

  let buttons = 0;
  document.querySelectorAll('button:not([aria-label]):not([aria-labelledby])')
    .forEach(b => { if (!b.textContent.trim()) buttons++; });
  if (buttons > 0) found.push({ id: 'button-name', impact: 'serious', nodes: buttons });

  let links = 0;
  document.querySelectorAll('a[href]:not([aria-label]):not([aria-labelledby])')
    .forEach(a => { if (!a.textContent.trim()) links++; });
  if (links > 0) found.push({ id: 'link-name', impact: 'serious', nodes: links });

  return found;
}
"""


class AxeScriptLoader:
    """Fetches the axe-core bundle once from the first source that answers."""

    def __init__(self, sources: Optional[List[str]] = None, timeout: Optional[int] = None):
        self.sources = list(sources if sources is not None else settings.AXE_SOURCES)
        self.timeout = timeout or settings.AXE_LOAD_TIMEOUT
        self._script: Optional[str] = None
        self._lock = asyncio.Lock()

    async def _fetch(self, url: str) -> Optional[str]:
        session = await get_session()
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with session.get(url, timeout=timeout) as response:
            if response.status != 200:
                logger.info(f"axe-core source {url} returned {response.status}")
                return None
            body = await response.text()
            return body if "axe" in body else None

    async def load(self) -> Optional[str]:
        """Return the script text, or None when every source failed."""
        if self._script is not None:
            return self._script

        async with self._lock:
            if self._script is not None:
                return self._script
            for url in self.sources:
                try:
                    script = await self._fetch(url)
                except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                    logger.info(f"axe-core source failed: {url} ({e})")
                    continue
                if script:
                    logger.info(f"axe-core loaded from {url}")
                    self._script = script
                    break
            else:
                logger.warning("axe-core could not be loaded from any source")
            return self._script


class AccessibilityAnalyzer(BaseAnalyzer):
    """Evaluates WCAG rules with axe-core, or basic checks when it is unavailable."""

    name = "accessibility"
    facts_model = AccessibilityFacts

    def __init__(
        self,
        language: Optional[str] = None,
        loader: Optional[AxeScriptLoader] = None,
        run_timeout: Optional[float] = None,
    ):
        super().__init__(language)
        self.loader = loader or AxeScriptLoader()
        self.run_timeout = run_timeout or settings.AXE_RUN_TIMEOUT

    def _rule_help(self, rule_id: str, default: str) -> str:
        key = f"accessibility.rules.{rule_id}"
        translated = self.t(key)
        return default if translated == key else translated

    def _violation(self, raw: Dict[str, Any]) -> AccessibilityViolation:
        rule_id = raw.get("id", "unknown")
        return AccessibilityViolation(
            id=rule_id,
            help=self._rule_help(rule_id, raw.get("help") or rule_id),
            impact=raw.get("impact"),
            description=raw.get("description") or self._rule_help(rule_id, ""),
            nodes=int(raw.get("nodes") or 0),
        )

    def _summary(self, violations: List[AccessibilityViolation]) -> str:
        if not violations:
            return self.t("accessibility.summary.none")
        return "\n".join(
            self.t("accessibility.summary.item", help=v.help, nodes=v.nodes)
            for v in violations
        )

    async def _run_axe(self, page: Page) -> Optional[List[Dict[str, Any]]]:
        script = await self.loader.load()
        if not script:
            return None
        try:
            await page.add_script_tag(content=script)
            if not await page.evaluate(AXE_AVAILABLE_SCRIPT):
                logger.info("axe-core injected but not available on page")
                return None
            # page.evaluate has no timeout of its own
            return await asyncio.wait_for(page.evaluate(AXE_RUN_SCRIPT, AXE_TAGS), self.run_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"axe-core run exceeded {self.run_timeout}s, using basic checks")
            return None
        except Exception as e:
            # CSP or a broken page can block the injected engine
            logger.info(f"axe-core run failed, using basic checks: {e}")
            return None

    async def analyze(self, page: Page, **kwargs: Any) -> AccessibilityFacts:
        raw = await self._run_axe(page)
        if raw is not None:
            violations = [self._violation(v) for v in raw]
            logger.info(f"Accessibility analysis found {len(violations)} violation(s) with axe-core")
            return AccessibilityFacts(
                engine="axe-core",
                violations=violations,
                summary=self._summary(violations),
            )

        raw = await page.evaluate(BASIC_CHECKS_SCRIPT) or []
        violations = [self._violation(v) for v in raw]
        logger.info(f"Basic accessibility checks found {len(violations)} violation(s)")
        return AccessibilityFacts(
            engine="basic",
            violations=violations,
            summary=self._summary(violations),
            degraded=True,
            error="axe-core unavailable, basic checks used",
        )

    def degraded(self, error: Optional[str] = None, **fields: Any) -> AccessibilityFacts:
        return AccessibilityFacts(engine="none", degraded=True, error=error, **fields)
