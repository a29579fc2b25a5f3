"""Per-page analysis pipeline."""

import asyncio
import logging
import time
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .analyzers import (
    AccessibilityAnalyzer,
    AxeScriptLoader,
    LeadAnalyzer,
    MobileAnalyzer,
    PerformanceAnalyzer,
    SeoAnalyzer,
)
from .config import Settings, settings as default_settings
from .errors import NavigationError
from .models import PageResult
from .narrative import NarrativeGenerator
from .renderer_pool import RendererHandle
from .scoring import calculate_scores

logger = logging.getLogger(__name__)


class PagePipeline:
    """
    Loads one URL in a fresh browser context and runs every analyzer on it.

    Performance, markup retrieval, mobile and accessibility run concurrently;
    SEO (needs the markup), lead readiness, scoring and the narrative follow
    in order. Only navigation failures escape as :class:`NavigationError`.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        narrative: Optional[NarrativeGenerator] = None,
        axe_loader: Optional[AxeScriptLoader] = None,
    ):
        self.config = config or default_settings
        self.narrative = narrative or NarrativeGenerator(self.config)
        self.axe_loader = axe_loader or AxeScriptLoader(
            self.config.AXE_SOURCES, self.config.AXE_LOAD_TIMEOUT
        )

    async def analyze(self, handle: RendererHandle, url: str, language: str = "en", title: str = "") -> PageResult:
        context = await handle.browser.new_context(
            viewport={"width": self.config.VIEWPORT_WIDTH, "height": self.config.VIEWPORT_HEIGHT},
            user_agent=self.config.USER_AGENT,
        )
        try:
            page = await context.new_page()
            page.set_default_timeout(self.config.PAGE_TIMEOUT * 1000)
            load_time = await self._navigate(page, url)
            return await self._analyze_loaded(page, url, load_time, language, title or url)
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"Error closing page context for {url}: {e}")

    async def _navigate(self, page: Page, url: str) -> int:
        """Load the page and return the navigation time in milliseconds."""
        started = time.monotonic()
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.config.PAGE_TIMEOUT * 1000)
        except PlaywrightTimeoutError as e:
            raise NavigationError(
                f"Navigation timed out after {self.config.PAGE_TIMEOUT}s: {url}", error_type="timeout"
            ) from e
        except PlaywrightError as e:
            raise NavigationError(f"Navigation failed for {url}: {e.message}") from e
        return int((time.monotonic() - started) * 1000)

    async def _markup(self, page: Page) -> str:
        try:
            return await page.content()
        except PlaywrightError as e:
            logger.warning(f"Could not read page markup: {e.message}")
            return ""

    async def _analyze_loaded(self, page: Page, url: str, load_time: int, language: str, title: str) -> PageResult:
        accessibility_analyzer = AccessibilityAnalyzer(
            language, loader=self.axe_loader, run_timeout=self.config.AXE_RUN_TIMEOUT
        )

        performance, html, mobile, accessibility = await asyncio.gather(
            PerformanceAnalyzer(language).run(page, load_time=load_time),
            self._markup(page),
            MobileAnalyzer(language, self.config.TOUCH_TARGET_MIN_SIZE).run(page),
            accessibility_analyzer.run(page),
        )

        seo = await SeoAnalyzer(language).run(page, html=html)
        lead = await LeadAnalyzer(language, scoring_enabled=self.narrative.configured).run(page)

        scores = calculate_scores(
            performance,
            seo,
            mobile,
            accessibility.count,
            lead.score,
            self.config.SLOW_LOAD_THRESHOLD_MS,
        )

        facts = {
            "performance": performance.model_dump(),
            "seo": seo.model_dump(),
            "mobile": mobile.model_dump(),
            "accessibility": accessibility.model_dump(),
            "lead": lead.model_dump(),
        }
        suggestions, source = await self.narrative.generate(title, url, scores, facts, language)

        logger.info(f"Analyzed {url}: overall {scores.overall}/25")
        return PageResult(
            url=url,
            scores=scores,
            performance=performance,
            seo=seo,
            mobile=mobile,
            accessibility=accessibility,
            lead=lead,
            suggestions=suggestions,
            narrative_source=source,
        )
