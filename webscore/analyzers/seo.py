"""On-page SEO analyzer working on rendered markup."""

import re
from typing import Any, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Page

from ..models import HeadingCounts, ImageCounts, SeoFacts
from .base import BaseAnalyzer


class SeoAnalyzer(BaseAnalyzer):
    """Extracts title, description, headings and image alt coverage.

    Works on markup already retrieved from the page, so it runs after the
    concurrent analyzers without touching the browser again.
    """

    name = "seo"
    facts_model = SeoFacts

    def analyze_markup(self, html: str) -> SeoFacts:
        if not html:
            return self.degraded("No markup retrieved")

        soup = BeautifulSoup(html, "lxml")

        title_tag = soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else None

        meta_desc = soup.find("meta", attrs={"name": re.compile(r"^description$", re.I)})
        meta_description = (meta_desc.get("content") or "").strip() if meta_desc else None

        canonical_tag = soup.find("link", attrs={"rel": "canonical"})
        canonical = canonical_tag.get("href") if canonical_tag else None

        html_tag = soup.find("html")
        lang = (html_tag.get("lang") or "").strip() if html_tag else ""

        images = soup.find_all("img")
        with_alt = sum(1 for img in images if img.has_attr("alt"))

        return SeoFacts(
            title=title or None,
            meta_description=meta_description or None,
            canonical=canonical or None,
            lang=lang or None,
            headings=HeadingCounts(
                h1=len(soup.find_all("h1")),
                h2=len(soup.find_all("h2")),
                h3=len(soup.find_all("h3")),
            ),
            images=ImageCounts(
                total=len(images),
                with_alt=with_alt,
                without_alt=len(images) - with_alt,
            ),
        )

    async def analyze(self, page: Page, html: Optional[str] = None, **kwargs: Any) -> SeoFacts:
        if html is None:
            html = await page.content()
        return self.analyze_markup(html)
