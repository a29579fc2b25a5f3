"""Lead-generation readiness heuristic."""

import re
from typing import Any, Dict, Optional

from playwright.async_api import Page

from ..models import LeadFacts
from .base import BaseAnalyzer

PAGE_SIGNALS_SCRIPT = """
() => {
  const links = Array.from(document.querySelectorAll('a[href]')).map(a => ({
    href: a.getAttribute('href') || '',
    text: (a.textContent || '').trim(),
  }));
  return {
    text: document.body ? document.body.innerText : '',
    forms: document.querySelectorAll('form').length,
    buttons: document.querySelectorAll('button, input[type="submit"], [role="button"]').length,
    links: links,
  };
}
"""

# Keyword groups in English and Japanese, matched against visible text and link targets
SIGNALS = {
    "has_contact_page": ["contact", "inquiry", "enquiry", "get in touch", "お問い合わせ", "問い合わせ"],
    "has_company_info": ["about us", "company", "our team", "会社概要", "企業情報"],
    "has_case_studies": ["case stud", "customer stor", "success stor", "導入事例", "事例", "実績"],
    "has_pricing_page": ["pricing", "plans", "price", "料金", "価格"],
    "has_resource_downloads": ["whitepaper", "white paper", "ebook", "download", "資料ダウンロード", "資料請求"],
    "has_faq": ["faq", "frequently asked", "よくある質問"],
    "has_privacy_policy": ["privacy", "プライバシー", "個人情報"],
    "has_news_section": ["news", "press", "blog", "ニュース", "お知らせ"],
}

CTA_PATTERN = re.compile(
    r"contact|demo|trial|quote|sign ?up|get started|download|request|"
    r"お問い合わせ|資料請求|無料|申し込|ダウンロード",
    re.IGNORECASE,
)


def _matches(haystack: str, needles) -> bool:
    return any(needle in haystack for needle in needles)


def score_lead_signals(facts: LeadFacts) -> int:
    """2 base points, one each for contact, company info and a capture path."""
    score = 2
    if facts.has_contact_page:
        score += 1
    if facts.has_company_info:
        score += 1
    if facts.form_count > 0 or facts.has_resource_downloads:
        score += 1
    return min(score, 5)


class LeadAnalyzer(BaseAnalyzer):
    """Estimates how well a page captures business inquiries.

    The score is only computed when narrative generation is configured;
    otherwise it is fixed at 3 with an informational message while the
    structural facts are still collected.
    """

    name = "lead"
    facts_model = LeadFacts

    def __init__(self, language: Optional[str] = None, scoring_enabled: bool = True):
        super().__init__(language)
        self.scoring_enabled = scoring_enabled

    def extract(self, signals: Dict[str, Any]) -> LeadFacts:
        text = (signals.get("text") or "").lower()
        links = signals.get("links") or []
        link_blob = " ".join(
            f"{link.get('href', '')} {link.get('text', '')}" for link in links
        ).lower()
        haystack = f"{text} {link_blob}"

        flags = {name: _matches(haystack, needles) for name, needles in SIGNALS.items()}
        cta_count = sum(1 for link in links if CTA_PATTERN.search(link.get("text") or ""))

        return LeadFacts(
            form_count=int(signals.get("forms") or 0),
            button_count=int(signals.get("buttons") or 0),
            cta_count=cta_count,
            **flags,
        )

    async def analyze(self, page: Page, **kwargs: Any) -> LeadFacts:
        signals = await page.evaluate(PAGE_SIGNALS_SCRIPT) or {}
        facts = self.extract(signals)

        if not self.scoring_enabled:
            facts.score = 3
            facts.message = self.t("lead.not_configured")
            facts.degraded = True
            return facts

        facts.score = score_lead_signals(facts)
        return facts

    def degraded(self, error: Optional[str] = None, **fields: Any) -> LeadFacts:
        return LeadFacts(score=3, degraded=True, error=error, **fields)
