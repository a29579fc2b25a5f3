"""Improvement narrative generation via OpenAI, with a rule-based fallback."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import openai
from jinja2 import Environment, FileSystemLoader
from openai import AsyncOpenAI
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings, settings as default_settings
from .i18n import get_translator
from .models import AccessibilityFacts, LeadFacts, MobileFacts, PerformanceFacts, Scores, SeoFacts

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an experienced UX/UI designer and B2B marketing specialist. "
    "Answer in HTML only: use <h3>, <p>, <strong> and <table>; never use Markdown, "
    "<ul>, <li> or <div>. Write bullet points as <p>・item</p>."
)

USER_PROMPT = """Based on the website analysis below, give concrete, actionable improvements.

URL: {url}
Title: {title}
Overall score: {overall}/25 ({percentage}%)

Scores (1-5): performance {performance}, SEO {seo}, mobile {mobile}, accessibility {accessibility}, B2B lead generation {b2b_lead}

Analysis data (JSON):
{facts}

Structure the answer as:
<h3>1. Top 5 priority improvements</h3>
<h3>2. How to implement them</h3>
<h3>3. Expected impact</h3>
<h3>4. B2B lead generation actions</h3>
<h3>5. How to measure the results</h3>

Respond in {language_name}."""

LANGUAGE_NAMES = {"en": "English", "ja": "Japanese"}

RETRYABLE_ERRORS = (openai.APIConnectionError, openai.RateLimitError)


class NarrativeGenerator:
    """Produces the improvement narrative for one page.

    When an API key is configured the narrative comes from a chat completion,
    bounded by ``NARRATIVE_TIMEOUT``; any failure yields no narrative. When it
    is not configured a fallback narrative is rendered from the scores.
    """

    def __init__(self, config: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        self.config = config or default_settings
        self._client = client
        if self._client is None and self.config.narrative_configured:
            self._client = AsyncOpenAI(
                api_key=self.config.OPENAI_API_KEY,
                timeout=self.config.NARRATIVE_TIMEOUT,
                max_retries=0,  # retries are handled below
            )

        templates_path = Path(__file__).parent / "templates"
        self.env = Environment(loader=FileSystemLoader(str(templates_path)), autoescape=True)

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def generate(
        self,
        title: str,
        url: str,
        scores: Scores,
        facts: Dict[str, Any],
        language: str = "en",
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Returns:
            Tuple of (html fragment or None, source) where source is
            "ai", "fallback" or None
        """
        if not self.configured:
            return self.render_fallback(scores, facts, language), "fallback"

        try:
            content = await asyncio.wait_for(
                self._complete(title, url, scores, facts, language),
                timeout=self.config.NARRATIVE_TIMEOUT,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Narrative generation timed out after {self.config.NARRATIVE_TIMEOUT}s for {url}")
            return None, None
        except Exception as e:
            logger.warning(f"Narrative generation failed for {url}: {e}")
            return None, None

        if not content:
            return None, None
        return f'<div class="ai-suggestions">{content}</div>', "ai"

    def _build_prompt(self, title: str, url: str, scores: Scores, facts: Dict[str, Any], language: str) -> str:
        return USER_PROMPT.format(
            url=url,
            title=title,
            overall=scores.overall,
            percentage=scores.percentage,
            performance=scores.performance,
            seo=scores.seo,
            mobile=scores.mobile,
            accessibility=scores.accessibility,
            b2b_lead=scores.b2b_lead,
            facts=json.dumps(facts, ensure_ascii=False, indent=2, default=str),
            language_name=LANGUAGE_NAMES.get(language, "English"),
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        reraise=True,
    )
    async def _complete(self, title: str, url: str, scores: Scores, facts: Dict[str, Any], language: str) -> str:
        logger.info(f"Requesting narrative for {url}")
        response = await self._client.chat.completions.create(
            model=self.config.OPENAI_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": self._build_prompt(title, url, scores, facts, language)},
            ],
            max_tokens=self.config.NARRATIVE_MAX_TOKENS,
            temperature=self.config.NARRATIVE_TEMPERATURE,
        )
        return (response.choices[0].message.content or "").strip()

    def render_fallback(self, scores: Scores, facts: Dict[str, Any], language: str = "en") -> str:
        """Rule-based narrative used when no text-generation service is configured."""
        t = get_translator(language)
        performance = PerformanceFacts.model_validate(facts.get("performance") or {})
        seo = SeoFacts.model_validate(facts.get("seo") or {})
        mobile = MobileFacts.model_validate(facts.get("mobile") or {})
        accessibility = AccessibilityFacts.model_validate(facts.get("accessibility") or {})
        lead = LeadFacts.model_validate(facts.get("lead") or {})

        template = self.env.get_template("narrative_fallback.html")
        html = template.render(
            t=t,
            scores=scores,
            performance=performance,
            seo=seo,
            mobile=mobile,
            accessibility=accessibility,
            lead=lead,
            slow_threshold=self.config.SLOW_LOAD_THRESHOLD_MS,
        )
        return html
