"""Base class for page analyzers."""

import logging
from typing import Any, Optional, Type

from playwright.async_api import Page

from ..errors import NavigationError
from ..i18n import DEFAULT_LANGUAGE, t
from ..models import AnalyzerFacts

logger = logging.getLogger(__name__)


class BaseAnalyzer:
    """
    An analyzer inspects one loaded page and returns a facts record.

    Subclasses implement :meth:`analyze`. Callers use :meth:`run`, which
    turns any failure other than a navigation failure into a default
    record flagged ``degraded`` so sibling analyzers are unaffected.
    """

    name: str = ""
    facts_model: Type[AnalyzerFacts] = AnalyzerFacts

    def __init__(self, language: Optional[str] = None):
        self.language = language or DEFAULT_LANGUAGE

    def t(self, key: str, **kwargs: Any) -> str:
        return t(key, self.language, **kwargs)

    async def analyze(self, page: Page, **kwargs: Any) -> AnalyzerFacts:
        raise NotImplementedError

    async def run(self, page: Page, **kwargs: Any) -> AnalyzerFacts:
        try:
            return await self.analyze(page, **kwargs)
        except NavigationError:
            raise
        except Exception as e:
            logger.warning(f"Analyzer {self.name} degraded: {e}")
            return self.degraded(str(e))

    def degraded(self, error: Optional[str] = None, **fields: Any) -> AnalyzerFacts:
        return self.facts_model(degraded=True, error=error, **fields)
