"""Page analyzers."""

from .accessibility import AccessibilityAnalyzer, AxeScriptLoader
from .base import BaseAnalyzer
from .lead import LeadAnalyzer
from .mobile import MobileAnalyzer
from .performance import PerformanceAnalyzer
from .seo import SeoAnalyzer

__all__ = [
    "AccessibilityAnalyzer",
    "AxeScriptLoader",
    "BaseAnalyzer",
    "LeadAnalyzer",
    "MobileAnalyzer",
    "PerformanceAnalyzer",
    "SeoAnalyzer",
]
