"""HTML report generator."""

import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from .config import Settings, settings as default_settings
from .i18n import get_translator, normalize_language
from .models import PageResult
from .utils import extract_domain

logger = logging.getLogger(__name__)

# Singleton instance for ReportGenerator
_report_generator_instance = None


class ReportGenerator:
    """Renders one standalone HTML report per analyzed page."""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        templates_path = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(templates_path)),
            autoescape=True,
        )

        self.env.filters['score_class'] = self.score_class
        self.env.filters['format_ms'] = self.format_ms
        self.env.filters['yes_no'] = self.yes_no

    @staticmethod
    def score_class(score: int) -> str:
        """Map a 1-5 score to a CSS class."""
        if score >= 5:
            return 'success'
        if score >= 4:
            return 'info'
        if score >= 3:
            return 'warning'
        return 'error'

    @staticmethod
    def format_ms(value: Optional[Union[int, float]]) -> str:
        if value is None:
            return "-"
        return f"{int(value):,} ms".replace(",", " ")

    @staticmethod
    def yes_no(value) -> Markup:
        """Render a boolean fact as a check or cross icon."""
        if value:
            return Markup('<span class="flag yes">&#10003;</span>')
        return Markup('<span class="flag no">&#10007;</span>')

    @staticmethod
    def radar_chart(cards: List[Dict], max_score: int = 5, size: int = 380, radius: int = 110) -> Dict:
        """Point coordinates for an inline SVG radar chart of the score cards.

        Axes start at the top and run clockwise in card order.
        """
        center = size / 2
        count = len(cards)

        def point(index: int, value: float):
            angle = -math.pi / 2 + 2 * math.pi * index / count
            r = radius * value / max_score
            return round(center + r * math.cos(angle), 1), round(center + r * math.sin(angle), 1)

        def polygon(values) -> str:
            return " ".join(f"{x},{y}" for x, y in (point(i, v) for i, v in enumerate(values)))

        axes = []
        for i, card in enumerate(cards):
            x, y = point(i, max_score)
            label_x, label_y = point(i, max_score * 1.25)
            axes.append({
                "x": x,
                "y": y,
                "label_x": label_x,
                "label_y": label_y,
                "label": card["label"],
                "score": card["score"],
            })

        return {
            "size": size,
            "center": center,
            "rings": [polygon([level] * count) for level in range(1, max_score + 1)],
            "axes": axes,
            "shape": polygon([card["score"] for card in cards]),
        }

    def report_path(self, session_id: str, index: int) -> Path:
        """Location of the report for the page at ``index`` of a session."""
        return Path(self.config.REPORTS_DIR) / f"report_{session_id}_{index}.html"

    async def generate(
        self,
        result: PageResult,
        output_path: Union[str, Path],
        title: Optional[str] = None,
        language: str = "en",
    ) -> str:
        """Generate HTML report and return file path."""
        template = self.env.get_template("report.html")
        lang = normalize_language(language)
        t = get_translator(lang)
        domain = extract_domain(result.url)

        dimensions = [
            ("performance", result.scores.performance),
            ("seo", result.scores.seo),
            ("mobile", result.scores.mobile),
            ("accessibility", result.scores.accessibility),
            ("b2b_lead", result.scores.b2b_lead),
        ]
        score_cards = [
            {"id": name, "label": t(f"report.scores.{name}"), "score": score}
            for name, score in dimensions
        ]

        html = template.render(
            result=result,
            title=title or t("report.title", domain=domain),
            domain=domain,
            score_cards=score_cards,
            radar=self.radar_chart(score_cards),
            suggestions=Markup(result.suggestions) if result.suggestions else None,
            slow_threshold=self.config.SLOW_LOAD_THRESHOLD_MS,
            generated_at=datetime.now().strftime("%d.%m.%Y %H:%M"),
            t=t,
            lang=lang,
        )

        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(html)

        logger.info(f"Report written: {path}")
        return str(path)


def get_report_generator() -> 'ReportGenerator':
    """Get singleton ReportGenerator instance to cache Jinja2 environment."""
    global _report_generator_instance
    if _report_generator_instance is None:
        _report_generator_instance = ReportGenerator()
    return _report_generator_instance
