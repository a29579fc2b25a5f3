import asyncio
import tempfile
import unittest
from pathlib import Path

from webscore.config import Settings
from webscore.models import AccessibilityViolation
from webscore.report_generator import ReportGenerator
from webscore.tests.fakes import make_result


class ReportGeneratorTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.generator = ReportGenerator(Settings(OPENAI_API_KEY=None, REPORTS_DIR=self.tmp.name))

    def tearDown(self):
        self.tmp.cleanup()

    def test_report_path(self):
        path = self.generator.report_path("1700000000000-abc123", 2)
        self.assertEqual(path, Path(self.tmp.name) / "report_1700000000000-abc123_2.html")

    def test_writes_report(self):
        result = make_result("https://www.acme.example/", suggestions="<h3>1. Quick wins</h3>")
        result.accessibility.violations.append(
            AccessibilityViolation(id="image-alt", help="Images have no alt attribute", impact="critical", nodes=3)
        )
        path = self.generator.report_path("s1", 0)

        written = asyncio.run(self.generator.generate(result, path, language="en"))

        html = Path(written).read_text(encoding="utf-8")
        self.assertIn("Website analysis: acme.example", html)
        self.assertIn("https://www.acme.example/", html)
        self.assertIn("21/25", html)
        self.assertIn("<h3>1. Quick wins</h3>", html)
        self.assertIn("Images have no alt attribute", html)
        self.assertIn("1 200 ms", html)

    def test_japanese_labels_and_custom_title(self):
        result = make_result()
        path = Path(self.tmp.name) / "nested" / "report.html"

        asyncio.run(self.generator.generate(result, path, title="ウェブサイト分析 #1", language="ja"))

        html = path.read_text(encoding="utf-8")
        self.assertIn('<html lang="ja">', html)
        self.assertIn("ウェブサイト分析 #1", html)
        self.assertIn("パフォーマンス", html)
        self.assertIn("未設定", html)

    def test_page_text_is_escaped(self):
        result = make_result()
        result.seo.title = "<script>alert(1)</script>"

        asyncio.run(self.generator.generate(result, self.generator.report_path("s1", 1)))

        html = self.generator.report_path("s1", 1).read_text(encoding="utf-8")
        self.assertNotIn("<script>alert(1)</script>", html)
        self.assertIn("&lt;script&gt;", html)

    def test_radar_chart_geometry(self):
        cards = [{"label": name, "score": 5} for name in ("a", "b", "c", "d", "e")]
        cards[0]["score"] = 1

        radar = ReportGenerator.radar_chart(cards)

        self.assertEqual(len(radar["rings"]), 5)
        self.assertEqual(len(radar["axes"]), 5)
        # first axis points straight up from the center
        self.assertEqual((radar["axes"][0]["x"], radar["axes"][0]["y"]), (190.0, 80.0))
        self.assertTrue(radar["shape"].startswith("190.0,168.0 "))
        self.assertEqual(radar["shape"].split()[1:], radar["rings"][4].split()[1:])

    def test_report_contains_radar_chart(self):
        path = self.generator.report_path("s1", 2)
        asyncio.run(self.generator.generate(make_result(), path, language="ja"))

        html = path.read_text(encoding="utf-8")
        self.assertIn('<svg class="radar"', html)
        self.assertIn('aria-label="スコアのレーダーチャート"', html)
        self.assertEqual(html.count('<polygon class="ring"'), 5)
        self.assertIn('<polygon class="shape"', html)

    def test_score_class(self):
        self.assertEqual(ReportGenerator.score_class(5), "success")
        self.assertEqual(ReportGenerator.score_class(3), "warning")
        self.assertEqual(ReportGenerator.score_class(1), "error")


if __name__ == "__main__":
    unittest.main()
