import asyncio
import unittest
from types import SimpleNamespace

from webscore.config import Settings
from webscore.models import Scores
from webscore.narrative import NarrativeGenerator
from webscore.tests.fakes import make_result


class FakeCompletions:
    def __init__(self, content=None, error=None, delay=0):
        self.content = content
        self.error = error
        self.delay = delay
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def page_facts():
    result = make_result()
    return result.scores, {
        "performance": result.performance.model_dump(),
        "seo": result.seo.model_dump(),
        "mobile": result.mobile.model_dump(),
        "accessibility": result.accessibility.model_dump(),
        "lead": result.lead.model_dump(),
    }


class NarrativeGeneratorTests(unittest.TestCase):
    def test_configured_completion(self):
        completions = FakeCompletions(content="  <h3>1. Top 5 priority improvements</h3>  ")
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None, OPENAI_MODEL="gpt-4o"), client=fake_client(completions))
        scores, facts = page_facts()

        html, source = asyncio.run(generator.generate("Page 1", "https://example.com/", scores, facts, "ja"))

        self.assertEqual(source, "ai")
        self.assertEqual(html, '<div class="ai-suggestions"><h3>1. Top 5 priority improvements</h3></div>')
        request = completions.requests[0]
        self.assertEqual(request["model"], "gpt-4o")
        self.assertIn("Respond in Japanese", request["messages"][1]["content"])
        self.assertIn("https://example.com/", request["messages"][1]["content"])

    def test_failure_yields_no_narrative(self):
        completions = FakeCompletions(error=RuntimeError("invalid_request_error"))
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None), client=fake_client(completions))
        scores, facts = page_facts()

        self.assertEqual(
            asyncio.run(generator.generate("t", "https://example.com/", scores, facts)),
            (None, None),
        )
        self.assertEqual(len(completions.requests), 1)

    def test_timeout_yields_no_narrative(self):
        completions = FakeCompletions(content="late", delay=5)
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None, NARRATIVE_TIMEOUT=1), client=fake_client(completions))
        scores, facts = page_facts()

        self.assertEqual(
            asyncio.run(generator.generate("t", "https://example.com/", scores, facts)),
            (None, None),
        )

    def test_empty_completion_yields_no_narrative(self):
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None), client=fake_client(FakeCompletions(content=None)))
        scores, facts = page_facts()

        self.assertEqual(asyncio.run(generator.generate("t", "https://example.com/", scores, facts)), (None, None))

    def test_unconfigured_renders_fallback(self):
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None))
        self.assertFalse(generator.configured)
        scores, facts = page_facts()

        html, source = asyncio.run(generator.generate("t", "https://example.com/", scores, facts))

        self.assertEqual(source, "fallback")
        self.assertIn('class="ai-suggestions fallback"', html)
        self.assertIn("21/25", html)
        self.assertIn("Add a contact page", html)

    def test_fallback_lists_weak_dimensions(self):
        generator = NarrativeGenerator(Settings(OPENAI_API_KEY=None))
        _, facts = page_facts()
        facts["performance"]["load_time"] = 5000
        scores = Scores(performance=4, seo=5, mobile=3, accessibility=5, b2b_lead=3, overall=20)

        html = generator.render_fallback(scores, facts, "ja")

        self.assertIn("モバイル対応", html)
        self.assertIn("B2Bリード獲得力", html)
        self.assertNotIn("5000ms", html)

    def test_malformed_key_is_rejected(self):
        config = Settings(OPENAI_API_KEY="  not-a-key  ")
        self.assertIsNone(config.OPENAI_API_KEY)
        self.assertFalse(NarrativeGenerator(config).configured)

    def test_key_whitespace_is_stripped(self):
        config = Settings(OPENAI_API_KEY=" sk-test\n")
        self.assertEqual(config.OPENAI_API_KEY, "sk-test")
        self.assertTrue(config.narrative_configured)


if __name__ == "__main__":
    unittest.main()
