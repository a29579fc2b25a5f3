"""Stand-ins for Playwright objects and service collaborators."""

import asyncio
from typing import Any, Dict, List, Optional

from webscore.models import (
    AccessibilityFacts,
    LeadFacts,
    MobileFacts,
    PageResult,
    PerformanceFacts,
    Scores,
    SeoFacts,
)


class FakePage:
    """Answers ``evaluate`` calls from a script -> result mapping.

    A mapped value that is an exception instance is raised instead. Scripts
    listed in ``delays`` sleep that many seconds before answering.
    """

    def __init__(
        self,
        results: Optional[Dict[str, Any]] = None,
        html: str = "",
        goto_error: Optional[Exception] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.results = results or {}
        self.delays = delays or {}
        self.html = html
        self.goto_error = goto_error
        self.evaluated: List[str] = []
        self.injected: List[str] = []
        self.visited: List[str] = []
        self.default_timeout = None

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluated.append(script)
        if script in self.delays:
            await asyncio.sleep(self.delays[script])
        value = self.results.get(script)
        if isinstance(value, Exception):
            raise value
        return value

    async def add_script_tag(self, content: str = None, url: str = None):
        self.injected.append(content)

    async def goto(self, url: str, wait_until: str = None, timeout: float = None):
        self.visited.append(url)
        if self.goto_error is not None:
            raise self.goto_error

    async def content(self) -> str:
        return self.html

    def set_default_timeout(self, timeout: float) -> None:
        self.default_timeout = timeout


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, page: Optional[FakePage] = None):
        self.page = page or FakePage()
        self.contexts: List[FakeContext] = []
        self.context_options: List[Dict[str, Any]] = []
        self.connected = True
        self.closed = False

    async def new_context(self, **options) -> FakeContext:
        self.context_options.append(options)
        context = FakeContext(self.page)
        self.contexts.append(context)
        return context

    def is_connected(self) -> bool:
        return self.connected

    async def close(self) -> None:
        self.closed = True
        self.connected = False


class NoAxeLoader:
    """Axe loader whose every source fails."""

    async def load(self) -> Optional[str]:
        return None


class FakeHandle:
    def __init__(self, browser: Optional[FakeBrowser] = None, shared: bool = False):
        self.browser = browser or FakeBrowser()
        self.shared = shared


class FakePool:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.acquired: List[FakeHandle] = []
        self.released: List[tuple] = []

    async def acquire(self) -> FakeHandle:
        if self.error is not None:
            raise self.error
        handle = FakeHandle()
        self.acquired.append(handle)
        return handle

    async def release(self, handle: FakeHandle, close: bool = True) -> None:
        self.released.append((handle, close))


class FakePipeline:
    """Returns a canned result per URL; exceptions in ``failures`` are raised."""

    def __init__(self, failures: Optional[Dict[str, Exception]] = None, gate: Optional[asyncio.Event] = None):
        self.failures = failures or {}
        self.gate = gate
        self.calls: List[Dict[str, Any]] = []
        self.on_analyze = None

    async def analyze(self, handle, url: str, language: str = "en", title: str = "") -> PageResult:
        self.calls.append({"url": url, "language": language, "title": title, "handle": handle})
        if self.on_analyze is not None:
            self.on_analyze(url)
        if self.gate is not None:
            await self.gate.wait()
        await asyncio.sleep(0)
        if url in self.failures:
            raise self.failures[url]
        return make_result(url)


class FakeReports:
    def __init__(self, fail_for: Optional[str] = None):
        self.fail_for = fail_for
        self.generated: List[tuple] = []

    def report_path(self, session_id: str, index: int) -> str:
        return f"/tmp/report_{session_id}_{index}.html"

    async def generate(self, result: PageResult, output_path, title=None, language: str = "en") -> str:
        if result.url == self.fail_for:
            raise OSError("disk full")
        self.generated.append((result.url, output_path, language))
        return output_path


def make_result(url: str = "https://example.com/", suggestions: Optional[str] = None) -> PageResult:
    return PageResult(
        url=url,
        scores=Scores(performance=5, seo=4, mobile=5, accessibility=4, b2b_lead=3, overall=21),
        performance=PerformanceFacts(load_time=1200, fcp=400, lcp=900, cls=0.02),
        seo=SeoFacts(title="Example Domain", meta_description=None, lang="en"),
        mobile=MobileFacts(viewport="width=device-width, initial-scale=1"),
        accessibility=AccessibilityFacts(engine="basic", degraded=True),
        lead=LeadFacts(score=3, message="Lead scoring disabled", degraded=True),
        suggestions=suggestions,
        narrative_source="fallback" if suggestions else None,
    )
