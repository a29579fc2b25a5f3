"""Batch orchestration: one asyncio task per submitted URL list."""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from .config import Settings, settings as default_settings
from .errors import NavigationError
from .i18n import normalize_language, t
from .models import PageError, PageResult, Session, SessionStatus
from .pipeline import PagePipeline
from .renderer_pool import RendererHandle, RendererPool
from .report_generator import ReportGenerator
from .session_store import SessionStore
from .utils import new_session_id
from .validation import Resolver, resolve_host, validate_urls

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """
    Runs batches of page analyses and records their progress in sessions.

    A batch leases one renderer for all of its URLs and walks them in input
    order, so results are appended in that order. A failing page becomes a
    :class:`PageError` entry; only orchestration faults (such as a browser
    that cannot start) end the session in ``error``.
    """

    def __init__(
        self,
        store: SessionStore,
        pool: RendererPool,
        pipeline: PagePipeline,
        reports: Optional[ReportGenerator] = None,
        config: Optional[Settings] = None,
        resolver: Optional[Resolver] = resolve_host,
    ):
        self.store = store
        self.pool = pool
        self.pipeline = pipeline
        self.reports = reports
        self.config = config or default_settings
        self.resolver = resolver
        self._tasks: Dict[str, asyncio.Task] = {}
        self._cancel_events: Dict[str, asyncio.Event] = {}

    async def submit(self, urls: List[str], language: Optional[str] = None) -> Session:
        """
        Validate a URL list, create its session and start the batch.

        Raises:
            URLValidationError: the list was rejected; no session is created
        """
        urls = await validate_urls(urls, self.config.MAX_URLS_PER_BATCH, self.resolver)
        language = normalize_language(language or self.config.LANGUAGE)

        session = self.store.create(new_session_id(), total=len(urls), language=language)
        cancel_event = asyncio.Event()
        self._cancel_events[session.id] = cancel_event

        task = asyncio.create_task(self.run_batch(session.id, urls, cancel_event))
        self._tasks[session.id] = task
        task.add_done_callback(lambda _: self._forget(session.id))

        logger.info(f"[Session {session.id}] Started batch of {len(urls)} URL(s)")
        return session

    def _forget(self, session_id: str) -> None:
        self._tasks.pop(session_id, None)
        self._cancel_events.pop(session_id, None)

    def is_running(self, session_id: str) -> bool:
        return session_id in self._tasks

    def cancel(self, session_id: str) -> bool:
        """Ask a running batch to stop before its next URL."""
        event = self._cancel_events.get(session_id)
        if event is None:
            return False
        event.set()
        logger.info(f"[Session {session_id}] Cancellation requested")
        return True

    async def run_batch(self, session_id: str, urls: List[str], cancel_event: Optional[asyncio.Event] = None) -> None:
        """Analyze every URL of a batch and record the outcome in its session."""
        session = self.store.get(session_id)
        if session is None:
            logger.error(f"[Session {session_id}] Session not found, batch not started")
            return

        cancel_event = cancel_event or asyncio.Event()
        handle: Optional[RendererHandle] = None
        started = time.time()

        try:
            handle = await self.pool.acquire()

            for i, url in enumerate(urls):
                if cancel_event.is_set():
                    self._finish(session, SessionStatus.CANCELLED)
                    logger.info(f"[Session {session_id}] Cancelled after {len(session.results)} page(s)")
                    return

                session.progress = i
                session.current_url = url
                logger.info(f"[Session {session_id}] [{i + 1}/{len(urls)}] Analyzing {url}")

                session.results.append(await self._analyze_page(handle, url, i, session.language))

            await self._emit_reports(session)

            session.progress = len(urls)
            session.current_url = None
            self._finish(session, SessionStatus.COMPLETED)
            logger.info(f"[Session {session_id}] Completed in {time.time() - started:.2f}s")

        except asyncio.CancelledError:
            self._finish(session, SessionStatus.CANCELLED)
            logger.warning(f"[Session {session_id}] Batch task cancelled")
            raise
        except Exception as e:
            logger.error(f"[Session {session_id}] Batch failed: {e}", exc_info=True)
            session.error = str(e)
            self._finish(session, SessionStatus.ERROR)
        finally:
            if handle is not None:
                await self.pool.release(handle, close=not handle.shared)

    async def _analyze_page(self, handle: RendererHandle, url: str, index: int, language: str):
        title = t("narrative.page_title", language, index=index + 1)
        try:
            return await self.pipeline.analyze(handle, url, language=language, title=title)
        except NavigationError as e:
            logger.warning(f"Page failed ({e.error_type}): {url}: {e}")
            return PageError(url=url, error=str(e), error_type=e.error_type)
        except Exception as e:
            logger.error(f"Analysis error for {url}: {e}", exc_info=True)
            return PageError(url=url, error=str(e) or e.__class__.__name__, error_type="analysis")

    async def _emit_reports(self, session: Session) -> None:
        if self.reports is None:
            return
        for index, result in enumerate(session.results):
            if not isinstance(result, PageResult):
                continue
            try:
                await self.reports.generate(
                    result,
                    self.reports.report_path(session.id, index),
                    language=session.language,
                )
            except Exception as e:
                logger.error(f"[Session {session.id}] Report generation failed for {result.url}: {e}", exc_info=True)

    @staticmethod
    def _finish(session: Session, status: SessionStatus) -> None:
        session.status = status
        session.completed_at = time.time()

    async def shutdown(self, grace: Optional[float] = None) -> None:
        """Stop in-flight batches: signal them, wait, then cancel stragglers."""
        tasks = list(self._tasks.values())
        if not tasks:
            return

        for event in self._cancel_events.values():
            event.set()

        grace = self.config.SHUTDOWN_GRACE if grace is None else grace
        done, pending = await asyncio.wait(tasks, timeout=grace)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info(f"Stopped {len(tasks)} batch(es), {len(pending)} cancelled forcibly")
