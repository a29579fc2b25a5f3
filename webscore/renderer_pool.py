"""Pool of Playwright browser instances with a cap on live renderers."""

import asyncio
import itertools
import logging
from typing import Awaitable, Callable, Optional, Set

from playwright.async_api import Browser, Playwright, async_playwright

from .errors import RendererStartupError

logger = logging.getLogger(__name__)

# Chromium's sandbox needs kernel features that restricted containers do not
# grant, so it is disabled on purpose. Only public http(s) targets that pass
# validation are ever loaded.
BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",  # Prevents /dev/shm exhaustion in Docker
]

Launcher = Callable[[], Awaitable[Browser]]

_handle_ids = itertools.count(1)


class RendererHandle:
    """A leased browser instance."""

    def __init__(self, browser: Browser, shared: bool = False):
        self.id = next(_handle_ids)
        self.browser = browser
        self.shared = shared

    @property
    def alive(self) -> bool:
        try:
            return self.browser.is_connected()
        except Exception:
            return False

    def __repr__(self) -> str:
        kind = "shared" if self.shared else "exclusive"
        return f"<RendererHandle #{self.id} {kind}>"


class RendererPool:
    """
    Hands out browser instances under a hard cap.

    Below the cap each acquisition launches an exclusive browser. At the cap
    callers get one shared long-lived browser instead of waiting, so they
    must not assume exclusive ownership of what they receive.
    """

    def __init__(self, max_instances: int = 3, launcher: Optional[Launcher] = None):
        """
        Args:
            max_instances: Maximum number of live exclusive browsers
            launcher: Coroutine factory returning a new browser; defaults to
                headless Chromium through Playwright
        """
        self.max_instances = max_instances
        self._launcher = launcher or self._launch_chromium
        self._playwright: Optional[Playwright] = None
        self._leased: Set[RendererHandle] = set()
        self._shared: Optional[RendererHandle] = None
        self._lock = asyncio.Lock()

    @property
    def live_count(self) -> int:
        return len(self._leased)

    async def _launch_chromium(self) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(headless=True, args=BROWSER_ARGS)

    async def _launch(self) -> Browser:
        try:
            return await self._launcher()
        except Exception as e:
            logger.error(f"Failed to launch browser: {e}")
            raise RendererStartupError(f"Browser startup failed: {e}") from e

    async def acquire(self) -> RendererHandle:
        """
        Lease a renderer.

        Returns:
            An exclusive handle while below the cap, otherwise the shared one

        Raises:
            RendererStartupError: the browser could not be launched
        """
        async with self._lock:
            if len(self._leased) < self.max_instances:
                handle = RendererHandle(await self._launch())
                self._leased.add(handle)
                logger.info(f"Launched {handle} ({len(self._leased)}/{self.max_instances} live)")
                return handle

            if self._shared is None or not self._shared.alive:
                if self._shared is not None:
                    logger.warning("Shared browser disconnected, relaunching")
                self._shared = RendererHandle(await self._launch(), shared=True)
                logger.info(f"Launched {self._shared} (pool at cap)")
            return self._shared

    async def release(self, handle: RendererHandle, close: bool = True) -> None:
        """Return a handle. Closing tears down exclusive browsers only."""
        if handle.shared or not close:
            return

        async with self._lock:
            self._leased.discard(handle)
            try:
                await handle.browser.close()
            except Exception as e:
                logger.warning(f"Error closing {handle}: {e}")
            logger.info(f"Closed {handle} ({len(self._leased)}/{self.max_instances} live)")

    def health(self) -> dict:
        return {
            "live": len(self._leased),
            "max": self.max_instances,
            "shared_open": self._shared is not None and self._shared.alive,
            "status": "healthy" if len(self._leased) < self.max_instances else "saturated",
        }

    async def close(self) -> None:
        """Close every exclusive browser still leased, the shared one, and Playwright."""
        async with self._lock:
            for handle in list(self._leased):
                try:
                    await handle.browser.close()
                except Exception as e:
                    logger.warning(f"Error closing {handle}: {e}")
            self._leased.clear()

            if self._shared is not None:
                try:
                    await self._shared.browser.close()
                except Exception as e:
                    logger.warning(f"Error closing shared browser: {e}")
                self._shared = None

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning(f"Error stopping Playwright: {e}")
                self._playwright = None
        logger.info("Renderer pool closed")
