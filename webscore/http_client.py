"""Shared aiohttp session for outbound fetches."""

import logging
from typing import Optional

import aiohttp

from .config import settings

logger = logging.getLogger(__name__)

_session: Optional[aiohttp.ClientSession] = None


async def get_session() -> aiohttp.ClientSession:
    """Get or lazily create the process-wide client session."""
    global _session
    if _session is None or _session.closed:
        connector = aiohttp.TCPConnector(limit=settings.AIOHTTP_CONNECTION_LIMIT)
        _session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": settings.USER_AGENT},
        )
    return _session


async def close_session() -> None:
    global _session
    if _session is not None and not _session.closed:
        await _session.close()
    _session = None
