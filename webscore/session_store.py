"""In-memory store of batch sessions with TTL eviction."""

import asyncio
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .models import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Maps session ids to mutable :class:`Session` records.

    Insertions and deletions are serialized by a lock so the periodic sweep
    can run alongside request handlers and batch tasks. Each session has a
    single writer (the batch running it); readers get the live object and
    may observe it one mutation behind, which is fine for polling.
    """

    def __init__(
        self,
        ttl: int = 1800,
        sweep_interval: int = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, session_id: str, total: int, language: str = "en") -> Session:
        session = Session(id=session_id, total=total, created_at=self._clock(), language=language)
        with self._lock:
            if session_id in self._sessions:
                raise KeyError(f"Session already exists: {session_id}")
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove sessions older than the TTL. Returns the number removed."""
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                sid for sid, session in self._sessions.items()
                if now - session.created_at > self.ttl
            ]
            for sid in expired:
                del self._sessions[sid]

        for sid in expired:
            logger.info(f"Removed expired session: {sid}")
        return len(expired)

    async def run_sweeper(self) -> None:
        """Sweep forever on a fixed interval. Cancel the task to stop it."""
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Session sweep failed: {e}", exc_info=True)
