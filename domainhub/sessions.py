"""In-process index of running purchase sessions, with TTL eviction."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class PurchaseSession:
    session_id: str
    user_id: str
    started_at: datetime = field(default_factory=_utcnow)
    cancelled: bool = False


class SessionRegistry:
    """Thread-safe map of session id to :class:`PurchaseSession`.

    Entries are removed when their workflow finishes, or by :meth:`sweep`
    once older than *ttl*.
    """

    def __init__(self, ttl: timedelta = timedelta(hours=1)) -> None:
        self.ttl = ttl
        self._sessions: dict[str, PurchaseSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def start(self, session_id: str, user_id: str) -> PurchaseSession:
        session = PurchaseSession(session_id=session_id, user_id=user_id)
        with self._lock:
            self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> PurchaseSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def cancel(self, session_id: str) -> bool:
        """Flag a running session. False if it is unknown to this process."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            session.cancelled = True
            return True

    def is_cancelled(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            return session is not None and session.cancelled

    def finish(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def sweep(self, now: datetime | None = None) -> int:
        """Drop sessions older than the TTL. Returns how many were removed."""
        cutoff = (now or _utcnow()) - self.ttl
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if s.started_at < cutoff]
            for sid in stale:
                del self._sessions[sid]
        if stale:
            logger.info("Swept stale purchase sessions", count=len(stale))
        return len(stale)

    async def run_sweeper(self, interval: float | None = None) -> None:
        """Sweep forever every *interval* seconds (defaults to the TTL). Cancel to stop."""
        period = interval if interval is not None else self.ttl.total_seconds()
        while True:
            await asyncio.sleep(period)
            self.sweep()
