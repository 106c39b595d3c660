"""
Session registry for the scan service.

Keeps one ScanSessionController per open scanning screen, keyed by id,
and evicts sessions nobody has touched for a while.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from shelfscan.identification.candidate_ranker import CandidateRanker, ScanMode
from shelfscan.scanning.session import ScanSessionController


@dataclass
class SessionEntry:
    """Registry bookkeeping around a controller."""
    controller: ScanSessionController
    created_at: float
    last_used: float


class SessionLimitError(Exception):
    """Raised when the registry is full."""


class SessionRegistry:
    """
    Thread-safe store of live scan sessions.

    Suitable for single-instance deployments; sessions live in memory.
    """

    def __init__(
        self,
        ranker_factory: Callable[[], CandidateRanker] = CandidateRanker,
        min_frame_interval: float = ScanSessionController.MIN_FRAME_INTERVAL,
        ttl_seconds: float = 1800,
        max_sessions: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize registry.

        Args:
            ranker_factory: Builds the ranker for each new session
            min_frame_interval: Throttle interval handed to every controller
            ttl_seconds: Idle sessions older than this are evicted
            max_sessions: Upper bound on concurrently open sessions
            clock: Time source for expiry
        """
        self.ranker_factory = ranker_factory
        self.min_frame_interval = min_frame_interval
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self.clock = clock

        self._sessions: dict[str, SessionEntry] = {}
        self._lock = threading.Lock()

    def create(self, mode: ScanMode = ScanMode.BARCODE, start: bool = True) -> ScanSessionController:
        """Create (and by default start) a new session."""
        self.cleanup_expired()

        controller = ScanSessionController(
            ranker=self.ranker_factory(),
            mode=mode,
            min_frame_interval=self.min_frame_interval,
        )

        now = self.clock()
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError(f"Maximum of {self.max_sessions} open scan sessions reached")
            self._sessions[controller.session_id] = SessionEntry(
                controller=controller,
                created_at=now,
                last_used=now,
            )

        if start:
            controller.start()
        return controller

    def get(self, session_id: str) -> Optional[ScanSessionController]:
        """Look up a session and mark it as used."""
        with self._lock:
            entry = self._sessions.get(session_id)
            if entry is None:
                return None
            entry.last_used = self.clock()
            return entry.controller

    def remove(self, session_id: str) -> bool:
        """Dismiss a session: reset it and forget it."""
        with self._lock:
            entry = self._sessions.pop(session_id, None)

        if entry is None:
            return False

        entry.controller.reset()
        return True

    def cleanup_expired(self) -> int:
        """Evict sessions idle for longer than the TTL."""
        now = self.clock()
        with self._lock:
            expired = [
                key for key, entry in self._sessions.items()
                if now - entry.last_used > self.ttl_seconds
            ]
            entries = [self._sessions.pop(key) for key in expired]

        for entry in entries:
            entry.controller.reset()

        if expired:
            logger.debug(f"Cleaned up {len(expired)} expired scan sessions")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        """Reset and drop every session (shutdown)."""
        with self._lock:
            entries = list(self._sessions.values())
            self._sessions.clear()

        for entry in entries:
            entry.controller.reset()
