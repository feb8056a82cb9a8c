"""
api/session.py — per-browser quiz sessions

Each browser cookie maps to its own QuizSessionMachine. Entries expire
after `ttl` seconds without access. The login credential is not kept here;
it is process-wide (quiz_client.services.credential_store).
"""

import threading
import time
import uuid
from typing import Callable, Dict, Optional, Tuple

from quiz_client.services.session_machine import QuizSessionMachine


class SessionRegistry:
    """Thread-safe map of session id -> (machine, last access time)."""

    def __init__(
        self,
        factory: Callable[[], QuizSessionMachine],
        ttl: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._factory = factory
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[QuizSessionMachine, float]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _expired(self, last_seen: float, now: float) -> bool:
        return now - last_seen > self._ttl

    def open(self, sid: Optional[str]) -> str:
        """
        Id of a live session: `sid` itself if it is known and fresh,
        otherwise a newly created one.
        """
        now = self._clock()
        with self._lock:
            entry = self._entries.get(sid) if sid else None
            if entry is not None and not self._expired(entry[1], now):
                self._entries[sid] = (entry[0], now)
                return sid
            if entry is not None:
                del self._entries[sid]
            new_sid = uuid.uuid4().hex
            self._entries[new_sid] = (self._factory(), now)
            return new_sid

    def machine(self, sid: str) -> Optional[QuizSessionMachine]:
        with self._lock:
            entry = self._entries.get(sid)
            return entry[0] if entry else None

    def drop_all(self) -> None:
        """Forget every session (logout)."""
        with self._lock:
            self._entries.clear()

    def cleanup_expired(self) -> int:
        """Remove expired sessions. Returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [
                sid for sid, (_, last_seen) in self._entries.items()
                if self._expired(last_seen, now)
            ]
            for sid in expired:
                del self._entries[sid]
        return len(expired)
