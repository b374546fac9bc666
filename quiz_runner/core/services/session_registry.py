"""Service that keeps per-browser quiz sessions on the server side."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
from threading import Lock
import time
from typing import Any
from uuid import uuid4

from quiz_runner.constants.quiz_constants import DEFAULT_THEME, SESSION_IDLE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionRecord:
    """Stored data for one session. Only touch it while holding ``lock``."""

    session_id: str
    last_seen: float
    state_payload: dict[str, Any] | None = None
    theme: str = DEFAULT_THEME
    lock: Lock = field(default_factory=Lock, repr=False)


class SessionRegistry:
    """Maps session ids to serialized quiz state, one lock per session."""

    def __init__(
        self,
        idle_timeout_seconds: float = SESSION_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._lock = Lock()
        self._records: dict[str, SessionRecord] = {}
        self._idle_timeout_seconds = idle_timeout_seconds
        self._clock = clock

    def open_session(self, session_id: str | None = None) -> str:
        """Return a live session id, creating a new session for unknown ids."""
        with self._lock:
            self._purge_expired()
            now = self._clock()
            record = self._records.get(session_id) if session_id else None
            if record is not None:
                record.last_seen = now
                return record.session_id
            new_id = uuid4().hex
            self._records[new_id] = SessionRecord(session_id=new_id, last_seen=now)
            logger.info("Opened quiz session %s", new_id)
            return new_id

    def has_session(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._records

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._records)

    @contextmanager
    def locked(self, session_id: str) -> Iterator[SessionRecord]:
        """Hold the session's lock for the duration of one event."""
        with self._lock:
            record = self._records.get(session_id)
            if record is None:
                raise KeyError(f"Unknown session {session_id}")
            record.last_seen = self._clock()
        with record.lock:
            with self._lock:
                if self._records.get(session_id) is not record:
                    logger.info("Restoring session %s that expired while waiting", session_id)
                    self._records[session_id] = record
            yield record

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            session_id
            for session_id, record in self._records.items()
            if now - record.last_seen > self._idle_timeout_seconds and not record.lock.locked()
        ]
        for session_id in expired:
            del self._records[session_id]
        if expired:
            logger.info("Expired %d idle quiz session(s)", len(expired))
