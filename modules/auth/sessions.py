"""
Auth Module - Session Store
============================
Server-side sessions keyed by an opaque token held in the client's cookie.

A session is valid while it is present in the store and
``now - created_at <= ttl``. ``validate()`` enforces this on every request;
``sweep()`` only bounds memory between validations and is run periodically
by the scheduler in main.py.

The store is built once per process (see ``build_session_store``) and handed
to the auth dependencies through ``app.state``.
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from common.helpers import now_utc, mask_token
from common.security import new_session_token
from config import settings

logger = logging.getLogger("storefront.sessions")

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class Session:
    token: str
    account_id: uuid.UUID
    created_at: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.created_at

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        return self.age(now) > ttl


class SessionStore(ABC):
    """Capability set shared by every session backend."""

    def __init__(self, ttl: timedelta, clock: Clock = now_utc):
        self.ttl = ttl
        self.clock = clock

    @abstractmethod
    def create(self, account_id: uuid.UUID) -> str:
        """Record a new session for the account and return its token."""

    @abstractmethod
    def validate(self, token: str) -> Optional[Session]:
        """Return the live session, or None (removing any stale entry)."""

    @abstractmethod
    def destroy(self, token: str) -> None:
        """Remove the session. Unknown tokens are ignored."""

    @abstractmethod
    def sweep(self) -> int:
        """Evict every expired session. Returns how many were removed."""


class MemorySessionStore(SessionStore):
    """
    In-process dict guarded by a lock.

    Suitable for a single-process deployment only: sessions are lost on
    restart and are not shared between workers.
    """

    def __init__(self, ttl: timedelta, clock: Clock = now_utc):
        super().__init__(ttl, clock)
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, account_id: uuid.UUID) -> str:
        with self._lock:
            token = new_session_token()
            while token in self._sessions:
                token = new_session_token()
            self._sessions[token] = Session(token=token, account_id=account_id, created_at=self.clock())
        logger.info("Session %s created for account %s", mask_token(token), account_id)
        return token

    def validate(self, token: str) -> Optional[Session]:
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.is_expired(self.clock(), self.ttl):
                del self._sessions[token]
                logger.info("Session %s expired on validation", mask_token(token))
                return None
            return session

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def sweep(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.is_expired(now, self.ttl)]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info("Swept %d expired sessions", len(expired))
        return len(expired)


def build_session_store(backend: str = None) -> SessionStore:
    """Pick the session backend from settings (SESSION_BACKEND)."""
    backend = (backend or settings.SESSION_BACKEND).lower()
    ttl = timedelta(hours=settings.SESSION_TTL_HOURS)

    if backend == "memory":
        return MemorySessionStore(ttl)

    if backend == "redis":
        import redis
        from modules.auth.redis_sessions import RedisSessionStore

        client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        return RedisSessionStore(client, ttl)

    raise ValueError(f"Unknown SESSION_BACKEND: {backend!r}")
