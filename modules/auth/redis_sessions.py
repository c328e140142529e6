"""
Auth Module - Redis Session Store
==================================
Session backend for multi-instance deployments. Each session is one key
(``session:<token>``) holding ``{"account_id", "created_at"}`` and written
with ``SET NX EX`` so Redis expiry does most of the sweeping.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from redis.exceptions import RedisError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from common.helpers import now_utc, mask_token
from common.security import new_session_token
from modules.auth.sessions import Session, SessionStore, Clock

logger = logging.getLogger("storefront.sessions.redis")


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(RedisError),
    )


class RedisSessionStore(SessionStore):

    def __init__(self, client, ttl: timedelta, clock: Clock = now_utc, prefix: str = "session:"):
        super().__init__(ttl, clock)
        self.redis = client
        self.prefix = prefix

    def _key(self, token: str) -> str:
        return f"{self.prefix}{token}"

    def _decode(self, token: str, raw) -> Optional[Session]:
        try:
            data = json.loads(raw)
            return Session(
                token=token,
                account_id=uuid.UUID(data["account_id"]),
                created_at=datetime.fromisoformat(data["created_at"]),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping unreadable session entry %s", mask_token(token))
            return None

    @redis_retry()
    def create(self, account_id: uuid.UUID) -> str:
        payload = json.dumps({
            "account_id": str(account_id),
            "created_at": self.clock().isoformat(),
        })
        ttl_seconds = int(self.ttl.total_seconds())
        while True:
            token = new_session_token()
            # NX: never overwrite a live session that happens to share the token
            if self.redis.set(name=self._key(token), value=payload, nx=True, ex=ttl_seconds):
                logger.info("Session %s created for account %s", mask_token(token), account_id)
                return token

    @redis_retry()
    def validate(self, token: str) -> Optional[Session]:
        if not token:
            return None
        raw = self.redis.get(self._key(token))
        if raw is None:
            return None
        session = self._decode(token, raw)
        if session is None or session.is_expired(self.clock(), self.ttl):
            self.redis.delete(self._key(token))
            return None
        return session

    @redis_retry()
    def destroy(self, token: str) -> None:
        self.redis.delete(self._key(token))

    @redis_retry()
    def sweep(self) -> int:
        now = self.clock()
        removed = 0
        for key in self.redis.scan_iter(match=f"{self.prefix}*"):
            raw = self.redis.get(key)
            if raw is None:
                continue
            token = key[len(self.prefix):]
            session = self._decode(token, raw)
            if session is None or session.is_expired(now, self.ttl):
                removed += self.redis.delete(key)
        if removed:
            logger.info("Swept %d expired sessions", removed)
        return removed
