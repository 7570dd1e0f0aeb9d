"""
Server-Side Sessions

Login sessions are identified by an opaque id carried in an HTTP-only
cookie. Session data lives in Redis under `session:<id>` with a TTL, or in
process memory when Redis is not connected.

Which session is the *current* one for a user is recorded in the
`user_sessions` table (see modules/auth); this module only stores the data.
"""

import json
import logging
import time
from typing import Any

from fastapi import Response

from admissions.core.config import settings
from admissions.core.redis import get_redis
from admissions.core.security import generate_token

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionStore:
    """
    Session data store backed by Redis with an in-memory fallback.

    Memory sessions are not shared across server instances and are lost on
    restart.
    """

    def __init__(self, ttl_seconds: int):
        self.ttl_seconds = ttl_seconds
        # {session_id: (expires_at, data)}
        self._memory: dict[str, tuple[float, dict[str, Any]]] = {}

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def _prune_expired(self, now: float) -> int:
        """Drop memory sessions whose TTL has passed. Returns the number removed."""
        expired = [sid for sid, (expires_at, _) in self._memory.items() if expires_at <= now]
        for sid in expired:
            del self._memory[sid]
        return len(expired)

    async def create(self, data: dict[str, Any]) -> str:
        """Store `data` under a freshly generated session id and return the id."""
        session_id = generate_token()
        client = get_redis()

        if client is not None:
            try:
                await client.set(self._key(session_id), json.dumps(data), ex=self.ttl_seconds)
                return session_id
            except Exception as e:
                logger.warning(f"Redis session write failed, using memory: {e}")

        now = time.time()
        self._prune_expired(now)
        self._memory[session_id] = (now + self.ttl_seconds, data)
        return session_id

    async def get(self, session_id: str) -> dict[str, Any] | None:
        client = get_redis()

        if client is not None:
            try:
                raw = await client.get(self._key(session_id))
                if raw is not None:
                    return json.loads(raw)
            except Exception as e:
                logger.warning(f"Redis session read failed, using memory: {e}")

        entry = self._memory.get(session_id)
        if entry is None:
            return None

        expires_at, data = entry
        if expires_at <= time.time():
            self._memory.pop(session_id, None)
            return None
        return data

    async def destroy(self, session_id: str) -> None:
        """Remove a session. Unknown ids are ignored."""
        self._memory.pop(session_id, None)

        client = get_redis()
        if client is not None:
            try:
                await client.delete(self._key(session_id))
            except Exception as e:
                logger.warning(f"Redis session delete failed for {session_id[:8]}...: {e}")


session_store = SessionStore(ttl_seconds=settings.session_ttl_seconds)


def is_session_superseded(registered_session_id: str | None, current_session_id: str) -> bool:
    """
    A session is superseded when the registry names a different session for
    the same user. A user with no registry row keeps the current session.
    """
    return registered_session_id is not None and registered_session_id != current_session_id


def set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
