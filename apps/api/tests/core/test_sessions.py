"""
Tests for the server-side session store and the single-session policy.
"""

import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Response

from admissions.core.config import settings
from admissions.core.sessions import (
    SessionStore,
    clear_session_cookie,
    is_session_superseded,
    set_session_cookie,
)

SESSIONS = "admissions.core.sessions"


@pytest.fixture
def no_redis():
    with patch(f"{SESSIONS}.get_redis", return_value=None):
        yield


class TestSessionPolicy:
    def test_matching_registry_keeps_session(self):
        assert is_session_superseded("abc", "abc") is False

    def test_newer_login_supersedes(self):
        assert is_session_superseded("newer", "abc") is True

    def test_no_registry_row_keeps_session(self):
        assert is_session_superseded(None, "abc") is False


class TestMemorySessionStore:
    @pytest.mark.asyncio
    async def test_create_and_get(self, no_redis):
        store = SessionStore(ttl_seconds=60)

        session_id = await store.create({"user_id": 7})

        assert await store.get(session_id) == {"user_id": 7}

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, no_redis):
        store = SessionStore(ttl_seconds=60)

        first = await store.create({"user_id": 7})
        second = await store.create({"user_id": 7})

        assert first != second

    @pytest.mark.asyncio
    async def test_destroy(self, no_redis):
        store = SessionStore(ttl_seconds=60)
        session_id = await store.create({"user_id": 7})

        await store.destroy(session_id)

        assert await store.get(session_id) is None

    @pytest.mark.asyncio
    async def test_expired_session_is_gone(self, no_redis):
        store = SessionStore(ttl_seconds=0)
        session_id = await store.create({"user_id": 7})

        assert await store.get(session_id) is None

    @pytest.mark.asyncio
    async def test_create_prunes_abandoned_sessions(self, no_redis):
        store = SessionStore(ttl_seconds=60)
        live = await store.create({"user_id": 7})
        store._memory["abandoned"] = (time.time() - 1, {"user_id": 8})

        newest = await store.create({"user_id": 9})

        assert set(store._memory) == {live, newest}

    @pytest.mark.asyncio
    async def test_unknown_id(self, no_redis):
        assert await SessionStore(ttl_seconds=60).get("missing") is None


class TestRedisSessionStore:
    @pytest.mark.asyncio
    async def test_data_written_with_ttl(self):
        client = AsyncMock()

        with patch(f"{SESSIONS}.get_redis", return_value=client):
            store = SessionStore(ttl_seconds=120)
            session_id = await store.create({"user_id": 7})

        client.set.assert_called_once_with(f"session:{session_id}", '{"user_id": 7}', ex=120)

    @pytest.mark.asyncio
    async def test_redis_failure_falls_back_to_memory(self):
        client = AsyncMock()
        client.set.side_effect = ConnectionError("redis down")
        client.get.side_effect = ConnectionError("redis down")

        with patch(f"{SESSIONS}.get_redis", return_value=client):
            store = SessionStore(ttl_seconds=120)
            session_id = await store.create({"user_id": 7})
            data = await store.get(session_id)

        assert data == {"user_id": 7}


class TestSessionCookie:
    def test_cookie_is_http_only(self):
        response = Response()

        set_session_cookie(response, "abc")

        header = response.headers["set-cookie"]
        assert header.startswith(f"{settings.session_cookie_name}=abc")
        assert "HttpOnly" in header
        assert "samesite=lax" in header.lower()

    def test_clear_cookie_expires_it(self):
        response = Response()

        clear_session_cookie(response)

        assert 'Max-Age=0' in response.headers["set-cookie"]
