"""
Single Session Middleware

Resolves the session cookie to a user for every request and rejects
sessions superseded by a newer login.

Sets on `request.state`:
- session_id: the cookie's session id when it maps to live session data
- user_id: the session's user, or None when unauthenticated
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from admissions.core.config import settings
from admissions.core.database import async_session_maker
from admissions.core.sessions import clear_session_cookie, is_session_superseded, session_store
from admissions.modules.auth import repository

logger = logging.getLogger(__name__)


class SingleSessionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.user_id = None
        request.state.session_id = None
        clear_cookie = False

        session_id = request.cookies.get(settings.session_cookie_name)
        if session_id:
            data = await session_store.get(session_id)
            user_id = data.get("user_id") if data else None

            if user_id is None:
                # Expired or destroyed session
                clear_cookie = True
            else:
                async with async_session_maker() as db:
                    registered_session_id = await repository.get_registered_session_id(db, user_id)

                if is_session_superseded(registered_session_id, session_id):
                    logger.info(f"Rejecting superseded session for user {user_id}")
                    await session_store.destroy(session_id)
                    clear_cookie = True
                else:
                    request.state.user_id = user_id
                    request.state.session_id = session_id

        response = await call_next(request)

        if clear_cookie:
            clear_session_cookie(response)
        return response
