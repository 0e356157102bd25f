import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Request
from fastapi.responses import Response
from jose import ExpiredSignatureError, JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

log = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session"
SESSION_MAX_AGE_MS = 24 * 60 * 60 * 1000  # 24 hours
ALGORITHM = "HS256"


def sign_session(
    data: dict[str, Any],
    key: str,
    max_age_ms: int = SESSION_MAX_AGE_MS,
) -> str:
    """Sign session data into a cookie value.

    Args:
        data (dict): The session contents. Must be JSON serializable.
        key (str): The signing key.
        max_age_ms (int): Lifetime of the signed value in milliseconds.

    Returns:
        str: The signed token.

    Notes:
        1. The session is stored under the "data" claim.
        2. An "exp" claim bounds the token's lifetime to the cookie's Max-Age.
        3. No database or network access in this function.

    """
    expire = datetime.now(UTC) + timedelta(milliseconds=max_age_ms)
    return jwt.encode({"data": data, "exp": expire}, key, algorithm=ALGORITHM)


def verify_session(token: str, keys: Sequence[str]) -> dict[str, Any] | None:
    """Verify a cookie value against the accepted signing keys.

    Args:
        token (str): The cookie value presented by the client.
        keys (Sequence[str]): Accepted keys, newest first.

    Returns:
        dict | None: The session contents, or None when no key verifies the token,
            the token has expired, or it carries no session dict.

    Notes:
        1. Try each key in order; a signature mismatch moves on to the next key.
        2. An expired token is rejected outright, whichever key signed it.

    """
    for key in keys:
        try:
            payload = jwt.decode(token, key, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            _msg = "Session cookie expired"
            log.debug(_msg)
            return None
        except JWTError:
            continue
        data = payload.get("data")
        return data if isinstance(data, dict) else None

    _msg = "Session cookie not signed by any accepted key"
    log.debug(_msg)
    return None


class CookieSessionMiddleware(BaseHTTPMiddleware):
    """Client-side session stored in a signed cookie.

    The session dict is exposed as ``request.session``. When a handler changes
    it, the cookie is re-issued, signed with the first key; an emptied session
    removes the cookie. Cookies signed with any of the other keys are still
    accepted, which allows keys to be rotated without logging everybody out.
    """

    def __init__(
        self,
        app: ASGIApp,
        keys: Sequence[str],
        name: str = SESSION_COOKIE_NAME,
        max_age_ms: int = SESSION_MAX_AGE_MS,
    ) -> None:
        super().__init__(app)
        if not keys:
            raise ValueError("At least one session signing key is required")
        self.keys = list(keys)
        self.name = name
        self.max_age_ms = max_age_ms

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        initial: dict[str, Any] = {}
        token = request.cookies.get(self.name)
        if token:
            initial = verify_session(token, self.keys) or {}

        request.scope["session"] = dict(initial)
        response = await call_next(request)
        session = request.scope["session"]

        if session == initial:
            return response

        if session:
            response.set_cookie(
                key=self.name,
                value=sign_session(session, self.keys[0], self.max_age_ms),
                max_age=self.max_age_ms // 1000,
                path="/",
                httponly=True,
                samesite="lax",
                secure=False,  # TLS terminates at the proxy
            )
            _msg = "Session cookie issued"
            log.debug(_msg)
        else:
            response.delete_cookie(self.name, path="/")
            _msg = "Session cookie cleared"
            log.debug(_msg)
        return response
