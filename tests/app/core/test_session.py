from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from jose import jwt
from starlette.middleware import Middleware

from speech_server.app.core.session import (
    ALGORITHM,
    SESSION_COOKIE_NAME,
    SESSION_MAX_AGE_MS,
    CookieSessionMiddleware,
    sign_session,
    verify_session,
)

NEW_KEY = "new-key"
OLD_KEY = "old-key"


def make_session_app(keys: list[str]) -> FastAPI:
    """A minimal app behind the cookie session middleware."""
    app = FastAPI(middleware=[Middleware(CookieSessionMiddleware, keys=keys)])

    @app.get("/set")
    async def set_value(request: Request):
        request.session["user"] = "alice"
        return {"ok": True}

    @app.get("/get")
    async def get_value(request: Request):
        return dict(request.session)

    @app.get("/clear")
    async def clear(request: Request):
        request.session.clear()
        return {"ok": True}

    return app


def test_max_age_is_24_hours_in_milliseconds():
    assert SESSION_MAX_AGE_MS == 86_400_000


def test_verify_session_accepts_any_listed_key():
    token = sign_session({"user": "alice"}, OLD_KEY)
    assert verify_session(token, [NEW_KEY, OLD_KEY]) == {"user": "alice"}


def test_verify_session_rejects_removed_key():
    token = sign_session({"user": "alice"}, OLD_KEY)
    assert verify_session(token, [NEW_KEY]) is None


def test_verify_session_rejects_expired_token():
    token = sign_session({"user": "alice"}, NEW_KEY, max_age_ms=-1000)
    assert verify_session(token, [NEW_KEY]) is None


def test_verify_session_rejects_non_dict_payload():
    token = jwt.encode({"data": "alice"}, NEW_KEY, algorithm=ALGORITHM)
    assert verify_session(token, [NEW_KEY]) is None


def test_verify_session_rejects_garbage():
    assert verify_session("not-a-token", [NEW_KEY]) is None


def test_middleware_requires_a_key():
    with pytest.raises(ValueError):
        CookieSessionMiddleware(MagicMock(), keys=[])


def test_cookie_attributes_and_signature():
    client = TestClient(make_session_app([NEW_KEY, OLD_KEY]))
    response = client.get("/set")

    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "Max-Age=86400" in set_cookie
    assert "HttpOnly" in set_cookie
    assert "Path=/" in set_cookie
    assert "SameSite=lax" in set_cookie

    # New cookies are signed with the first key only
    token = response.cookies[SESSION_COOKIE_NAME]
    assert verify_session(token, [NEW_KEY]) == {"user": "alice"}
    assert verify_session(token, [OLD_KEY]) is None


def test_session_persists_across_requests():
    client = TestClient(make_session_app([NEW_KEY]))
    client.get("/set")
    response = client.get("/get")
    assert response.json() == {"user": "alice"}


def test_unchanged_session_does_not_reissue_cookie():
    client = TestClient(make_session_app([NEW_KEY]))
    client.get("/set")
    response = client.get("/get")
    assert "set-cookie" not in response.headers


def test_rotated_key_still_accepted_while_listed():
    client = TestClient(make_session_app([NEW_KEY, OLD_KEY]))
    client.cookies.set(SESSION_COOKIE_NAME, sign_session({"user": "alice"}, OLD_KEY))
    response = client.get("/get")
    assert response.json() == {"user": "alice"}


def test_rotated_key_rejected_once_removed():
    client = TestClient(make_session_app([NEW_KEY]))
    client.cookies.set(SESSION_COOKIE_NAME, sign_session({"user": "alice"}, OLD_KEY))
    response = client.get("/get")
    assert response.json() == {}


def test_clearing_session_deletes_cookie():
    client = TestClient(make_session_app([NEW_KEY]))
    client.get("/set")
    response = client.get("/clear")
    set_cookie = response.headers["set-cookie"]
    assert set_cookie.startswith(f"{SESSION_COOKIE_NAME}=")
    assert "Max-Age=0" in set_cookie
    assert client.get("/get").json() == {}
