from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI

from speech_server.app.api.routes import auth, claims, serve
from speech_server.app.core.auth import build_authenticator
from speech_server.app.routing import ROUTE_COLLECTIONS, mount_routes
from speech_server.app.web import fallback, pages


def recording_collection(name: str, calls: list[str]):
    return SimpleNamespace(__name__=name, mount=lambda app: calls.append(name))


def test_collections_are_mounted_in_fixed_order():
    assert ROUTE_COLLECTIONS == (auth, claims, pages, serve, fallback)


def test_mount_routes_calls_each_collection_in_order():
    app = FastAPI()
    app.state.authenticator = build_authenticator()
    calls: list[str] = []
    collections = [recording_collection(n, calls) for n in ("a", "b", "c")]

    mount_routes(app, collections)

    assert calls == ["a", "b", "c"]


def test_fallback_must_be_last():
    app = FastAPI()
    app.state.authenticator = build_authenticator()
    with pytest.raises(ValueError):
        mount_routes(app, (auth, fallback, pages))


def test_strategies_must_be_registered_before_mounting():
    app = FastAPI()
    collection = MagicMock()
    with pytest.raises(RuntimeError):
        mount_routes(app, (collection,))
    collection.mount.assert_not_called()


def test_every_collection_answers_ahead_of_fallback(client):
    # auth
    assert client.get("/user").json() == {"success": False, "message": "user is not logged in"}
    # api
    assert client.get("/api/claim/availability/x").json()["data"]["available"] is True
    # page
    assert "About Test Speech" in client.get("/about").text
    # serve renders its own not-found page, without the fallback's path line
    served = client.get("/media/abc123/clip")
    assert served.status_code == 404
    assert "Nothing lives at" not in served.text
    # fallback
    assert "Nothing lives at" in client.get("/no/such/page").text


def test_undefined_path_gets_fallback_page(client):
    response = client.get("/no/such/page")
    assert response.status_code == 404
    assert "text/html" in response.headers["content-type"]
    assert "404: Not Found" in response.text
    assert "/no/such/page" in response.text


def test_undefined_post_gets_fallback_page(client):
    response = client.post("/no/such/endpoint", json={})
    assert response.status_code == 404
    assert "404: Not Found" in response.text


def test_defined_routes_are_not_shadowed_by_fallback(client):
    assert client.get("/health").json() == {"status": "ok"}
    response = client.get("/")
    assert response.status_code == 200
    assert "404: Not Found" not in response.text
