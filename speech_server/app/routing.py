import logging
from collections.abc import Sequence
from typing import Protocol

from fastapi import FastAPI

from speech_server.app.api.routes import auth, claims, serve
from speech_server.app.web import fallback, pages

log = logging.getLogger(__name__)


class RouteCollection(Protocol):
    __name__: str

    def mount(self, app: FastAPI) -> None: ...


# The fallback collection matches everything, so it must stay last.
ROUTE_COLLECTIONS: tuple[RouteCollection, ...] = (auth, claims, pages, serve, fallback)


def mount_routes(
    app: FastAPI,
    collections: Sequence[RouteCollection] = ROUTE_COLLECTIONS,
) -> None:
    """Mount route collections on the application in order.

    Args:
        app (FastAPI): The application being composed.
        collections (Sequence[RouteCollection]): Collections to mount, in order.

    Returns:
        None

    Raises:
        RuntimeError: If the authentication strategies have not been registered yet.
        ValueError: If the fallback collection is present but not last.

    Notes:
        1. Routes rely on the strategies, so they must already be on ``app.state``.
        2. Each collection's ``mount(app)`` is called in the given order.

    """
    if getattr(app.state, "authenticator", None) is None:
        raise RuntimeError(
            "Authentication strategies must be registered before routes are mounted",
        )
    if fallback in collections and collections[-1] is not fallback:
        raise ValueError("The fallback route collection must be mounted last")

    for collection in collections:
        _msg = f"Mounting routes from {collection.__name__}"
        log.debug(_msg)
        collection.mount(app)
