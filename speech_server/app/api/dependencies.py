import logging

from fastapi import Request

from speech_server.app.core.auth import AuthenticatedUser, Authenticator
from speech_server.app.core.config import ServerConfiguration
from speech_server.app.views import ViewEngine

log = logging.getLogger(__name__)


def get_authenticator(request: Request) -> Authenticator:
    """The Authenticator placed on the request by the authentication runtime."""
    return request.state.authenticator


def get_views(request: Request) -> ViewEngine:
    return request.app.state.views


def get_config(request: Request) -> ServerConfiguration:
    return request.app.state.config


def get_optional_user(request: Request) -> AuthenticatedUser | None:
    """Retrieve the logged-in user, if any.

    Args:
        request (Request): The incoming request.

    Returns:
        AuthenticatedUser | None: The principal restored from the session cookie,
            or None for an anonymous request.

    Notes:
        1. The session bridge middleware has already set ``request.user``.
        2. No database access; the principal is carried in the cookie.

    """
    user = request.user
    if not user.is_authenticated:
        return None
    return user
