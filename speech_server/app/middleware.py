import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.authentication import AuthenticationBackend
from starlette.exceptions import HTTPException
from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from speech_server.app.core.auth import (
    AuthRuntimeMiddleware,
    Authenticator,
    SessionAuthBackend,
)
from speech_server.app.core.config import ServerConfiguration
from speech_server.app.core.session import CookieSessionMiddleware

log = logging.getLogger(__name__)

PUBLIC_DIR = Path(__file__).resolve().parent / "static"
JSON_TYPE = "application/json"
FORM_TYPE = "application/x-www-form-urlencoded"

# Same defaults helmet applies
SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Download-Options": "noopen",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
}


async def security_headers_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Add protective HTTP headers to every response.

    Args:
        request (Request): The incoming request object.
        call_next: The next middleware or route handler.

    Returns:
        Response: The downstream response with the security headers set.

    Notes:
        1. Headers already set by a handler are left as they are.
        2. Guards against clickjacking, MIME sniffing and protocol downgrades.

    """
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


class PublicAssetsMiddleware:
    """Serve files from the public directory at the site root.

    Paths that do not name a file fall through to the rest of the application.
    The directory is only checked when the first request arrives.
    """

    def __init__(self, app: ASGIApp, directory: str | Path = PUBLIC_DIR) -> None:
        self.app = app
        self.static = StaticFiles(directory=str(directory), check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        if not self.static.config_checked:
            await self.static.check_config()
            self.static.config_checked = True

        try:
            response = await self.static.get_response(
                self.static.get_path(scope),
                scope,
            )
        except HTTPException as e:
            if e.status_code != 404:
                raise
            await self.app(scope, receive, send)
            return

        await response(scope, receive, send)


class BodyParsingMiddleware:
    """Parse JSON and URL-encoded request bodies into ``request.state.body``.

    The raw body is replayed to the downstream application, so handlers can
    still read it themselves. Other content types leave ``body`` empty.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        content_type = (
            request.headers.get("content-type", "").split(";")[0].strip().lower()
        )
        state = scope.setdefault("state", {})
        state["body"] = {}

        if content_type not in (JSON_TYPE, FORM_TYPE):
            await self.app(scope, receive, send)
            return

        raw = await request.body()
        if raw:
            try:
                state["body"] = await parse_body(request, content_type)
            except ValueError as e:
                _msg = f"Malformed request body on {scope['path']}: {e}"
                log.info(_msg)
                response = JSONResponse(
                    {"success": False, "message": "Malformed request body"},
                    status_code=400,
                )
                await response(scope, receive, send)
                return

        sent = False

        async def replay() -> Message:
            nonlocal sent
            if not sent:
                sent = True
                return {"type": "http.request", "body": raw, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)


async def parse_body(request: Request, content_type: str) -> dict:
    """Decode a request body that has already been read.

    Args:
        request (Request): The request; its body is cached by ``request.body()``.
        content_type (str): The lowercased media type, JSON or URL-encoded form.

    Returns:
        dict: The parsed fields. A JSON body that is not an object is returned
            under the "data" key.

    Raises:
        ValueError: If a JSON body cannot be decoded.

    Notes:
        1. Form bodies are parsed leniently: blank values, bare keys and
           trailing separators are accepted.

    """
    if content_type == JSON_TYPE:
        parsed = await request.json()
        return parsed if isinstance(parsed, dict) else {"data": parsed}

    form_data = await request.form()
    return {key: value for key, value in form_data.items()}


def client_ip(request: Request, trust_proxy: bool) -> str:
    """The client address, taken from X-Forwarded-For when the proxy is trusted."""
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log the path and client address of every request before it is handled."""

    def __init__(self, app: ASGIApp, trust_proxy: bool = False) -> None:
        super().__init__(app)
        self.trust_proxy = trust_proxy

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        original_url = request.url.path
        if request.url.query:
            original_url = f"{original_url}?{request.url.query}"
        _msg = f"Request on {original_url} from {client_ip(request, self.trust_proxy)}"
        log.debug(_msg)
        return await call_next(request)


def build_middleware_chain(
    config: ServerConfiguration,
    authenticator: Authenticator,
    public_dir: str | Path = PUBLIC_DIR,
) -> list[Middleware]:
    """Assemble the ordered middleware chain for the application.

    Args:
        config (ServerConfiguration): Supplies the session keys and proxy trust.
        authenticator (Authenticator): The registered strategies and session
            serialization pair.
        public_dir (str | Path): Directory served as static assets.

    Returns:
        list[Middleware]: Middleware in request order, outermost first, ready to
            pass to ``FastAPI(middleware=...)``.

    Notes:
        1. Security headers.
        2. Static assets from the public directory.
        3. JSON and URL-encoded body parsing.
        4. Request logging.
        5. Signed cookie session, 24 hour max age.
        6. Authentication runtime.
        7. Session to ``request.user`` bridge.
        8. Nothing here touches the disk or network; problems surface on the
           first request.

    """
    _msg = "Assembling middleware chain"
    log.debug(_msg)

    backend: AuthenticationBackend = SessionAuthBackend(authenticator)
    return [
        Middleware(BaseHTTPMiddleware, dispatch=security_headers_middleware),
        Middleware(PublicAssetsMiddleware, directory=public_dir),
        Middleware(BodyParsingMiddleware),
        Middleware(
            RequestLoggingMiddleware,
            trust_proxy=config.site_config.trust_proxy,
        ),
        Middleware(
            CookieSessionMiddleware,
            keys=config.site_config.session.keys,
        ),
        Middleware(AuthRuntimeMiddleware, authenticator=authenticator),
        Middleware(AuthenticationMiddleware, backend=backend),
    ]
