import logging
from pathlib import Path

from fastapi import FastAPI

from speech_server.app.core.auth import build_authenticator
from speech_server.app.core.config import ServerConfiguration
from speech_server.app.database.database import Database
from speech_server.app.middleware import PUBLIC_DIR, build_middleware_chain
from speech_server.app.routing import ROUTE_COLLECTIONS, RouteCollection, mount_routes
from speech_server.app.views import DEFAULT_LAYOUT, TEMPLATES_DIR, register_view_engine

log = logging.getLogger(__name__)


def create_app(
    config: ServerConfiguration,
    database: Database,
    collections: tuple[RouteCollection, ...] = ROUTE_COLLECTIONS,
    public_dir: str | Path = PUBLIC_DIR,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config (ServerConfiguration): The configuration the server was started with.
        database (Database): The database the route handlers use.
        collections (tuple[RouteCollection, ...]): Route collections, fallback last.
        public_dir (str | Path): Directory served as static assets.

    Returns:
        FastAPI: The configured FastAPI application instance.

    Notes:
        1. Register the signup and login strategies with the session serializers.
        2. Build the middleware chain: security headers, static assets, body
           parsing, request logging, cookie session, auth runtime, session bridge.
        3. Store the configuration, database and authenticator on ``app.state``.
        4. Register the Jinja2 view engine with the "embed" default layout.
        5. Mount the route collections: auth, api, page, serve, fallback.
        6. No database or network access; the schema is synced at startup.

    """
    _msg = "Creating FastAPI application"
    log.debug(_msg)

    authenticator = build_authenticator()

    app = FastAPI(
        title=config.site_config.details.title,
        middleware=build_middleware_chain(config, authenticator, public_dir=public_dir),
    )
    app.state.config = config
    app.state.database = database
    app.state.authenticator = authenticator

    register_view_engine(
        app,
        directory=TEMPLATES_DIR,
        default_layout=DEFAULT_LAYOUT,
        site=config.site_config.details,
    )
    mount_routes(app, collections)

    _msg = "FastAPI application created successfully"
    log.debug(_msg)
    return app
