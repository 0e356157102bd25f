import asyncio
import logging
import socket
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import uvicorn
from fastapi import FastAPI

from speech_server.app.core.config import ServerConfiguration
from speech_server.app.core.config_check import ConfigurationError, check_config_vars
from speech_server.app.database.database import Database
from speech_server.app.main import create_app

log = logging.getLogger(__name__)

HOST = "0.0.0.0"
PORT = 3000


class StartupState(str, Enum):
    UNSTARTED = "unstarted"
    SCHEMA_SYNCING = "schema_syncing"
    LISTENING = "listening"
    FAILED = "failed"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one startup stage."""

    stage: str
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Listener(Protocol):
    def bind(self) -> None: ...

    async def serve(self) -> None: ...


class UvicornListener:
    """Bind the listening socket first, then run uvicorn on it.

    Splitting the two lets a bind failure be reported as an ordinary
    exception instead of uvicorn exiting the process.
    """

    def __init__(
        self,
        app: FastAPI,
        host: str = HOST,
        port: int = PORT,
        trust_proxy: bool = True,
    ):
        self.host = host
        self.port = port
        self.config = uvicorn.Config(
            app,
            host=host,
            port=port,
            proxy_headers=trust_proxy,
            forwarded_allow_ips="*" if trust_proxy else None,
            log_config=None,
        )
        self.server = uvicorn.Server(self.config)
        self.socket: socket.socket | None = None

    def bind(self) -> None:
        """Open the TCP socket.

        Raises:
            OSError: If the address is unavailable, e.g. the port is in use.

        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError:
            sock.close()
            raise
        sock.set_inheritable(True)
        self.socket = sock

    async def serve(self) -> None:
        if self.socket is None:
            raise RuntimeError("Listener must be bound before serving")
        await self.server.serve(sockets=[self.socket])


def uvicorn_listener(app: FastAPI, config: ServerConfiguration) -> Listener:
    return UvicornListener(app, trust_proxy=config.site_config.trust_proxy)


class SpeechServer:
    """Compose the application and bring it to a listening state.

    Startup runs as ``UNSTARTED -> SCHEMA_SYNCING -> LISTENING``, or ends in
    ``FAILED``. The configuration is checked before anything else, the schema
    is synced next, and the socket is only bound once the sync has succeeded.
    A failed stage is logged once and not retried.

    Attributes:
        config (ServerConfiguration): The injected configuration.
        database (Database): The database synced at startup and used by routes.
        app (FastAPI): The composed application.
        state (StartupState): Where startup currently stands.
        listener (Listener | None): The bound listener, once there is one.

    """

    port = PORT

    def __init__(
        self,
        config: ServerConfiguration,
        database: Database | None = None,
        listener_factory: Callable[[FastAPI, ServerConfiguration], Listener] = uvicorn_listener,
    ):
        self.config = config
        self.database = database or Database.from_config(config.mysql)
        self.listener_factory = listener_factory
        self.app = create_app(config, self.database)
        self.state = StartupState.UNSTARTED
        self.listener: Listener | None = None

    def check(self) -> None:
        """Fail fast on missing configuration, before any I/O.

        Raises:
            ConfigurationError: If required configuration variables are missing.

        """
        check_config_vars(self.config)

    async def sync_schema(self) -> StageResult:
        """Bring the database schema in line with the models.

        Returns:
            StageResult: Success, or the error the sync raised.

        Notes:
            1. Enter SCHEMA_SYNCING.
            2. Run the blocking DDL in a worker thread.
            3. Network access: connects to the database.

        """
        self.state = StartupState.SCHEMA_SYNCING
        try:
            await asyncio.to_thread(self.database.sync)
        except Exception as e:
            return StageResult("schema sync", e)
        return StageResult("schema sync")

    async def listen(self) -> StageResult:
        """Bind the socket and serve until shutdown.

        Returns:
            StageResult: The bind error, or success once serving has stopped.

        Notes:
            1. Build the listener and bind the socket; a bind error ends the stage.
            2. Enter LISTENING and log the proxy setting and port.
            3. Serve until shutdown, then dispose of the database engine.

        """
        listener = self.listener_factory(self.app, self.config)
        try:
            listener.bind()
        except OSError as e:
            return StageResult("listen", e)

        self.listener = listener
        self.state = StartupState.LISTENING
        _msg = f"Trusting proxy? {self.config.site_config.trust_proxy}"
        log.info(_msg)
        _msg = f"Server is listening on PORT {self.port}"
        log.info(_msg)

        try:
            await listener.serve()
        finally:
            self.database.dispose()
            _msg = "Server stopped"
            log.info(_msg)
        return StageResult("listen")

    async def startup(self) -> StartupState:
        """Run the startup stages strictly in sequence.

        Returns:
            StartupState: LISTENING once serving has ended normally, or FAILED.

        Raises:
            RuntimeError: If this server has already been started.

        Notes:
            1. Sync the schema; the listener is never built if the sync fails.
            2. Bind and serve.
            3. A failed stage sets FAILED, is logged once with its traceback, and
               releases the database engine.

        """
        if self.state is not StartupState.UNSTARTED:
            raise RuntimeError(f"Server already started (state: {self.state.value})")

        for stage in (self.sync_schema, self.listen):
            result = await stage()
            if not result.ok:
                self.state = StartupState.FAILED
                _msg = f"Startup Error: {result.stage} failed: {result.error}"
                log.error(_msg, exc_info=result.error)
                self.database.dispose()
                return self.state
        return self.state

    def start(self) -> StartupState:
        """Process entry point: check the configuration, then run startup.

        Returns:
            StartupState: The state startup ended in.

        Notes:
            1. A configuration error is logged and ends startup as FAILED without
               syncing the schema or binding a socket.
            2. Otherwise the startup coroutine runs on a fresh event loop.

        """
        try:
            self.check()
        except ConfigurationError as e:
            self.state = StartupState.FAILED
            _msg = f"Startup Error: {e}"
            log.error(_msg)
            return self.state

        return asyncio.run(self.startup())
