import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from speech_server.app.core.config import MysqlConfig
from speech_server.app.models import Base

log = logging.getLogger(__name__)


class Database:
    """Engine, session factory and schema sync for one database.

    The engine is created on first use, so constructing a Database (and the
    application that holds it) never opens a connection.

    Attributes:
        url (URL | str): The SQLAlchemy connection URL.

    """

    def __init__(self, url: URL | str, **engine_options):
        self.url = url
        self._engine_options = engine_options
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @classmethod
    def from_config(cls, mysql: MysqlConfig) -> "Database":
        """Create a Database for the configured MySQL server."""
        return cls(mysql.url, pool_pre_ping=True, pool_recycle=3600)

    @classmethod
    def in_memory(cls) -> "Database":
        """Create a single-connection in-memory SQLite database."""
        return cls(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    @property
    def engine(self) -> Engine:
        """Get or create the database engine.

        Returns:
            Engine: The SQLAlchemy engine instance used to connect to the database.

        Notes:
            1. Create the engine only when first accessed to avoid premature connection.
            2. Reuse the same engine instance on subsequent calls.

        """
        if self._engine is None:
            _msg = "Creating database engine"
            log.debug(_msg)
            self._engine = create_engine(self.url, **self._engine_options)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            _msg = "Creating session factory"
            log.debug(_msg)
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
            )
        return self._session_factory

    def session(self) -> Session:
        return self.session_factory()

    def sync(self) -> None:
        """Create any missing tables so the schema matches the models.

        Returns:
            None

        Raises:
            SQLAlchemyError: If the database cannot be reached or the DDL fails.

        Notes:
            1. Existing tables are left untouched; only missing ones are created.
            2. Network access: connects to the database and issues DDL.

        """
        _msg = "Syncing database schema"
        log.info(_msg)
        Base.metadata.create_all(bind=self.engine)
        _msg = "Database schema synced"
        log.info(_msg)

    def dispose(self) -> None:
        """Close all pooled connections."""
        if self._engine is not None:
            _msg = "Disposing database engine"
            log.debug(_msg)
            self._engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency to provide database sessions to route handlers.

    Args:
        request (Request): The incoming request; the Database lives on its application.

    Returns:
        Generator[Session, None, None]: A generator that yields a database session.

    Notes:
        1. Create a new session from the application's Database.
        2. Yield the session to the route handler.
        3. Ensure the session is closed after use to release resources.

    """
    _msg = "Creating database session"
    log.debug(_msg)

    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        _msg = "Closing database session"
        log.debug(_msg)
        db.close()
