"""Database configuration and session management for the application.

Classes:
    Database: Owns the SQLAlchemy engine and session factory for one database,
        and syncs the schema with the declared models.

Functions:
    get_db: FastAPI dependency yielding a session from the application's Database.

Notes:
    1. The engine is created lazily, on first use.
    2. Database access: sessions connect to the configured database.

"""

from .database import Database, get_db

__all__ = ["Database", "get_db"]
