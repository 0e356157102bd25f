import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from speech_server.app.core.config import (
    LbrynetConfig,
    MysqlConfig,
    ServerConfiguration,
    SessionConfig,
    SiteConfig,
    SiteDetails,
)
from speech_server.app.database.database import Database
from speech_server.app.main import create_app

TEST_SESSION_KEY = "test-session-key"


@pytest.fixture
def server_config() -> ServerConfiguration:
    """Fixture providing a complete configuration."""
    return ServerConfiguration(
        mysql=MysqlConfig(
            host="localhost",
            database="speech_test",
            username="speech",
            password="secret",
        ),
        site_config=SiteConfig(
            details=SiteDetails(title="Test Speech", host="http://testserver"),
            session=SessionConfig(session_key=TEST_SESSION_KEY),
        ),
        lbrynet_config=LbrynetConfig(api_host="localhost"),
    )


@pytest.fixture
def database():
    """Fixture providing a synced in-memory database in place of MySQL."""
    db = Database.in_memory()
    db.sync()
    yield db
    db.dispose()


@pytest.fixture
def app(server_config, database) -> FastAPI:
    """Fixture to create a new app for each test."""
    return create_app(server_config, database)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Fixture to create a test client for each test."""
    with TestClient(app) as c:
        yield c
