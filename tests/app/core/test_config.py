import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from speech_server.app.core.config import (
    MysqlConfig,
    ServerConfiguration,
    SessionConfig,
    Settings,
    get_settings,
)


def test_settings_default_values():
    """Test that Settings loads default values correctly."""
    with patch.dict(os.environ, {}, clear=True):
        # Prevent loading .env file by passing _env_file=None
        settings = Settings(_env_file=None)

    config = settings.to_server_configuration()
    assert config.mysql.host == "localhost"
    assert config.mysql.port == 3306
    assert config.mysql.database == ""
    assert config.site_config.session.keys == []
    assert config.site_config.trust_proxy is True
    assert config.lbrynet_config.api_port == 5279
    assert config.logging.log_level == "info"


def test_settings_from_environment():
    """Test that Settings loads values from environment variables."""
    env_vars = {
        "MYSQL_HOST": "db",
        "MYSQL_PORT": "3307",
        "MYSQL_DATABASE": "speech",
        "MYSQL_USERNAME": "speech_user",
        "MYSQL_PASSWORD": "hunter2",
        "SESSION_KEY": "new-key",
        "PREVIOUS_SESSION_KEYS": "old-key, older-key,",
        "SITE_TITLE": "My Speech",
        "SITE_HOST": "https://speech.example",
        "TRUST_PROXY": "false",
        "LBRYNET_API_HOST": "lbrynet",
        "LBRYNET_API_PORT": "5280",
        "LOG_LEVEL": "verbose",
    }

    with patch.dict(os.environ, env_vars, clear=True):
        config = Settings(_env_file=None).to_server_configuration()

    assert config.mysql.host == "db"
    assert config.mysql.port == 3307
    assert config.mysql.username == "speech_user"
    assert config.site_config.session.keys == ["new-key", "old-key", "older-key"]
    assert config.site_config.details.title == "My Speech"
    assert config.site_config.trust_proxy is False
    assert config.lbrynet_config.endpoint == "http://lbrynet:5280"
    assert config.logging.log_level == "verbose"


def test_mysql_url_uses_pymysql_driver():
    mysql = MysqlConfig(
        host="db",
        port=3306,
        database="speech",
        username="speech_user",
        password="hunter2",
    )
    assert (
        mysql.url.render_as_string(hide_password=False)
        == "mysql+pymysql://speech_user:hunter2@db:3306/speech"
    )


def test_session_keys_skip_blank_entries():
    session = SessionConfig(session_key="", previous_session_keys=("old",))
    assert session.keys == ["old"]


def test_server_configuration_is_immutable(server_config):
    with pytest.raises(ValidationError):
        server_config.mysql = MysqlConfig(host="elsewhere")


def test_get_settings_is_cached():
    get_settings.cache_clear()
    with patch.dict(os.environ, {}, clear=True):
        first = get_settings()
        second = get_settings()
    assert first is second
    get_settings.cache_clear()
