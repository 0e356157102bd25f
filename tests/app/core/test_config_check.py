import logging

import pytest

from speech_server.app.core.config import ServerConfiguration
from speech_server.app.core.config_check import ConfigurationError, check_config_vars


def test_complete_configuration_passes(server_config):
    check_config_vars(server_config)


def test_missing_variables_are_all_reported(caplog):
    """An empty configuration names every required variable, not just the first."""
    with caplog.at_level(logging.DEBUG, logger="speech_server.app.core.config_check"):
        with pytest.raises(ConfigurationError) as excinfo:
            check_config_vars(ServerConfiguration())

    assert excinfo.value.missing == [
        "MYSQL_HOST",
        "MYSQL_DATABASE",
        "MYSQL_USERNAME",
        "SESSION_KEY",
        "LBRYNET_API_HOST",
    ]
    assert "Missing required configuration variables" in str(excinfo.value)
    assert "SESSION_KEY" in caplog.text
    # Reporting the failure is left to the caller
    assert [r for r in caplog.records if r.levelno >= logging.ERROR] == []


def test_missing_session_key_only(server_config):
    config = server_config.model_copy(
        update={
            "site_config": server_config.site_config.model_copy(
                update={
                    "session": server_config.site_config.session.model_copy(
                        update={"session_key": ""},
                    ),
                },
            ),
        },
    )

    with pytest.raises(ConfigurationError) as excinfo:
        check_config_vars(config)
    assert excinfo.value.missing == ["SESSION_KEY"]


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)
