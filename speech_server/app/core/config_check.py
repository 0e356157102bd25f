import logging

from speech_server.app.core.config import ServerConfiguration

log = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when required configuration variables are missing."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            "Missing required configuration variables: " + ", ".join(missing),
        )


def check_config_vars(config: ServerConfiguration) -> None:
    """Fail fast if the configuration lacks a value the server needs.

    Args:
        config (ServerConfiguration): The configuration about to be used for startup.

    Returns:
        None

    Raises:
        ConfigurationError: If one or more required variables are empty. The error
            names every missing variable, not just the first one.

    Notes:
        1. Collect the environment names of all empty required values.
        2. Log each present section at debug level.
        3. Raise ConfigurationError if anything is missing; the caller reports it.
        4. No disk, network, or database access.

    """
    _msg = "check_config_vars starting"
    log.debug(_msg)

    required = {
        "MYSQL_HOST": config.mysql.host,
        "MYSQL_DATABASE": config.mysql.database,
        "MYSQL_USERNAME": config.mysql.username,
        "SESSION_KEY": config.site_config.session.session_key,
        "LBRYNET_API_HOST": config.lbrynet_config.api_host,
    }
    missing = [name for name, value in required.items() if not value]

    if missing:
        _msg = f"Configuration check failed, missing: {', '.join(missing)}"
        log.debug(_msg)
        raise ConfigurationError(missing)

    _msg = f"Database: {config.mysql.database} on {config.mysql.host}:{config.mysql.port}"
    log.debug(_msg)
    _msg = f"Lbrynet daemon: {config.lbrynet_config.endpoint}"
    log.debug(_msg)
    _msg = "check_config_vars returning"
    log.debug(_msg)
