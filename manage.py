import logging

import click
from sqlalchemy.exc import SQLAlchemyError

from speech_server.app.core.config import get_settings
from speech_server.app.core.config_check import ConfigurationError, check_config_vars
from speech_server.app.core.logging_config import configure_logging
from speech_server.app.database.database import Database
from speech_server.app.server import SpeechServer, StartupState

log = logging.getLogger(__name__)


def load_configuration():
    """Read the server configuration from the environment and set up logging."""
    config = get_settings().to_server_configuration()
    configure_logging(config.logging.log_level)
    return config


@click.group()
def cli():
    """Management script for the spee.ch server."""
    pass


@cli.command("serve")
def serve():
    """
    Start the server.

    Syncs the database schema, then listens on port 3000 until interrupted.

    Returns:
        None

    Notes:
        1. Load the configuration and configure logging.
        2. Run the startup sequence.
        3. Exit with status 1 if startup failed.

    """
    _msg = "serve starting"
    log.debug(_msg)
    config = load_configuration()
    server = SpeechServer(config)
    state = server.start()
    if state is StartupState.FAILED:
        raise click.ClickException("Server failed to start; see the log for details.")
    _msg = "serve returning"
    log.debug(_msg)


@cli.command("check-config")
def check_config():
    """Report missing configuration variables."""
    config = load_configuration()
    try:
        check_config_vars(config)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo("Configuration OK.")


@cli.command("sync-db")
def sync_db():
    """
    Create any missing database tables.

    Returns:
        None

    Notes:
        1. Checks the configuration first; nothing is attempted if it is incomplete.
        2. Network access: connects to the configured MySQL server.

    """
    config = load_configuration()
    try:
        check_config_vars(config)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    database = Database.from_config(config.mysql)
    click.echo("Syncing database schema...")
    try:
        database.sync()
    except SQLAlchemyError as e:
        _error_msg = f"An error occurred while syncing the schema: {e}"
        log.exception(_error_msg)
        raise click.ClickException(_error_msg)
    finally:
        database.dispose()
    click.echo("Database schema is up to date.")


def main():
    """Run the command line interface."""
    cli()


if __name__ == "__main__":
    main()
