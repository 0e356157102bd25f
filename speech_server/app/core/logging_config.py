import logging

log = logging.getLogger(__name__)

# winston level names used by existing deployment configs
LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "silly": logging.DEBUG,
}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def resolve_level(name: str) -> int:
    """Map a level name to a logging level, defaulting to INFO."""
    return LEVELS.get(name.strip().lower(), logging.INFO)


def configure_logging(level_name: str) -> int:
    """Configure root logging for the server process.

    Args:
        level_name (str): A winston-style level name such as "verbose" or "info".

    Returns:
        int: The logging level that was applied.

    Notes:
        1. Unknown names fall back to INFO.
        2. Existing root handlers are replaced so repeated calls do not duplicate output.
        3. Noisy third-party loggers stay at WARNING unless running at DEBUG.

    """
    level = resolve_level(level_name)
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    if level > logging.DEBUG:
        for noisy in ("sqlalchemy.engine", "uvicorn.access"):
            logging.getLogger(noisy).setLevel(logging.WARNING)

    _msg = f"Logging configured at level {logging.getLevelName(level)}"
    log.debug(_msg)
    return level
