import logging

from servicedesk.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "servicedesk"


def setup_logging() -> logging.Logger:
    """
    Configure the package logger once.

    Every module logs through ``logging.getLogger(__name__)``, so all records
    propagate to the ``servicedesk`` logger configured here.
    """
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers in dev reload
    if logger.handlers:
        return logger

    logger.setLevel(settings.LOG_LEVEL.upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger
