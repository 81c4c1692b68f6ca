"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging

from city_journal.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine.Engine")


def configure_logging(settings: Settings | None = None) -> None:
    """Configure the root logger from settings.

    Safe to call more than once; handlers are only installed the first time.
    """
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(
        logging, settings.log_level, logging.INFO
    )

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        if not (settings.database_echo and name.startswith("sqlalchemy")):
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
