"""Process-wide logging setup."""

import logging

from mealhouse.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
    logging.getLogger().setLevel(settings.LOG_LEVEL)
    # SQL echo is controlled by DEBUG through the engine, not the log level
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )
