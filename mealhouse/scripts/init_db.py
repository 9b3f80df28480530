"""
Create all tables in the configured database. Run from project root:

  python -m mealhouse.scripts.init_db
"""

import logging
import sys

from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

from mealhouse.core.config import load_settings
from mealhouse.core.database import Database
from mealhouse.core.logging import configure_logging

logger = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    settings = load_settings()
    configure_logging(settings)
    database = Database(settings)
    try:
        database.create_all()
        logger.info("Schema created (env=%s)", settings.APP_ENV)
        return 0
    except SQLAlchemyError as e:
        logger.exception("Schema creation failed: %s", e)
        return 1
    finally:
        database.dispose()


if __name__ == "__main__":
    sys.exit(main())
