"""Core app configuration, database, security, and error taxonomy."""

from mealhouse.core.config import Settings, load_settings
from mealhouse.core.database import Database, get_db

__all__ = ["Database", "Settings", "get_db", "load_settings"]
