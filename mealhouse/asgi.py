"""ASGI entrypoint: `uvicorn mealhouse.asgi:app`. Settings are loaded exactly once here."""

from dotenv import load_dotenv

load_dotenv()

from mealhouse.core.config import load_settings  # noqa: E402
from mealhouse.main import create_app  # noqa: E402

app = create_app(load_settings())
