"""FastAPI application factory. No business logic; only wiring, middleware, and error mapping."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from mealhouse import __version__
from mealhouse.api.v1 import router as v1_router
from mealhouse.api.v1.houses import PLAN_BODY_ROUTES
from mealhouse.core.config import Settings, load_settings
from mealhouse.core.database import Database
from mealhouse.core.errors import InvalidPlan, InvalidRequest, MarketplaceError, StoreUnavailable
from mealhouse.core.logging import configure_logging
from mealhouse.core.security import TokenVerifier

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a retryable error.
RETRY_AFTER_SEC = 1


def _error_response(exc: MarketplaceError) -> JSONResponse:
    headers: dict[str, str] = {}
    if exc.status_code == 401:
        headers["WWW-Authenticate"] = "Bearer"
    if exc.retryable:
        headers["Retry-After"] = str(RETRY_AFTER_SEC)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "detail": exc.message, "retryable": exc.retryable},
        headers=headers or None,
    )


async def handle_marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ()) if p != "body")
        msg = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request."


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures in the standard error body; plan bodies as InvalidPlan."""
    route = request.scope.get("route")
    message = _validation_message(exc)
    if getattr(route, "name", None) in PLAN_BODY_ROUTES:
        return _error_response(InvalidPlan(message))
    return _error_response(InvalidRequest(message))


async def handle_store_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s: store unavailable (%s)",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return _error_response(StoreUnavailable())


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the application around one immutable Settings value.

    Settings, the Database and the TokenVerifier are created here and kept on
    app.state for the app's lifetime; dependencies read them from there.
    """
    settings = settings or load_settings()
    configure_logging(settings)
    database = database or Database(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Mealhouse API starting (env=%s)", settings.APP_ENV)
        yield
        database.dispose()

    app = FastAPI(
        title="Mealhouse API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.token_verifier = TokenVerifier.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MarketplaceError, handle_marketplace_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(OperationalError, handle_store_error)
    app.add_exception_handler(PoolTimeoutError, handle_store_error)

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Mealhouse API", "version": __version__}

    return app
