"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mealhouse.api.deps import get_settings
from mealhouse.core.config import Settings
from mealhouse.core.database import check_db_connected, get_db
from mealhouse.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"
    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        database=db_status,
    )
