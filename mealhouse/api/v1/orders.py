"""Order placement, lookup, and status transitions."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from mealhouse.api.deps import CurrentIdentity, get_settings, resolve_from
from mealhouse.core.config import Settings
from mealhouse.core.database import get_db
from mealhouse.schemas.orders import (
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlotsResponse,
    OrderCreate,
    OrderOut,
    OrdersListResponse,
    OrderStatusUpdate,
)
from mealhouse.services import orders as order_service

router = APIRouter()


@router.post("", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def place_order(
    body: OrderCreate,
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> OrderOut:
    """
    Place an order for a meal plan as the authenticated caller.

    The amount is the plan's price at this moment; later price edits do not
    change it. When consumption_at is given it must fall inside the plan's
    available days and hours.
    """
    order = order_service.place_order(
        db,
        user_id=identity.subject_id,
        plan_id=body.plan_id,
        consumption_at=body.consumption_at,
    )
    return OrderOut.model_validate(order)


@router.post("/check-availability", response_model=AvailabilityResponse)
def check_availability(
    body: AvailabilityRequest,
    _identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> AvailabilityResponse:
    """Check whether an order for the plan could be placed for consumption_at."""
    available, reason = order_service.check_availability(db, body.plan_id, body.consumption_at)
    return AvailabilityResponse(available=available, reason=reason)


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def available_slots(
    db: Annotated[Session, Depends(get_db)],
    house_id: Annotated[str | None, Query(max_length=36)] = None,
    from_: Annotated[datetime | None, Query(alias="from")] = None,
    days: Annotated[int, Query(ge=1, le=order_service.MAX_SLOT_DAYS)] = order_service.DEFAULT_SLOT_DAYS,
) -> AvailableSlotsResponse:
    """
    Upcoming windows in which each plan can be ordered, day by day, starting
    with the day of `from` (default: now, UTC). Public, like the house catalogue.
    """
    slots = order_service.list_available_slots(db, house_id, resolve_from(from_), days)
    return AvailableSlotsResponse(slots=slots)


@router.get("/my", response_model=OrdersListResponse)
def my_orders(
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> OrdersListResponse:
    orders = order_service.list_user_orders(db, identity)
    return OrdersListResponse(orders=[OrderOut.model_validate(o) for o in orders])


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> OrderOut:
    """Visible to the customer, the house owner, and admins."""
    return OrderOut.model_validate(order_service.get_order(db, identity, order_id))


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OrderOut:
    """
    Move an order along created -> confirmed -> fulfilled, or cancel it.

    House owners and admins may make any legal move; customers may only
    cancel an order that is still 'created'.
    """
    order = order_service.advance_status(
        db,
        order_id,
        identity,
        body.status,
        max_retries=settings.ORDER_TRANSITION_MAX_RETRIES,
    )
    return OrderOut.model_validate(order)
