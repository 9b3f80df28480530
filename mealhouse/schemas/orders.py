"""Pydantic schemas for order placement, status changes, and views."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from mealhouse.domain.enums import OrderStatus, Weekday


class OrderCreate(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=36)
    consumption_at: datetime | None = Field(
        default=None,
        description="When the meal is intended to be eaten; checked against the plan's days and hours.",
    )


class AvailabilityRequest(BaseModel):
    plan_id: str = Field(..., min_length=1, max_length=36)
    consumption_at: datetime


class AvailabilityResponse(BaseModel):
    available: bool
    reason: str


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    house_id: str
    plan_id: str
    status: OrderStatus
    amount: Decimal
    consumption_at: datetime | None = None
    created_at: datetime


class OrdersListResponse(BaseModel):
    orders: list[OrderOut]


class AvailableSlot(BaseModel):
    """One orderable window of a plan on a given day."""

    plan_id: str
    plan_name: str
    house_id: str
    day: date
    weekday: Weekday
    opens_at: datetime
    closes_at: datetime
    price: Decimal


class AvailableSlotsResponse(BaseModel):
    slots: list[AvailableSlot]
