"""Pydantic schemas for meal plans and their line items."""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mealhouse.domain.enums import BillingCycle, Weekday

# 24h "HH:MM"; lexical order equals chronological order for this format.
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

PRICE_MAX_DIGITS = 10
PRICE_DECIMAL_PLACES = 2
MAX_ITEMS_PER_PLAN = 100


class MealPlanItem(BaseModel):
    """One line item of a plan, e.g. {"name": "Roti", "quantity": "4"}."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    quantity: str = Field(..., min_length=1, max_length=64)
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_quantity(cls, v: Any) -> Any:
        # The UI sends free text ("2 bowls"); bare numbers are accepted too.
        if isinstance(v, int) and not isinstance(v, bool):
            if v <= 0:
                raise ValueError("quantity must be positive")
            return str(v)
        return v

    @field_validator("name", "quantity")
    @classmethod
    def strip_required(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


def _dedupe_days(days: list[Weekday]) -> list[Weekday]:
    """Unique weekdays in Mon..Sun order."""
    present = set(days)
    return [d for d in Weekday if d in present]


class MealPlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(
        ..., ge=0, max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES
    )
    billing_cycle: BillingCycle = BillingCycle.ONE_OFF
    available_days: list[Weekday] = Field(default_factory=list, max_length=7)
    start_time: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    items: list[MealPlanItem] = Field(default_factory=list, max_length=MAX_ITEMS_PER_PLAN)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, v: list[Weekday]) -> list[Weekday]:
        return _dedupe_days(v)

    @model_validator(mode="after")
    def check_time_window(self) -> "MealPlanCreate":
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


class MealPlanUpdate(BaseModel):
    """
    Partial update. The merged result is re-validated by the service, so a
    start_time-only change is still checked against the stored end_time.
    Send null for start_time/end_time to clear a bound.
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    price: Decimal | None = Field(
        default=None, ge=0, max_digits=PRICE_MAX_DIGITS, decimal_places=PRICE_DECIMAL_PLACES
    )
    billing_cycle: BillingCycle | None = None
    available_days: list[Weekday] | None = Field(default=None, max_length=7)
    start_time: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    items: list[MealPlanItem] | None = Field(default=None, max_length=MAX_ITEMS_PER_PLAN)

    @field_validator("available_days")
    @classmethod
    def normalize_days(cls, v: list[Weekday] | None) -> list[Weekday] | None:
        return None if v is None else _dedupe_days(v)


class MealPlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    house_id: str
    name: str
    price: Decimal
    billing_cycle: BillingCycle
    available_days: list[Weekday]
    start_time: str | None = None
    end_time: str | None = None
    items: list[MealPlanItem]
    created_at: datetime

    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, v: Any) -> Any:
        if isinstance(v, str):
            return json.loads(v)
        return v


class RenewalScheduleResponse(BaseModel):
    """Upcoming billing instants for a recurring plan; empty for one-off plans."""

    plan_id: str
    billing_cycle: BillingCycle
    renews: bool
    next_billing_at: datetime | None = None
    upcoming: list[datetime] = Field(default_factory=list)
