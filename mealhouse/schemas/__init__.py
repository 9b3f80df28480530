"""Pydantic request/response schemas."""

from mealhouse.schemas.auth import (
    Identity,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
    UsersListResponse,
)
from mealhouse.schemas.health import HealthResponse
from mealhouse.schemas.houses import HouseCreate, HouseOut, HouseUpdate
from mealhouse.schemas.meal_plans import (
    MealPlanCreate,
    MealPlanItem,
    MealPlanOut,
    MealPlanUpdate,
    RenewalScheduleResponse,
)
from mealhouse.schemas.orders import (
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlot,
    AvailableSlotsResponse,
    OrderCreate,
    OrderOut,
    OrdersListResponse,
    OrderStatusUpdate,
)

__all__ = [
    "AvailabilityRequest",
    "AvailabilityResponse",
    "AvailableSlot",
    "AvailableSlotsResponse",
    "HealthResponse",
    "HouseCreate",
    "HouseOut",
    "HouseUpdate",
    "Identity",
    "LoginRequest",
    "MealPlanCreate",
    "MealPlanItem",
    "MealPlanOut",
    "MealPlanUpdate",
    "OrderCreate",
    "OrderOut",
    "OrderStatusUpdate",
    "OrdersListResponse",
    "RegisterRequest",
    "RegisterResponse",
    "RenewalScheduleResponse",
    "TokenResponse",
    "UserOut",
    "UsersListResponse",
]
