"""Admin-only listings."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mealhouse.api.deps import AdminIdentity
from mealhouse.core.database import get_db
from mealhouse.domain.enums import OrderStatus
from mealhouse.schemas.auth import UserOut, UsersListResponse
from mealhouse.schemas.orders import OrderOut, OrdersListResponse
from mealhouse.services.orders import list_all_orders
from mealhouse.services.users import list_users

router = APIRouter()


@router.get("/users", response_model=UsersListResponse)
def admin_list_users(
    _admin: AdminIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> UsersListResponse:
    """List all accounts (admin only)."""
    return UsersListResponse(users=[UserOut.model_validate(u) for u in list_users(db)])


@router.get("/orders", response_model=OrdersListResponse)
def admin_list_orders(
    _admin: AdminIdentity,
    db: Annotated[Session, Depends(get_db)],
    status_filter: Annotated[OrderStatus | None, Query(alias="status")] = None,
) -> OrdersListResponse:
    """List every order, optionally filtered by status (admin only)."""
    return OrdersListResponse(
        orders=[OrderOut.model_validate(o) for o in list_all_orders(db, status_filter)]
    )
