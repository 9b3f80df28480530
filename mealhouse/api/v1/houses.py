"""House and nested meal plan endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from mealhouse.api.deps import CurrentIdentity, HouseManager
from mealhouse.core.database import get_db
from mealhouse.domain.enums import OrderStatus
from mealhouse.schemas.houses import HouseCreate, HouseOut, HouseUpdate
from mealhouse.schemas.meal_plans import MealPlanCreate, MealPlanOut, MealPlanUpdate
from mealhouse.schemas.orders import OrderOut, OrdersListResponse
from mealhouse.services import houses as house_service
from mealhouse.services.orders import list_house_orders

router = APIRouter()

# Routes whose body validation failures are reported as InvalidPlan.
PLAN_BODY_ROUTES = frozenset({"create_plan", "update_plan"})


@router.get("", response_model=list[HouseOut])
def list_houses(
    db: Annotated[Session, Depends(get_db)],
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> list[HouseOut]:
    """Public listing of houses, newest first."""
    return [HouseOut.model_validate(h) for h in house_service.list_houses(db, limit, offset)]


@router.get("/my", response_model=list[HouseOut])
def my_houses(
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> list[HouseOut]:
    """Houses owned by the caller (owner/admin)."""
    return [HouseOut.model_validate(h) for h in house_service.list_owned_houses(db, identity)]


@router.post("", response_model=HouseOut, status_code=status.HTTP_201_CREATED)
def create_house(
    body: HouseCreate,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> HouseOut:
    return HouseOut.model_validate(house_service.create_house(db, identity, body))


@router.get("/{house_id}", response_model=HouseOut)
def get_house(house_id: str, db: Annotated[Session, Depends(get_db)]) -> HouseOut:
    return HouseOut.model_validate(house_service.get_house(db, house_id))


@router.patch("/{house_id}", response_model=HouseOut)
def update_house(
    house_id: str,
    body: HouseUpdate,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> HouseOut:
    return HouseOut.model_validate(house_service.update_house(db, identity, house_id, body))


@router.delete("/{house_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_house(
    house_id: str,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    """Delete a house. Refused with 409 HasOpenOrders while any order is created or confirmed."""
    house_service.delete_house(db, identity, house_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{house_id}/orders", response_model=OrdersListResponse)
def house_orders(
    house_id: str,
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
    status_filter: Annotated[OrderStatus | None, Query(alias="status")] = None,
) -> OrdersListResponse:
    """Orders placed against this house (house owner or admin)."""
    orders = list_house_orders(db, identity, house_id, status_filter)
    return OrdersListResponse(orders=[OrderOut.model_validate(o) for o in orders])


@router.get("/{house_id}/plans", response_model=list[MealPlanOut])
def list_plans(house_id: str, db: Annotated[Session, Depends(get_db)]) -> list[MealPlanOut]:
    return [MealPlanOut.model_validate(p) for p in house_service.list_plans(db, house_id)]


@router.post(
    "/{house_id}/plans",
    response_model=MealPlanOut,
    status_code=status.HTTP_201_CREATED,
)
def create_plan(
    house_id: str,
    body: MealPlanCreate,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> MealPlanOut:
    return MealPlanOut.model_validate(house_service.create_plan(db, identity, house_id, body))


@router.get("/{house_id}/plans/{plan_id}", response_model=MealPlanOut)
def get_plan(
    house_id: str,
    plan_id: str,
    db: Annotated[Session, Depends(get_db)],
) -> MealPlanOut:
    return MealPlanOut.model_validate(house_service.get_plan(db, plan_id, house_id=house_id))


@router.patch("/{house_id}/plans/{plan_id}", response_model=MealPlanOut)
def update_plan(
    house_id: str,
    plan_id: str,
    body: MealPlanUpdate,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> MealPlanOut:
    """Partial update. Price changes never touch existing orders' amounts."""
    plan = house_service.update_plan(db, identity, house_id, plan_id, body)
    return MealPlanOut.model_validate(plan)


@router.delete("/{house_id}/plans/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_plan(
    house_id: str,
    plan_id: str,
    identity: HouseManager,
    db: Annotated[Session, Depends(get_db)],
) -> Response:
    house_service.delete_plan(db, identity, house_id, plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
