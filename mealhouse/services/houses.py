"""House and meal plan management with ownership enforcement."""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from mealhouse.core.errors import Forbidden, HasOpenOrders, InvalidPlan, NotFound
from mealhouse.domain.enums import OPEN_STATUSES, Role
from mealhouse.domain.policy import ensure_can_manage_house
from mealhouse.models import House, MealPlan, Order, User
from mealhouse.models.base import utcnow
from mealhouse.schemas.auth import Identity
from mealhouse.schemas.houses import HouseCreate, HouseUpdate
from mealhouse.schemas.meal_plans import MealPlanCreate, MealPlanUpdate
from mealhouse.services.plan_rules import serialize_items, validate_plan

logger = logging.getLogger(__name__)

HOUSE_OWNER_ROLES = frozenset({Role.OWNER, Role.ADMIN})


def _open_statuses() -> list[str]:
    return [s.value for s in OPEN_STATUSES]


def get_house(session: Session, house_id: str, lock: bool = False) -> House:
    stmt = select(House).where(House.id == house_id, House.deleted_at.is_(None))
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    house = session.execute(stmt).scalar_one_or_none()
    if house is None:
        raise NotFound("House not found.")
    return house


def list_houses(session: Session, limit: int = 50, offset: int = 0) -> list[House]:
    stmt = (
        select(House)
        .where(House.deleted_at.is_(None))
        .order_by(House.created_at.desc(), House.id)
        .limit(limit)
        .offset(offset)
    )
    return list(session.execute(stmt).scalars())


def list_owned_houses(session: Session, identity: Identity) -> list[House]:
    stmt = (
        select(House)
        .where(House.owner_id == identity.subject_id, House.deleted_at.is_(None))
        .order_by(House.created_at.desc(), House.id)
    )
    return list(session.execute(stmt).scalars())


def _resolve_owner_id(session: Session, identity: Identity, requested: str | None) -> str:
    """Owners create houses for themselves; admins may name another owner account."""
    if requested is None or requested == identity.subject_id:
        return identity.subject_id
    if identity.role is not Role.ADMIN:
        raise Forbidden("Only admins may create a house on behalf of another owner.")
    owner = session.get(User, requested)
    if owner is None or Role(owner.role) not in HOUSE_OWNER_ROLES:
        raise NotFound("Owner account not found.")
    return owner.id


def create_house(session: Session, identity: Identity, data: HouseCreate) -> House:
    house = House(
        owner_id=_resolve_owner_id(session, identity, data.owner_id),
        title=data.title,
        description=data.description,
        location=data.location,
    )
    session.add(house)
    session.commit()
    logger.info("Created house id=%s owner=%s", house.id, house.owner_id)
    return house


def update_house(session: Session, identity: Identity, house_id: str, data: HouseUpdate) -> House:
    house = get_house(session, house_id, lock=True)
    ensure_can_manage_house(identity, house)
    changes = data.model_dump(exclude_unset=True)
    if "title" in changes and changes["title"] is None:
        changes.pop("title")
    for field, value in changes.items():
        setattr(house, field, value)
    session.commit()
    return house


def count_open_orders(session: Session, *, house_id: str | None = None, plan_id: str | None = None) -> int:
    stmt = select(func.count(Order.id)).where(Order.status.in_(_open_statuses()))
    if house_id is not None:
        stmt = stmt.where(Order.house_id == house_id)
    if plan_id is not None:
        stmt = stmt.where(Order.plan_id == plan_id)
    return session.execute(stmt).scalar_one()


def delete_house(session: Session, identity: Identity, house_id: str) -> None:
    """
    Soft-delete a house and its plans. Orders are kept, so customers still
    see their history through /orders/my.

    The house row is locked first; place_order takes the same lock, so no
    order can be placed between the open-order count and the delete.
    """
    house = get_house(session, house_id, lock=True)
    ensure_can_manage_house(identity, house)
    open_count = count_open_orders(session, house_id=house.id)
    if open_count:
        session.rollback()
        raise HasOpenOrders("House", open_count)
    now = utcnow()
    house.deleted_at = now
    for plan in house.meal_plans:
        if plan.deleted_at is None:
            plan.deleted_at = now
    session.commit()
    logger.info("Deleted house id=%s by=%s", house_id, identity.subject_id)


def get_plan(session: Session, plan_id: str, house_id: str | None = None, lock: bool = False) -> MealPlan:
    stmt = select(MealPlan).where(MealPlan.id == plan_id, MealPlan.deleted_at.is_(None))
    if house_id is not None:
        stmt = stmt.where(MealPlan.house_id == house_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    plan = session.execute(stmt).scalar_one_or_none()
    if plan is None:
        raise NotFound("Meal plan not found.")
    return plan


def list_plans(session: Session, house_id: str) -> list[MealPlan]:
    get_house(session, house_id)
    stmt = (
        select(MealPlan)
        .where(MealPlan.house_id == house_id, MealPlan.deleted_at.is_(None))
        .order_by(MealPlan.created_at, MealPlan.id)
    )
    return list(session.execute(stmt).scalars())


def create_plan(session: Session, identity: Identity, house_id: str, data: MealPlanCreate) -> MealPlan:
    house = get_house(session, house_id)
    ensure_can_manage_house(identity, house)
    plan = MealPlan(
        house_id=house.id,
        name=data.name.strip(),
        price=data.price,
        billing_cycle=data.billing_cycle.value,
        available_days=[d.value for d in data.available_days],
        start_time=data.start_time,
        end_time=data.end_time,
        items=serialize_items(data.items),
    )
    validate_plan(plan)
    session.add(plan)
    session.commit()
    logger.info("Created meal plan id=%s house=%s price=%s", plan.id, house.id, plan.price)
    return plan


def update_plan(
    session: Session, identity: Identity, house_id: str, plan_id: str, data: MealPlanUpdate
) -> MealPlan:
    """
    Apply a partial update and re-validate the merged plan.

    The plan row is locked for the whole read-modify-write so a concurrent
    place_order sees either the old price or the new one, never a mix.
    """
    house = get_house(session, house_id)
    ensure_can_manage_house(identity, house)
    plan = get_plan(session, plan_id, house_id=house.id, lock=True)
    changes = data.model_dump(exclude_unset=True)
    for required in ("name", "price", "billing_cycle", "available_days", "items"):
        if required in changes and changes[required] is None:
            changes.pop(required)

    if "name" in changes:
        plan.name = data.name.strip()
    if "price" in changes:
        plan.price = data.price
    if "billing_cycle" in changes:
        plan.billing_cycle = data.billing_cycle.value
    if "available_days" in changes:
        plan.available_days = [d.value for d in data.available_days]
    if "start_time" in changes:
        plan.start_time = data.start_time
    if "end_time" in changes:
        plan.end_time = data.end_time
    if "items" in changes:
        plan.items = serialize_items(data.items)

    try:
        validate_plan(plan)
    except InvalidPlan:
        session.rollback()
        raise
    session.commit()
    logger.info("Updated meal plan id=%s fields=%s", plan.id, sorted(changes))
    return plan


def delete_plan(session: Session, identity: Identity, house_id: str, plan_id: str) -> None:
    house = get_house(session, house_id, lock=True)
    ensure_can_manage_house(identity, house)
    plan = get_plan(session, plan_id, house_id=house.id, lock=True)
    open_count = count_open_orders(session, plan_id=plan.id)
    if open_count:
        session.rollback()
        raise HasOpenOrders("Meal plan", open_count)
    plan.deleted_at = utcnow()
    session.commit()
    logger.info("Deleted meal plan id=%s by=%s", plan_id, identity.subject_id)
