"""Order lifecycle: placement with price snapshot, and guarded status transitions.

State machine (see mealhouse.domain.enums.ALLOWED_TRANSITIONS):

    created -> confirmed -> fulfilled
    created | confirmed -> cancelled

Transitions are check-then-set under the Order.version optimistic lock; a
lost race is retried against fresh state and surfaces as Conflict when the
retries run out.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from mealhouse.core.errors import Conflict, Forbidden, IllegalTransition, InvalidPlan, NotFound, Unauthorized
from mealhouse.domain.enums import OrderStatus, Weekday, is_legal_transition
from mealhouse.domain.policy import (
    OrderStanding,
    customer_may_request,
    ensure_can_manage_house,
    ensure_can_view_order,
    order_standing,
)
from mealhouse.models import House, MealPlan, Order, User
from mealhouse.schemas.auth import Identity
from mealhouse.schemas.orders import AvailableSlot
from mealhouse.services.houses import get_house, get_plan
from mealhouse.services.plan_rules import availability_reason, daily_window, validate_plan

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
DEFAULT_TRANSITION_RETRIES = 3
DEFAULT_SLOT_DAYS = 7
MAX_SLOT_DAYS = 30


def check_availability(session: Session, plan_id: str, when: datetime) -> tuple[bool, str]:
    """Dry-run of the availability part of place_order; creates nothing."""
    plan = get_plan(session, plan_id)
    validate_plan(plan)
    reason = availability_reason(plan, when)
    if reason is not None:
        return False, reason
    return True, "Plan is available at the requested time."


def place_order(
    session: Session,
    user_id: str,
    plan_id: str,
    consumption_at: datetime | None = None,
) -> Order:
    """
    Create an order in status 'created' with amount fixed to the plan's current price.

    The house and plan rows are read under FOR UPDATE in the same transaction
    as the insert, so the snapshot cannot interleave with a price update or a
    deletion. Locks are always taken house first, then plan, the same order
    delete_plan uses.

    Raises NotFound when the plan is missing, InvalidPlan when the plan is
    malformed or unavailable at consumption_at.
    """
    if session.get(User, user_id) is None:
        raise Unauthorized()
    house_id = get_plan(session, plan_id).house_id
    house = get_house(session, house_id, lock=True)
    plan = get_plan(session, plan_id, house_id=house.id, lock=True)
    validate_plan(plan)
    if consumption_at is not None:
        reason = availability_reason(plan, consumption_at)
        if reason is not None:
            raise InvalidPlan(reason)

    order = Order(
        user_id=user_id,
        house_id=house.id,
        plan_id=plan.id,
        status=OrderStatus.CREATED.value,
        amount=Decimal(plan.price).quantize(CENTS),
        consumption_at=consumption_at,
    )
    session.add(order)
    session.commit()
    logger.info(
        "Placed order id=%s user=%s plan=%s amount=%s",
        order.id,
        user_id,
        plan.id,
        order.amount,
    )
    return order


def _load_order(session: Session, order_id: str) -> Order:
    order = session.execute(
        select(Order).where(Order.id == order_id).execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found.")
    return order


def _house_owner_id(session: Session, house_id: str) -> str:
    owner_id = session.execute(select(House.owner_id).where(House.id == house_id)).scalar_one_or_none()
    if owner_id is None:
        raise NotFound("House not found.")
    return owner_id


def advance_status(
    session: Session,
    order_id: str,
    actor: Identity,
    target: OrderStatus,
    max_retries: int = DEFAULT_TRANSITION_RETRIES,
) -> Order:
    """
    Move an order to `target`.

    Forbidden: actor has no standing on the order, or is the customer asking
    for anything but cancelling a 'created' order.
    IllegalTransition: target is not reachable from the current status.
    Conflict: the order kept changing underneath us for max_retries attempts.
    """
    target = OrderStatus(target)
    for attempt in range(1, max_retries + 1):
        order = _load_order(session, order_id)
        standing = order_standing(actor, order, _house_owner_id(session, order.house_id))
        if standing is OrderStanding.NONE:
            raise Forbidden("Not allowed to change this order.")
        current = OrderStatus(order.status)
        if not is_legal_transition(current, target):
            raise IllegalTransition(current.value, target.value)
        if standing is OrderStanding.CUSTOMER and not customer_may_request(current, target):
            raise Forbidden("Customers may only cancel an order before it is confirmed.")

        order.status = target.value
        try:
            session.commit()
        except StaleDataError:
            session.rollback()
            logger.warning(
                "Order %s changed concurrently (attempt %s/%s); retrying",
                order_id,
                attempt,
                max_retries,
            )
            continue
        logger.info(
            "Order %s: %s -> %s by %s (%s)",
            order_id,
            current.value,
            target.value,
            actor.subject_id,
            actor.role.value,
        )
        return order
    raise Conflict(f"Order {order_id} was modified concurrently; retry the request.")


def get_order(session: Session, identity: Identity, order_id: str) -> Order:
    order = _load_order(session, order_id)
    ensure_can_view_order(identity, order, _house_owner_id(session, order.house_id))
    return order


def list_user_orders(session: Session, identity: Identity) -> list[Order]:
    stmt = (
        select(Order)
        .where(Order.user_id == identity.subject_id)
        .order_by(Order.created_at.desc(), Order.id)
    )
    return list(session.execute(stmt).scalars())


def list_house_orders(
    session: Session, identity: Identity, house_id: str, status: OrderStatus | None = None
) -> list[Order]:
    house = get_house(session, house_id)
    ensure_can_manage_house(identity, house)
    stmt = select(Order).where(Order.house_id == house.id)
    if status is not None:
        stmt = stmt.where(Order.status == status.value)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id)
    return list(session.execute(stmt).scalars())


def list_all_orders(session: Session, status: OrderStatus | None = None) -> list[Order]:
    stmt = select(Order)
    if status is not None:
        stmt = stmt.where(Order.status == status.value)
    stmt = stmt.order_by(Order.created_at.desc(), Order.id)
    return list(session.execute(stmt).scalars())

def list_available_slots(
    session: Session,
    house_id: str | None,
    from_: datetime,
    days: int = DEFAULT_SLOT_DAYS,
) -> list[AvailableSlot]:
    """
    Upcoming orderable windows for every plan (optionally one house's plans)
    over `days` calendar days starting with the day of `from_`.

    Days and hours are evaluated in the timezone `from_` carries. Windows that
    have already closed are skipped; today's window opens no earlier than
    `from_`. Plans whose stored data is malformed are left out.
    """
    if days < 1 or days > MAX_SLOT_DAYS:
        raise ValueError(f"days must be between 1 and {MAX_SLOT_DAYS}")
    stmt = select(MealPlan).where(MealPlan.deleted_at.is_(None))
    if house_id is not None:
        stmt = stmt.where(MealPlan.house_id == get_house(session, house_id).id)
    else:
        stmt = stmt.join(House, House.id == MealPlan.house_id).where(House.deleted_at.is_(None))
    plans = []
    for plan in session.execute(stmt.order_by(MealPlan.created_at, MealPlan.id)).scalars():
        try:
            validate_plan(plan)
        except InvalidPlan as e:
            logger.warning("Skipping plan %s in slot listing: %s", plan.id, e.message)
            continue
        plans.append(plan)

    midnight = from_.replace(hour=0, minute=0, second=0, microsecond=0)
    slots: list[AvailableSlot] = []
    for offset in range(days):
        day_start = midnight + timedelta(days=offset)
        for plan in plans:
            opens, closes = daily_window(plan, day_start)
            if closes <= from_:
                continue
            opens = max(opens, from_)
            if availability_reason(plan, opens) is not None:
                continue
            slots.append(
                AvailableSlot(
                    plan_id=plan.id,
                    plan_name=plan.name,
                    house_id=plan.house_id,
                    day=day_start.date(),
                    weekday=Weekday.from_index(day_start.weekday()),
                    opens_at=opens,
                    closes_at=closes,
                    price=Decimal(plan.price).quantize(CENTS),
                )
            )
    return slots
