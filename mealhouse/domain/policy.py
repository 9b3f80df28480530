"""Ownership policy layered on top of role checks.

Every decision branches exhaustively over Role; adding a role without
updating these functions fails loudly at the assert_never.
"""

from enum import Enum
from typing import assert_never

from mealhouse.core.errors import Forbidden
from mealhouse.domain.enums import OrderStatus, Role
from mealhouse.models import House, Order
from mealhouse.schemas.auth import Identity


class OrderStanding(Enum):
    """What an actor may do to a given order."""

    NONE = "none"
    # Order's own customer: may cancel while the order is still 'created'
    CUSTOMER = "customer"
    # House owner or admin: any legal transition
    OPERATOR = "operator"


def can_manage_house(identity: Identity, house: House) -> bool:
    role = identity.role
    if role is Role.ADMIN:
        return True
    if role is Role.OWNER:
        return house.owner_id == identity.subject_id
    if role is Role.USER:
        return False
    assert_never(role)


def ensure_can_manage_house(identity: Identity, house: House) -> None:
    """Raise Forbidden unless the identity owns the house or is an admin."""
    if not can_manage_house(identity, house):
        raise Forbidden("Only the house owner or an admin may modify this house.")


def order_standing(identity: Identity, order: Order, house_owner_id: str) -> OrderStanding:
    role = identity.role
    if role is Role.ADMIN:
        return OrderStanding.OPERATOR
    if role is Role.OWNER:
        if house_owner_id == identity.subject_id:
            return OrderStanding.OPERATOR
        # Owners may also order from other houses as customers
        if order.user_id == identity.subject_id:
            return OrderStanding.CUSTOMER
        return OrderStanding.NONE
    if role is Role.USER:
        if order.user_id == identity.subject_id:
            return OrderStanding.CUSTOMER
        return OrderStanding.NONE
    assert_never(role)


def ensure_can_view_order(identity: Identity, order: Order, house_owner_id: str) -> None:
    if order_standing(identity, order, house_owner_id) is OrderStanding.NONE:
        raise Forbidden("Not allowed to access this order.")


def customer_may_request(current: OrderStatus, target: OrderStatus) -> bool:
    """Customers may only cancel an order that has not been confirmed yet."""
    return current is OrderStatus.CREATED and target is OrderStatus.CANCELLED
