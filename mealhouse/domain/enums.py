"""Closed vocabularies for roles, billing cycles, weekdays, and order status."""

import enum


class Role(str, enum.Enum):
    """Account role carried in the identity token."""

    USER = "user"
    OWNER = "owner"
    ADMIN = "admin"


class BillingCycle(str, enum.Enum):
    ONE_OFF = "one-off"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Weekday(str, enum.Enum):
    """Weekday tokens in datetime.weekday() order (Monday == 0)."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        return list(cls)[index]


class OrderStatus(str, enum.Enum):
    CREATED = "created"
    CONFIRMED = "confirmed"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.FULFILLED, OrderStatus.CANCELLED}
)

OPEN_STATUSES: frozenset[OrderStatus] = frozenset(OrderStatus) - TERMINAL_STATUSES

# Forward-only state machine; no edges leave a terminal status.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.CREATED: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.FULFILLED, OrderStatus.CANCELLED}),
    OrderStatus.FULFILLED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def is_legal_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]
