"""Meal plan invariants, availability windows, and renewal scheduling.

Pure functions over MealPlan rows; nothing here touches the session.
"""

import calendar
import json
import re
from datetime import datetime, timedelta

from pydantic import TypeAdapter, ValidationError

from mealhouse.core.errors import InvalidPlan
from mealhouse.domain.enums import BillingCycle, Weekday
from mealhouse.models import MealPlan
from mealhouse.schemas.meal_plans import MealPlanItem, TIME_OF_DAY_PATTERN

_items_adapter = TypeAdapter(list[MealPlanItem])

WEEK = timedelta(days=7)
MAX_UPCOMING_RENEWALS = 52


def serialize_items(items: list[MealPlanItem]) -> str:
    """Serialize validated line items to the stored JSON blob."""
    return json.dumps([item.model_dump(exclude_none=True) for item in items])


def parse_items(blob: str | None) -> list[MealPlanItem]:
    """Deserialize and validate the stored items blob. Raises InvalidPlan when malformed."""
    if blob is None:
        raise InvalidPlan("Meal plan items are missing.")
    try:
        data = json.loads(blob)
    except (TypeError, ValueError) as e:
        raise InvalidPlan(f"Meal plan items are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise InvalidPlan("Meal plan items must be a list.")
    try:
        return _items_adapter.validate_python(data)
    except ValidationError as e:
        raise InvalidPlan(f"Meal plan items are malformed: {e.errors()[0]['msg']}") from e


def parse_days(days: list[str] | None) -> list[Weekday]:
    if days is None:
        return []
    try:
        return [Weekday(d) for d in days]
    except ValueError as e:
        raise InvalidPlan(f"Unknown weekday token in available_days: {e}") from e


def validate_plan(plan: MealPlan) -> None:
    """
    Check every stored invariant of a plan. Raises InvalidPlan on the first
    violation: negative price, unknown billing cycle, bad days or times,
    an empty or inverted time window, or a malformed items blob.
    """
    if plan.price is None or plan.price < 0:
        raise InvalidPlan("Meal plan price must be zero or greater.")
    try:
        BillingCycle(plan.billing_cycle)
    except ValueError:
        raise InvalidPlan(f"Unknown billing cycle '{plan.billing_cycle}'.") from None
    parse_days(plan.available_days)
    _check_window(plan.start_time, plan.end_time)
    parse_items(plan.items)


def _check_window(start_time: str | None, end_time: str | None) -> None:
    for label, value in (("start_time", start_time), ("end_time", end_time)):
        if value is not None and not re.match(TIME_OF_DAY_PATTERN, value):
            raise InvalidPlan(f"{label} must be HH:MM (24h), got '{value}'.")
    if start_time and end_time and start_time >= end_time:
        raise InvalidPlan("start_time must be earlier than end_time.")


def availability_reason(plan: MealPlan, when: datetime) -> str | None:
    """
    Return None when the plan can be consumed at `when`, else a human-readable reason.

    Days and hours are compared in the timezone `when` carries. A plan with no
    days is available every day; a missing start or end bound leaves that side
    of the window open. The window is [start_time, end_time).
    """
    days = parse_days(plan.available_days)
    if days:
        weekday = Weekday.from_index(when.weekday())
        if weekday not in days:
            allowed = ", ".join(d.value for d in days)
            return f"Plan is not available on {weekday.value} (available: {allowed})."
    clock = when.strftime("%H:%M")
    if plan.start_time and clock < plan.start_time:
        return f"Plan is available from {plan.start_time}; requested {clock}."
    if plan.end_time and clock >= plan.end_time:
        return f"Plan is available until {plan.end_time}; requested {clock}."
    return None


def _at_clock(day_start: datetime, hhmm: str) -> datetime:
    hour, minute = (int(part) for part in hhmm.split(":"))
    return day_start.replace(hour=hour, minute=minute)


def daily_window(plan: MealPlan, day_start: datetime) -> tuple[datetime, datetime]:
    """[opens, closes) of the plan's hours on the day starting at `day_start` (local midnight)."""
    opens = _at_clock(day_start, plan.start_time) if plan.start_time else day_start
    closes = _at_clock(day_start, plan.end_time) if plan.end_time else day_start + timedelta(days=1)
    return opens, closes


def _add_months(anchor: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the target month's length."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return anchor.replace(year=year, month=month, day=day)


def compute_renewal_schedule(plan: MealPlan, from_: datetime) -> datetime | None:
    """Next billing instant after `from_`; None for one-off plans."""
    cycle = BillingCycle(plan.billing_cycle)
    if cycle is BillingCycle.ONE_OFF:
        return None
    if cycle is BillingCycle.WEEKLY:
        return from_ + WEEK
    if cycle is BillingCycle.MONTHLY:
        return _add_months(from_, 1)
    raise AssertionError(f"unhandled billing cycle: {cycle}")


def upcoming_renewals(plan: MealPlan, from_: datetime, count: int) -> list[datetime]:
    """
    The next `count` billing instants after `from_`.

    Monthly instants are all computed from `from_` itself, so a 31st anchor
    gives Feb 28/29 and then Mar 31 rather than drifting to the 28th.
    """
    if count < 1 or count > MAX_UPCOMING_RENEWALS:
        raise ValueError(f"count must be between 1 and {MAX_UPCOMING_RENEWALS}")
    cycle = BillingCycle(plan.billing_cycle)
    if cycle is BillingCycle.ONE_OFF:
        return []
    if cycle is BillingCycle.WEEKLY:
        return [from_ + WEEK * n for n in range(1, count + 1)]
    return [_add_months(from_, n) for n in range(1, count + 1)]
