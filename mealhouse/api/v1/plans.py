"""Plan-level endpoints that are not scoped by house."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mealhouse.api.deps import resolve_from
from mealhouse.core.database import get_db
from mealhouse.domain.enums import BillingCycle
from mealhouse.schemas.meal_plans import RenewalScheduleResponse
from mealhouse.services.houses import get_plan
from mealhouse.services.plan_rules import (
    MAX_UPCOMING_RENEWALS,
    compute_renewal_schedule,
    upcoming_renewals,
)

router = APIRouter()


@router.get("/{plan_id}/renewals", response_model=RenewalScheduleResponse)
def get_renewals(
    plan_id: str,
    db: Annotated[Session, Depends(get_db)],
    from_: Annotated[datetime | None, Query(alias="from")] = None,
    count: Annotated[int, Query(ge=1, le=MAX_UPCOMING_RENEWALS)] = 4,
) -> RenewalScheduleResponse:
    """
    Next billing instants for a weekly or monthly plan, starting after `from`
    (default: now, UTC). One-off plans never renew and return an empty list.
    """
    plan = get_plan(db, plan_id)
    anchor = resolve_from(from_)
    cycle = BillingCycle(plan.billing_cycle)
    return RenewalScheduleResponse(
        plan_id=plan.id,
        billing_cycle=cycle,
        renews=cycle is not BillingCycle.ONE_OFF,
        next_billing_at=compute_renewal_schedule(plan, anchor),
        upcoming=upcoming_renewals(plan, anchor, count),
    )
