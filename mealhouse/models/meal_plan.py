"""ORM model for meal plans offered by a house."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import relationship

from mealhouse.models.base import Base, new_id, utcnow


class MealPlan(Base):
    """
    Subscription or one-off offering.

    items holds the serialized line-item list (JSON text); it is validated by
    mealhouse.services.plan_rules on every write and before ordering.
    available_days is a JSON list of weekday tokens; empty means every day.
    A set deleted_at hides the plan from listings and ordering; its orders stay.
    """

    __tablename__ = "meal_plans"

    id = Column(String(36), primary_key=True, default=new_id)
    house_id = Column(String(36), ForeignKey("houses.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    billing_cycle = Column(String(16), nullable=False, default="one-off")
    available_days = Column(JSON, nullable=False, default=list)
    start_time = Column(String(5), nullable=True)
    end_time = Column(String(5), nullable=True)
    items = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    house = relationship("House", back_populates="meal_plans")
    orders = relationship("Order", back_populates="plan")
