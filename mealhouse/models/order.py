"""ORM model for orders placed against a meal plan."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from mealhouse.models.base import Base, new_id, utcnow


class Order(Base):
    """
    A user's commitment to a meal plan.

    amount is the plan price captured at placement and never re-derived.
    version is the optimistic-lock counter: every UPDATE is conditioned on it,
    so concurrent status changes fail with StaleDataError instead of racing.
    """

    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    house_id = Column(String(36), ForeignKey("houses.id"), nullable=False, index=True)
    plan_id = Column(String(36), ForeignKey("meal_plans.id"), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="created", index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    consumption_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    version = Column(Integer, nullable=False)

    house = relationship("House", back_populates="orders")
    plan = relationship("MealPlan", back_populates="orders")

    __mapper_args__ = {"version_id_col": version}
