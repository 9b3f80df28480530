"""ORM model for vendor houses."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from mealhouse.models.base import Base, new_id, utcnow


class House(Base):
    """
    A vendor offering meal plans. Mutable only by its owner or an admin.

    Deletion is soft: deleted_at is set on the house and its plans, and the
    rows stay so customers keep their order history.
    """

    __tablename__ = "houses"

    id = Column(String(36), primary_key=True, default=new_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(1024), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    meal_plans = relationship(
        "MealPlan",
        back_populates="house",
        order_by="MealPlan.created_at",
    )
    orders = relationship("Order", back_populates="house")
