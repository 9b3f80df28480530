"""SQLAlchemy ORM models."""

from mealhouse.models.base import Base
from mealhouse.models.house import House
from mealhouse.models.meal_plan import MealPlan
from mealhouse.models.order import Order
from mealhouse.models.user import User

__all__ = ["Base", "House", "MealPlan", "Order", "User"]
