"""Shared builders for tests: settings, an in-memory database, and seeded rows."""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from mealhouse.core.config import Settings, load_settings
from mealhouse.core.database import Database
from mealhouse.domain.enums import Role
from mealhouse.models import House, MealPlan, User
from mealhouse.schemas.auth import Identity

TEST_SECRET = "test-signing-secret-with-enough-length"


def make_settings(**overrides: Any) -> Settings:
    """Settings for an isolated in-memory SQLite database with fast bcrypt."""
    values: dict[str, Any] = {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": TEST_SECRET,
        "BCRYPT_ROUNDS": 4,
        "LOG_LEVEL": "WARNING",
    }
    values.update(overrides)
    return load_settings(**values)


def make_database(settings: Settings | None = None) -> Database:
    database = Database(settings or make_settings())
    database.create_all()
    return database


def add_user(session: Session, role: Role = Role.USER, email: str | None = None) -> User:
    user = User(
        email=email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-used-in-service-tests",
        role=role.value,
    )
    session.add(user)
    session.commit()
    return user


def add_house(session: Session, owner: User, title: str = "Aunty's Kitchen") -> House:
    house = House(owner_id=owner.id, title=title)
    session.add(house)
    session.commit()
    return house


def add_plan(
    session: Session,
    house: House,
    price: str = "10.00",
    billing_cycle: str = "weekly",
    **kwargs: Any,
) -> MealPlan:
    defaults: dict[str, Any] = {
        "name": "Weekday lunch",
        "available_days": [],
        "items": '[{"name": "Dal", "quantity": "1 bowl"}, {"name": "Roti", "quantity": "4"}]',
    }
    defaults.update(kwargs)
    plan = MealPlan(
        house_id=house.id,
        price=Decimal(price),
        billing_cycle=billing_cycle,
        **defaults,
    )
    session.add(plan)
    session.commit()
    return plan


def identity_for(user: User) -> Identity:
    return Identity(subject_id=user.id, role=Role(user.role))
