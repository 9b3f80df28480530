"""ORM model for marketplace accounts (auth and RBAC)."""

from sqlalchemy import Column, DateTime, String

from mealhouse.models.base import Base, new_id, utcnow


class User(Base):
    """
    Account for JWT authentication and role-based access control.

    email is stored lower-cased so uniqueness is case-insensitive.
    role: 'user', 'owner' or 'admin'; not changed by any endpoint.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
