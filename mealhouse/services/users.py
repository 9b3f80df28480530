"""Account registration and credential checks."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mealhouse.core.errors import EmailAlreadyRegistered, Forbidden, Unauthorized
from mealhouse.core.security import hash_password, verify_password
from mealhouse.domain.enums import Role
from mealhouse.models import User

logger = logging.getLogger(__name__)

# Same message for unknown email and wrong password (no account enumeration).
INVALID_CREDENTIALS = "Invalid email or password."

# Compared against when the email is unknown so both paths cost one bcrypt check.
_DUMMY_HASH = hash_password("not-a-real-password", rounds=4)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(session: Session, email: str) -> User | None:
    return session.execute(
        select(User).where(User.email == normalize_email(email))
    ).scalar_one_or_none()


def register_user(
    session: Session,
    email: str,
    password: str,
    name: str | None = None,
    role: Role = Role.USER,
    bcrypt_rounds: int = 12,
    allow_admin: bool = False,
) -> User:
    """Create an account. Raises EmailAlreadyRegistered if the email is taken."""
    if role is Role.ADMIN and not allow_admin:
        raise Forbidden("Admin accounts cannot be self-registered.")
    normalized = normalize_email(email)
    if get_user_by_email(session, normalized) is not None:
        raise EmailAlreadyRegistered()
    user = User(
        email=normalized,
        name=name.strip() if name and name.strip() else None,
        password_hash=hash_password(password, rounds=bcrypt_rounds),
        role=role.value,
    )
    session.add(user)
    try:
        session.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        session.rollback()
        raise EmailAlreadyRegistered() from None
    logger.info("Registered user id=%s role=%s", user.id, user.role)
    return user


def authenticate_credentials(session: Session, email: str, password: str) -> User:
    """Return the user for valid credentials; raise Unauthorized otherwise."""
    user = get_user_by_email(session, email)
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise Unauthorized(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        raise Unauthorized(INVALID_CREDENTIALS)
    return user


def list_users(session: Session) -> list[User]:
    return list(session.execute(select(User).order_by(User.created_at, User.id)).scalars())
