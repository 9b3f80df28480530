"""Registration, login, and the current-account endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from mealhouse.api.deps import CurrentIdentity, get_settings, get_token_verifier
from mealhouse.core.config import Settings
from mealhouse.core.database import get_db
from mealhouse.core.errors import Unauthorized
from mealhouse.core.security import TokenVerifier
from mealhouse.domain.enums import Role
from mealhouse.models import User
from mealhouse.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from mealhouse.services.users import authenticate_credentials, register_user

router = APIRouter()


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> RegisterResponse:
    """
    Create an account and return a token for it.
    Admin accounts can only be self-registered when ALLOW_SELF_REGISTER_ADMIN is set.
    """
    user = register_user(
        db,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
        allow_admin=settings.ALLOW_SELF_REGISTER_ADMIN,
    )
    token = verifier.issue(user.id, Role(user.role))
    return RegisterResponse(access_token=token, user=UserOut.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    user = authenticate_credentials(db, body.email, body.password)
    token = verifier.issue(user.id, Role(user.role))
    return TokenResponse(access_token=token, token_type="bearer")


@router.get("/me", response_model=UserOut)
def me(
    identity: CurrentIdentity,
    db: Annotated[Session, Depends(get_db)],
) -> UserOut:
    """Return the account behind the bearer token."""
    user = db.get(User, identity.subject_id)
    if user is None:
        raise Unauthorized()
    return UserOut.model_validate(user)
