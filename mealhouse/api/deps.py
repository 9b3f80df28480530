"""Access guard: bearer authentication and role gates as FastAPI dependencies.

Handlers receive the resolved Identity as a dependency value; nothing is
attached to the request object.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mealhouse.core.config import Settings
from mealhouse.core.errors import Forbidden, InvalidRequest, Unauthorized
from mealhouse.core.security import TokenVerifier
from mealhouse.domain.enums import Role
from mealhouse.schemas.auth import Identity

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def resolve_from(value: datetime | None) -> datetime:
    """Anchor for schedule queries: now (UTC) when omitted; naive values are rejected."""
    if value is None:
        return datetime.now(UTC)
    if value.tzinfo is None:
        raise InvalidRequest("from: must include a timezone offset.")
    return value


def authenticate(
    credentials: HTTPAuthorizationCredentials | None,
    verifier: TokenVerifier,
) -> Identity:
    """
    Resolve the caller's identity from a bearer credential.

    No credential raises Unauthorized; a credential that fails verification
    raises InvalidToken (both 401).
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    return verifier.verify(credentials.credentials)


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> Identity:
    """Dependency: require a valid Bearer JWT and return the caller's Identity."""
    return authenticate(credentials, verifier)


def require_role(*allowed: Role) -> Callable[..., Identity]:
    """
    Build a dependency that authenticates, then admits only the given roles.

    Usage: `identity: Annotated[Identity, Depends(require_role(Role.OWNER, Role.ADMIN))]`
    """
    if not allowed:
        raise ValueError("require_role needs at least one role")
    allowed_roles = frozenset(Role(r) for r in allowed)

    def dependency(
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        if identity.role not in allowed_roles:
            logger.warning(
                "Role %s denied; requires one of %s",
                identity.role.value,
                sorted(r.value for r in allowed_roles),
            )
            raise Forbidden(
                f"Requires role: {', '.join(sorted(r.value for r in allowed_roles))}"
            )
        return identity

    return dependency


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
HouseManager = Annotated[Identity, Depends(require_role(Role.OWNER, Role.ADMIN))]
AdminIdentity = Annotated[Identity, Depends(require_role(Role.ADMIN))]
