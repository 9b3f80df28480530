"""Error taxonomy shared by the access guard, services, and API layer.

Services raise these; exception handlers registered in mealhouse.main turn
them into JSON responses. Only Conflict and StoreUnavailable are retryable.
"""


class MarketplaceError(Exception):
    """Base class for every error the marketplace surfaces to callers."""

    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidToken(MarketplaceError):
    """Bearer token missing a valid signature, expired, malformed, or with unknown claims."""

    status_code = 401

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class Unauthorized(MarketplaceError):
    """Identity could not be established (no credential, bad login)."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class Forbidden(MarketplaceError):
    """Identity established but not allowed to perform the action."""

    status_code = 403

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class NotFound(MarketplaceError):
    status_code = 404


class InvalidPlan(MarketplaceError):
    """Meal plan data violates its invariants or is unavailable for the request."""

    status_code = 422


class InvalidRequest(MarketplaceError):
    """Request body or query parameters failed validation."""

    status_code = 422


class IllegalTransition(MarketplaceError):
    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move order from '{current}' to '{target}'.")


class HasOpenOrders(MarketplaceError):
    """Deletion refused because non-terminal orders still reference the resource."""

    status_code = 409

    def __init__(self, resource: str, open_count: int) -> None:
        self.open_count = open_count
        super().__init__(
            f"{resource} has {open_count} open order(s); fulfil or cancel them first."
        )


class EmailAlreadyRegistered(MarketplaceError):
    status_code = 409

    def __init__(self) -> None:
        super().__init__("Email already registered.")


class Conflict(MarketplaceError):
    """Concurrent modification detected; the caller may retry with backoff."""

    status_code = 409
    retryable = True


class StoreUnavailable(MarketplaceError):
    """Backing store timed out or refused the connection; retryable."""

    status_code = 503
    retryable = True

    def __init__(self, message: str = "Data store unavailable; try again later.") -> None:
        super().__init__(message)
