"""
streamcart_orders.errors

Domain error taxonomy.

Responsibilities:
- Define the exceptions raised by the user directory and the order workflow.
- Carry enough context for the API layer to map each kind to an HTTP status.

Token parsing/validation problems are deliberately absent here: they degrade to an
anonymous request instead of raising.
"""

from __future__ import annotations


class OrderServiceError(Exception):
    """Base class for every domain error surfaced by the service layer."""

    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(OrderServiceError):
    kind = "validation_error"


class ConflictError(OrderServiceError):
    """A uniqueness constraint (username or email) is already taken."""

    kind = "conflict"

    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"{field.capitalize()} already exists: {value}")
        self.field = field
        self.value = value


class InvalidCredentialsError(OrderServiceError):
    kind = "invalid_credentials"

    def __init__(self) -> None:
        # One message for unknown username and wrong password alike.
        super().__init__("Invalid username or password")


class UnauthorizedError(OrderServiceError):
    kind = "unauthorized"

    def __init__(self, message: str = "No authenticated user found") -> None:
        super().__init__(message)


class ForbiddenError(OrderServiceError):
    kind = "forbidden"


class NotFoundError(OrderServiceError):
    kind = "not_found"


class UnknownIdentityError(OrderServiceError):
    """The authenticated subject no longer resolves to a stored user."""

    kind = "unknown_identity"

    def __init__(self, subject: str) -> None:
        super().__init__(f"User not found: {subject}")
        self.subject = subject
