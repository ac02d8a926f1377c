"""
streamcart_orders.auth.deps

FastAPI dependencies exposing the request's resolved identity.
"""

from __future__ import annotations

from fastapi import Request

from streamcart_orders.auth.models import ANONYMOUS, Identity
from streamcart_orders.errors import UnauthorizedError


def current_identity(request: Request) -> Identity:
    # Set by BearerIdentityMiddleware; absent only if the middleware is not installed.
    return getattr(request.state, "identity", ANONYMOUS)


def require_authenticated(request: Request) -> Identity:
    identity = current_identity(request)
    if not identity.is_authenticated:
        raise UnauthorizedError()
    return identity
