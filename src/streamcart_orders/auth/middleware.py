"""
streamcart_orders.auth.middleware

Per-request bearer token → identity resolution.

Responsibilities:
- Turn `Authorization: Bearer <token>` into an `Identity` on `request.state`.
- Fail open to anonymous on every problem (missing/malformed/expired token,
  unknown user, lookup fault); the workflow layer decides what anonymity means.
- Bind the authenticated subject into the request's log context.
"""

from __future__ import annotations

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from streamcart_orders.auth.jwt import TokenService
from streamcart_orders.auth.models import ANONYMOUS, Identity
from streamcart_orders.auth.passwords import PasswordHasher
from streamcart_orders.db.repositories.users import UserRepo
from streamcart_orders.observability.logging import get_logger
from streamcart_orders.services.user_directory import UserDirectory

log = get_logger(__name__)

_BEARER_PREFIX = "bearer "


def bearer_token(request: Request) -> str | None:
    header = request.headers.get("authorization")
    if not header or not header.lower().startswith(_BEARER_PREFIX):
        return None
    token = header[len(_BEARER_PREFIX) :].strip()
    return token or None


class BearerIdentityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        # request.state lives exactly as long as this request.
        request.state.identity = ANONYMOUS

        token = bearer_token(request)
        if token is None:
            log.debug("no_bearer_token")
        else:
            try:
                identity = await self._resolve(request, token)
            except Exception as e:
                log.error("identity_resolution_failed", error_type=type(e).__name__, error=str(e))
                identity = None
            if identity is not None and not request.state.identity.is_authenticated:
                request.state.identity = identity
                structlog.contextvars.bind_contextvars(subject=identity.subject)

        return await call_next(request)

    async def _resolve(self, request: Request, token: str) -> Identity | None:
        tokens: TokenService = request.app.state.token_service
        subject = tokens.extract_subject(token)
        if subject is None:
            log.info("bearer_token_unreadable")
            return None

        hasher: PasswordHasher = request.app.state.password_hasher
        async with request.app.state.sessionmaker() as session:
            directory = UserDirectory(users=UserRepo(session), hasher=hasher)
            user = await directory.load_for_authentication(subject)
        if user is None:
            log.warning("bearer_subject_unknown", subject=subject)
            return None

        if not tokens.validate(token, user.username):
            log.warning("bearer_token_invalid", subject=subject)
            return None

        log.debug("bearer_token_accepted", subject=subject)
        return Identity.authenticated(user.username)


# --- Module Notes -----------------------------------------------------------
# No exception leaves `dispatch` from the identity path; downstream handlers run
# either way and read the result via `auth.deps.current_identity`.
