"""
streamcart_orders.services.user_directory

Credential lookup/verification and uniqueness checks over user records.

Responsibilities:
- Register users (username checked before email; first conflict wins).
- Authenticate username/password with a single indistinguishable failure.
- Resolve usernames for the auth middleware and the order workflow.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from streamcart_orders.auth.passwords import PasswordHasher
from streamcart_orders.db.models import User
from streamcart_orders.errors import ConflictError, InvalidCredentialsError
from streamcart_orders.observability.logging import get_logger

log = get_logger(__name__)


class UserStore(Protocol):
    async def find_by_username(self, username: str) -> User | None: ...

    async def exists_by_username(self, username: str) -> bool: ...

    async def exists_by_email(self, email: str) -> bool: ...

    async def save(self, user: User) -> User: ...


def _utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(tzinfo=None)


class UserDirectory:
    def __init__(
        self,
        *,
        users: UserStore,
        hasher: PasswordHasher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._users = users
        self._hasher = hasher
        self._clock = clock

    async def register(
        self,
        *,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> User:
        log.info("user_registration_requested", username=username)
        await self._ensure_unique(username=username, email=email)

        user = User(
            username=username,
            email=email,
            password_hash=await self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            created_at=self._clock(),
        )
        try:
            await self._users.save(user)
        except IntegrityError:
            # Lost a race against a concurrent registration; report it like the pre-check would.
            await self._ensure_unique(username=username, email=email)
            raise

        log.info("user_registered", username=username, user_id=user.id)
        return user

    async def authenticate(self, *, username: str, password: str) -> User:
        user = await self._users.find_by_username(username)
        if user is None:
            # Spend the same bcrypt cost as a real comparison before failing.
            await self._hasher.verify_dummy(password)
            log.info("login_failed", username=username)
            raise InvalidCredentialsError()

        if not await self._hasher.verify(password, user.password_hash):
            log.info("login_failed", username=username)
            raise InvalidCredentialsError()

        user.last_login_at = self._clock()
        await self._users.save(user)
        log.info("login_succeeded", username=username)
        return user

    async def load_for_authentication(self, username: str) -> User | None:
        return await self._users.find_by_username(username)

    async def find_by_username(self, username: str) -> User | None:
        return await self._users.find_by_username(username)

    async def _ensure_unique(self, *, username: str, email: str) -> None:
        # Order matters: a request colliding on both reports the username.
        if await self._users.exists_by_username(username):
            log.info("user_registration_conflict", field="username", username=username)
            raise ConflictError("username", username)
        if await self._users.exists_by_email(email):
            log.info("user_registration_conflict", field="email", username=username)
            raise ConflictError("email", email)


# --- Module Notes -----------------------------------------------------------
# There is no lockout or throttling on failed logins; repeated attempts are allowed.
