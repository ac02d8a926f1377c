"""
streamcart_orders.auth.jwt

Signed identity token issuing and validation.

Responsibilities:
- Issue short-lived HS256 JWTs carrying only `sub`, `iat` and `exp`.
- Validate signature, expiry and subject without ever raising on bad input.
- Extract the subject of a well-signed token ahead of the directory lookup.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from streamcart_orders.observability.logging import get_logger
from streamcart_orders.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    secret: str
    ttl: timedelta = timedelta(minutes=15)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class TokenService:
    def __init__(self, *, cfg: JwtConfig, clock: Callable[[], datetime] = _utcnow) -> None:
        self._cfg = cfg
        # Expiry is compared against this clock, not PyJWT's, so it can be driven in tests.
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenService:
        return cls(
            cfg=JwtConfig(
                alg=settings.jwt_alg,
                secret=settings.jwt_secret,
                ttl=timedelta(minutes=settings.token_ttl_minutes),
            )
        )

    def issue(self, subject: str) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": subject,
            "iat": int(now.timestamp()),
            "exp": int((now + self._cfg.ttl).timestamp()),
        }
        return jwt.encode(payload, self._cfg.secret, algorithm=self._cfg.alg)

    def validate(self, token: str, expected_subject: str) -> bool:
        claims = self._decode(token)
        if claims is None:
            return False
        if self._clock().timestamp() >= claims["exp"]:
            log.info("token_expired", subject=claims["sub"])
            return False
        return claims["sub"] == expected_subject

    def extract_subject(self, token: str) -> str | None:
        claims = self._decode(token)
        if claims is None:
            return None
        return claims["sub"] or None

    def _decode(self, token: str) -> dict[str, Any] | None:
        try:
            claims = jwt.decode(
                token,
                self._cfg.secret,
                algorithms=[self._cfg.alg],
                options={
                    "require": ["exp", "iat", "sub"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except InvalidTokenError as e:
            log.info("token_rejected", reason=str(e))
            return None
        if not isinstance(claims.get("sub"), str) or not isinstance(claims.get("exp"), int):
            log.info("token_rejected", reason="malformed claims")
            return None
        return claims


# --- Module Notes -----------------------------------------------------------
# Every failure path returns False/None: callers treat a bad token exactly like a
# missing one, and the workflow layer decides whether anonymity is acceptable.
