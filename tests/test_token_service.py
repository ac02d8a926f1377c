"""
tests.test_token_service

Token issuing/validation: signature, expiry window, subject binding, soft failures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from streamcart_orders.auth.jwt import JwtConfig, TokenService

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(tz=UTC))


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(cfg=JwtConfig(alg="HS256", secret=SECRET), clock=clock)


def test_token_has_three_segments_and_only_core_claims(tokens: TokenService) -> None:
    token = tokens.issue("u1")
    assert token.count(".") == 2

    claims = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert set(claims) == {"sub", "iat", "exp"}
    assert claims["sub"] == "u1"
    assert claims["exp"] - claims["iat"] == 15 * 60


def test_validates_before_expiry_and_fails_after(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("u1")
    assert tokens.validate(token, "u1") is True

    clock.advance(minutes=14, seconds=58)
    assert tokens.validate(token, "u1") is True

    clock.advance(minutes=1, seconds=3)
    assert tokens.validate(token, "u1") is False


def test_validate_rejects_other_subject(tokens: TokenService) -> None:
    token = tokens.issue("u1")
    assert tokens.validate(token, "u2") is False


def test_validate_rejects_token_signed_with_another_secret(clock: FakeClock) -> None:
    foreign = TokenService(cfg=JwtConfig(alg="HS256", secret="x" * 48), clock=clock)
    ours = TokenService(cfg=JwtConfig(alg="HS256", secret=SECRET), clock=clock)
    token = foreign.issue("u1")

    assert ours.validate(token, "u1") is False
    assert ours.extract_subject(token) is None


def test_validate_rejects_tampered_claims(tokens: TokenService) -> None:
    header, _, signature = tokens.issue("u1").split(".")
    forged_claims = jwt.encode(
        {"sub": "admin", "iat": 0, "exp": 2**31}, "o" * 48, algorithm="HS256"
    )
    forged = ".".join([header, forged_claims.split(".")[1], signature])

    assert tokens.validate(forged, "admin") is False
    assert tokens.extract_subject(forged) is None


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "...", "Bearer xyz"])
def test_malformed_tokens_are_soft_failures(tokens: TokenService, garbage: str) -> None:
    assert tokens.validate(garbage, "u1") is False
    assert tokens.extract_subject(garbage) is None


def test_token_missing_expiry_is_rejected(tokens: TokenService) -> None:
    token = jwt.encode({"sub": "u1", "iat": 0}, SECRET, algorithm="HS256")
    assert tokens.validate(token, "u1") is False
    assert tokens.extract_subject(token) is None


def test_extract_subject_ignores_expiry(tokens: TokenService, clock: FakeClock) -> None:
    token = tokens.issue("u1")
    clock.advance(hours=2)

    assert tokens.extract_subject(token) == "u1"
    assert tokens.validate(token, "u1") is False


def test_ttl_follows_config(clock: FakeClock) -> None:
    short = TokenService(
        cfg=JwtConfig(alg="HS256", secret=SECRET, ttl=timedelta(minutes=1)), clock=clock
    )
    token = short.issue("u1")
    clock.advance(seconds=61)
    assert short.validate(token, "u1") is False
