"""
tests.conftest

Shared fixtures: isolated settings, in-memory event producer, app + ASGI client.
"""

from __future__ import annotations

import zlib
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from streamcart_orders.api.app import create_app
from streamcart_orders.settings import Settings

TEST_SECRET = "test-signing-secret-with-at-least-32-bytes"


@dataclass(frozen=True)
class FakeRecordMetadata:
    topic: str
    partition: int
    offset: int


class FakeSendFuture:
    def __init__(
        self, *, metadata: FakeRecordMetadata | None = None, error: Exception | None = None
    ) -> None:
        self._metadata = metadata
        self._error = error

    def get(self, timeout: float | None = None) -> FakeRecordMetadata:
        if self._error is not None:
            raise self._error
        assert self._metadata is not None
        return self._metadata


class FakeProducer:
    """Stands in for KafkaProducer: records sends, partitions by key hash."""

    def __init__(self, *, error: Exception | None = None, partitions: int = 3) -> None:
        self.sent: list[tuple[str, Any, Any]] = []
        self.error = error
        self.partitions = partitions
        self.flushed = False
        self.closed = False

    def send(self, topic: str, value: Any = None, key: Any = None) -> FakeSendFuture:
        self.sent.append((topic, key, value))
        if self.error is not None:
            return FakeSendFuture(error=self.error)
        partition = zlib.crc32(str(key).encode("utf-8")) % self.partitions
        return FakeSendFuture(
            metadata=FakeRecordMetadata(topic=topic, partition=partition, offset=len(self.sent) - 1)
        )

    def flush(self, timeout: float | None = None) -> None:
        self.flushed = True

    def close(self, timeout: float | None = None) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _uncached_structlog(monkeypatch: pytest.MonkeyPatch) -> None:
    # capture_logs() only observes loggers that are not cached on first use.
    monkeypatch.setattr("streamcart_orders.api.app.configure_logging", lambda **_: None)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        kafka_enabled=False,
    )


@pytest.fixture
def producer() -> FakeProducer:
    return FakeProducer()


@pytest_asyncio.fixture
async def app(settings: Settings, producer: FakeProducer) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings, producer=producer)
    # httpx's ASGITransport does not drive lifespan; do it explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register_user(
    client: httpx.AsyncClient,
) -> Callable[..., Awaitable[dict[str, str]]]:
    async def _register(
        username: str,
        *,
        email: str | None = None,
        password: str = "password123",
    ) -> dict[str, str]:
        r = await client.post(
            "/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@streamcart.io",
                "password": password,
                "firstName": "Test",
                "lastName": "User",
            },
        )
        assert r.status_code == 201, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}

    return _register
