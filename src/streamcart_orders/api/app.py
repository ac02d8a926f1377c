"""
streamcart_orders.api.app

FastAPI app factory for the StreamCart order service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine, token service,
  password hasher, event publisher) over the app lifespan.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from kafka.errors import KafkaError

from streamcart_orders import __version__
from streamcart_orders.api.errors import install_exception_handlers
from streamcart_orders.api.routers.auth import router as auth_router
from streamcart_orders.api.routers.health import router as health_router
from streamcart_orders.api.routers.orders import router as orders_router
from streamcart_orders.auth.jwt import TokenService
from streamcart_orders.auth.middleware import BearerIdentityMiddleware
from streamcart_orders.auth.passwords import PasswordHasher
from streamcart_orders.db.init_db import init_db
from streamcart_orders.db.session import create_engine, create_sessionmaker
from streamcart_orders.events.publisher import (
    OrderEventPublisher,
    RecordSender,
    create_producer,
)
from streamcart_orders.observability.logging import configure_logging, get_logger
from streamcart_orders.observability.middleware import RequestContextMiddleware
from streamcart_orders.settings import Settings

log = get_logger(__name__)


def _open_producer(settings: Settings) -> RecordSender | None:
    if not settings.kafka_enabled:
        return None
    try:
        return create_producer(settings)
    except KafkaError as e:
        # Orders are still accepted; their events are logged as skipped.
        log.error(
            "event_producer_unavailable",
            bootstrap_servers=settings.kafka_bootstrap_servers,
            error=str(e),
        )
        return None


def create_app(*, settings: Settings, producer: RecordSender | None = None) -> FastAPI:
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)

        app.state.token_service = TokenService.from_settings(settings)
        app.state.password_hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        publisher = OrderEventPublisher(
            producer=producer if producer is not None else _open_producer(settings),
            topic=settings.order_created_topic,
            send_timeout=settings.kafka_send_timeout_seconds,
        )
        app.state.event_publisher = publisher
        try:
            yield
        finally:
            # Let in-flight emissions finish logging before the producer goes away.
            await publisher.drain()
            await asyncio.to_thread(publisher.close)
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="StreamCart Order Service",
        version=__version__,
        lifespan=lifespan,
    )

    # Starlette runs the last-added middleware first: request context wraps identity.
    app.add_middleware(BearerIdentityMiddleware)
    app.add_middleware(RequestContextMiddleware)
    install_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(orders_router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; business logic stays
# in the services layer.
