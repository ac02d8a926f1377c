"""
streamcart_orders.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide request-scoped DB sessions.
- Build the user directory and order workflow over that session.
- Encapsulate app.state access patterns (sessionmaker, token service, publisher).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from streamcart_orders.auth.jwt import TokenService
from streamcart_orders.db.repositories.orders import OrderRepo
from streamcart_orders.db.repositories.users import UserRepo
from streamcart_orders.services.order_workflow import OrderWorkflow
from streamcart_orders.services.user_directory import UserDirectory


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created during app lifespan startup in `streamcart_orders.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback happens in the repositories' save().
    async with session_factory() as session:
        yield session


def token_service(request: Request) -> TokenService:
    return request.app.state.token_service  # type: ignore[attr-defined]


def user_directory(
    request: Request,
    session: AsyncSession = Depends(db_session),
) -> UserDirectory:
    return UserDirectory(users=UserRepo(session), hasher=request.app.state.password_hasher)


def order_workflow(
    request: Request,
    session: AsyncSession = Depends(db_session),
    directory: UserDirectory = Depends(user_directory),
) -> OrderWorkflow:
    return OrderWorkflow(
        orders=OrderRepo(session),
        users=directory,
        publisher=request.app.state.event_publisher,
    )
