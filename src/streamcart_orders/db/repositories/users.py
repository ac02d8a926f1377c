"""
streamcart_orders.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Look up users by username and check username/email uniqueness.
- Persist new users and login timestamp updates.
"""

from __future__ import annotations

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from streamcart_orders.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def exists_by_username(self, username: str) -> bool:
        stmt = select(exists().where(User.username == username))
        return bool((await self._session.execute(stmt)).scalar())

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(exists().where(User.email == email))
        return bool((await self._session.execute(stmt)).scalar())

    async def save(self, user: User) -> User:
        self._session.add(user)
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return user
