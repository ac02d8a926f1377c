"""
streamcart_orders.db.repositories.orders

Repository for `Order` aggregates (order header + items).

Responsibilities:
- Persist an order together with its items as one committed unit.
- Fetch a single order by id and list the orders of one owner.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from streamcart_orders.db.models import Order, User


class OrderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, order: Order) -> Order:
        # Items cascade from the order, so header and lines share this one transaction.
        self._session.add(order)
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
        return order

    async def find_by_id(self, order_id: str) -> Order | None:
        return await self._session.get(Order, order_id)

    async def find_by_owner(self, username: str) -> list[Order]:
        stmt = (
            select(Order)
            .join(User, Order.user_id == User.id)
            .where(User.username == username)
            .order_by(Order.created_at, Order.id)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Nothing here spans the event channel: publishing happens only after `save` returns.
