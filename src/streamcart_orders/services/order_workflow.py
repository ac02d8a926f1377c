"""
streamcart_orders.services.order_workflow

Order workflow (ownership + totals + persistence + event hand-off).

Responsibilities:
- Reject anonymous callers before any storage access.
- Create orders for the caller: validate lines, derive the exact decimal total,
  persist order + items atomically, then hand the event to the publisher.
- Enforce ownership on single-order reads; list the caller's own orders.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, Protocol

from streamcart_orders.auth.models import Identity
from streamcart_orders.db.models import Order, OrderItem, OrderStatus, User
from streamcart_orders.errors import (
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    UnknownIdentityError,
    ValidationError,
)
from streamcart_orders.events.models import OrderCreatedEvent
from streamcart_orders.observability.logging import get_logger

log = get_logger(__name__)


class OrderStore(Protocol):
    async def save(self, order: Order) -> Order: ...

    async def find_by_id(self, order_id: str) -> Order | None: ...

    async def find_by_owner(self, username: str) -> list[Order]: ...


class UserLookup(Protocol):
    async def find_by_username(self, username: str) -> User | None: ...


class EventPublisher(Protocol):
    def publish(self, event: OrderCreatedEvent) -> asyncio.Task[Any] | None: ...


@dataclass(frozen=True, slots=True)
class OrderLine:
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


CENTS = Decimal("0.01")
MAX_QUANTITY = 1_000_000
# Numeric(12, 2): ten integer digits.
MAX_AMOUNT = Decimal("9999999999.99")


def order_total(lines: Sequence[OrderLine]) -> Decimal:
    return sum((line.price * line.quantity for line in lines), Decimal("0")).quantize(CENTS)


def _validate_lines(lines: Sequence[OrderLine]) -> None:
    if not lines:
        raise ValidationError("Order must contain at least one item")
    for idx, line in enumerate(lines):
        if not line.product_id or not line.product_id.strip():
            raise ValidationError(f"items[{idx}]: product id is required")
        if not line.product_name or not line.product_name.strip():
            raise ValidationError(f"items[{idx}]: product name is required")
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int):
            raise ValidationError(f"items[{idx}]: quantity must be an integer")
        if line.quantity < 1:
            raise ValidationError(f"items[{idx}]: quantity must be positive")
        if line.quantity > MAX_QUANTITY:
            raise ValidationError(f"items[{idx}]: quantity must be at most {MAX_QUANTITY}")
        # Floats would reintroduce rounding drift into the total.
        if not isinstance(line.price, Decimal):
            raise ValidationError(f"items[{idx}]: price must be an exact decimal")
        if not line.price.is_finite() or line.price < 0:
            raise ValidationError(f"items[{idx}]: price must be non-negative")
        if line.price > MAX_AMOUNT:
            raise ValidationError(f"items[{idx}]: price must be at most {MAX_AMOUNT}")
        if line.price != line.price.quantize(CENTS):
            raise ValidationError(f"items[{idx}]: price must have at most 2 decimal places")
    if order_total(lines) > MAX_AMOUNT:
        raise ValidationError(f"Order total must be at most {MAX_AMOUNT}")


def _require_subject(identity: Identity | None) -> str:
    if identity is None or not identity.is_authenticated or not identity.subject:
        raise UnauthorizedError()
    return identity.subject


def _utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(tzinfo=None)


class OrderWorkflow:
    def __init__(
        self,
        *,
        orders: OrderStore,
        users: UserLookup,
        publisher: EventPublisher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._orders = orders
        self._users = users
        self._publisher = publisher
        self._clock = clock

    async def create_order(self, identity: Identity | None, lines: Sequence[OrderLine]) -> Order:
        subject = _require_subject(identity)
        _validate_lines(lines)
        log.info("order_create_requested", username=subject, item_count=len(lines))

        user = await self._users.find_by_username(subject)
        if user is None:
            log.error("order_owner_unresolved", username=subject)
            raise UnknownIdentityError(subject)

        order = Order(
            id=str(uuid.uuid4()),
            user_id=user.id,
            user=user,
            status=OrderStatus.PENDING,
            total_amount=order_total(lines),
            created_at=self._clock(),
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price=line.price.quantize(CENTS),
            )
            for line in lines
        ]

        await self._orders.save(order)
        log.info(
            "order_created",
            order_id=order.id,
            username=subject,
            total_amount=str(order.total_amount),
        )

        # After commit only; emission outcome never reaches the caller.
        self._emit_created(order)
        return order

    async def get_order(self, identity: Identity | None, order_id: str) -> Order:
        subject = _require_subject(identity)

        order = await self._orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order not found: {order_id}")
        if order.owner != subject:
            log.warning(
                "order_access_denied",
                order_id=order_id,
                username=subject,
                owner=order.owner,
            )
            raise ForbiddenError("Access denied: order does not belong to current user")
        return order

    async def list_orders(self, identity: Identity | None) -> list[Order]:
        subject = _require_subject(identity)
        log.info("orders_list_requested", username=subject)
        return await self._orders.find_by_owner(subject)

    def _emit_created(self, order: Order) -> None:
        event = OrderCreatedEvent.from_order(order, timestamp=self._clock())
        try:
            handle = self._publisher.publish(event)
        except Exception as e:
            log.error(
                "order_event_dispatch_failed",
                order_id=order.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return
        if handle is not None:
            log.debug("order_event_dispatched", order_id=order.id, task=handle.get_name())


# --- Module Notes -----------------------------------------------------------
# `get_order` answers Forbidden (not NotFound) for another user's order, which tells
# a non-owner that the id exists. That is the established API contract; changing it
# needs product sign-off.
