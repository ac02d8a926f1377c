"""
streamcart_orders.events.models

Event payload schemas published to downstream consumers.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from streamcart_orders.db.models import Order


class _EventModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class OrderCreatedItem(_EventModel):
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


class OrderCreatedEvent(_EventModel):
    order_id: str
    username: str
    total_amount: Decimal
    items: list[OrderCreatedItem]
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # Storage clocks are naive UTC; the wire always carries an explicit offset.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @classmethod
    def from_order(cls, order: Order, *, timestamp: datetime) -> OrderCreatedEvent:
        return cls(
            order_id=order.id,
            username=order.owner,
            total_amount=order.total_amount,
            items=[
                OrderCreatedItem(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in order.items
            ],
            timestamp=timestamp,
        )

    def to_payload(self) -> dict[str, Any]:
        # JSON mode renders Decimals as strings, so amounts stay exact on the wire.
        return self.model_dump(mode="json", by_alias=True)
