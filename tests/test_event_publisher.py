"""
tests.test_event_publisher

Order-created publisher: keying, payload shape, outcome logging, no retries.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from kafka.errors import KafkaError
from structlog.testing import capture_logs

from streamcart_orders.events.models import OrderCreatedEvent, OrderCreatedItem
from streamcart_orders.events.publisher import OrderEventPublisher

from conftest import FakeProducer


def _event(order_id: str = "order-1") -> OrderCreatedEvent:
    return OrderCreatedEvent(
        order_id=order_id,
        username="alice",
        total_amount=Decimal("50.50"),
        items=[
            OrderCreatedItem(
                product_id="P-1", product_name="Paper", quantity=2, price=Decimal("10.00")
            ),
            OrderCreatedItem(
                product_id="P-2", product_name="Stapler", quantity=1, price=Decimal("15.50")
            ),
            OrderCreatedItem(
                product_id="P-3", product_name="Pens", quantity=3, price=Decimal("5.00")
            ),
        ],
        timestamp=datetime(2025, 10, 20, 14, 30, 0),
    )


def test_payload_uses_wire_field_names_and_exact_amounts() -> None:
    payload = _event().to_payload()

    assert set(payload) == {"orderId", "username", "totalAmount", "items", "timestamp"}
    assert payload["totalAmount"] == "50.50"
    assert payload["items"][1] == {
        "productId": "P-2",
        "productName": "Stapler",
        "quantity": 1,
        "price": "15.50",
    }
    sent_at = datetime.fromisoformat(payload["timestamp"])
    assert sent_at.utcoffset() == timedelta(0)
    assert sent_at == datetime(2025, 10, 20, 14, 30, 0, tzinfo=UTC)


def test_timestamp_is_normalised_to_utc() -> None:
    local = datetime(2025, 10, 20, 16, 30, 0, tzinfo=timezone(timedelta(hours=2)))
    event = OrderCreatedEvent(
        order_id="order-1",
        username="alice",
        total_amount=Decimal("0.00"),
        items=[],
        timestamp=local,
    )

    assert event.timestamp.tzinfo is UTC
    assert event.timestamp == datetime(2025, 10, 20, 14, 30, 0, tzinfo=UTC)


@pytest.mark.asyncio
async def test_publish_keys_by_order_id_and_logs_partition() -> None:
    producer = FakeProducer()
    publisher = OrderEventPublisher(producer=producer, topic="order.created")

    with capture_logs() as logs:
        task = publisher.publish(_event("order-42"))
        assert task is not None
        metadata = await task

    topic, key, value = producer.sent[0]
    assert topic == "order.created"
    assert key == "order-42"
    assert value["orderId"] == "order-42"

    published = [e for e in logs if e["event"] == "order_event_published"]
    assert published[0]["partition"] == metadata.partition
    assert published[0]["offset"] == metadata.offset


@pytest.mark.asyncio
async def test_failed_send_is_logged_not_raised_or_retried() -> None:
    producer = FakeProducer(error=KafkaError("leader not available"))
    publisher = OrderEventPublisher(producer=producer)

    with capture_logs() as logs:
        task = publisher.publish(_event())
        result = await task

    assert result is None
    assert len(producer.sent) == 1
    failure = next(e for e in logs if e["event"] == "order_event_publish_failed")
    assert failure["log_level"] == "error"
    assert failure["error_type"] == "KafkaError"


@pytest.mark.asyncio
async def test_publish_returns_before_delivery_completes() -> None:
    publisher = OrderEventPublisher(producer=FakeProducer())

    task = publisher.publish(_event())

    assert task is not None
    assert not task.done()
    assert task in publisher.in_flight
    await publisher.drain()
    assert task.done()
    assert not publisher.in_flight


@pytest.mark.asyncio
async def test_without_producer_event_is_skipped() -> None:
    publisher = OrderEventPublisher(producer=None)

    with capture_logs() as logs:
        assert publisher.publish(_event()) is None

    assert logs[0]["event"] == "order_event_skipped"
    publisher.close()


def test_close_flushes_then_closes() -> None:
    producer = FakeProducer()
    OrderEventPublisher(producer=producer).close()

    assert producer.flushed
    assert producer.closed
