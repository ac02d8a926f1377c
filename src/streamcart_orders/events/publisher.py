"""
streamcart_orders.events.publisher

Order-created event publisher (Kafka).

Responsibilities:
- Build the kafka-python producer from settings.
- Publish events keyed by order id without blocking the caller.
- Log delivery outcome (partition/offset or failure); never retry, never raise.
- Track in-flight deliveries so shutdown can wait for them.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Protocol

from kafka import KafkaProducer

from streamcart_orders.events.models import OrderCreatedEvent
from streamcart_orders.observability.logging import get_logger
from streamcart_orders.settings import Settings

log = get_logger(__name__)


class RecordSender(Protocol):
    def send(self, topic: str, value: Any = None, key: Any = None) -> Any: ...

    def flush(self, timeout: float | None = None) -> None: ...

    def close(self, timeout: float | None = None) -> None: ...


def create_producer(settings: Settings) -> KafkaProducer:
    return KafkaProducer(
        bootstrap_servers=settings.kafka_bootstrap_servers.split(","),
        client_id=settings.kafka_client_id,
        key_serializer=lambda k: k.encode("utf-8"),
        value_serializer=lambda v: json.dumps(v).encode("utf-8"),
        acks="all",
        # Best-effort delivery: a failed send is logged, not retried.
        retries=0,
    )


class OrderEventPublisher:
    def __init__(
        self,
        *,
        producer: RecordSender | None,
        topic: str = "order.created",
        send_timeout: float = 10.0,
    ) -> None:
        self._producer = producer
        self._topic = topic
        self._send_timeout = send_timeout
        self._in_flight: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> frozenset[asyncio.Task[Any]]:
        return frozenset(self._in_flight)

    def publish(self, event: OrderCreatedEvent) -> asyncio.Task[Any] | None:
        """
        Schedule delivery and return immediately.

        The returned task resolves to the broker's record metadata, or None when the
        send failed; failures are visible only in the logs.
        """

        if self._producer is None:
            log.warning("order_event_skipped", order_id=event.order_id, reason="no producer")
            return None

        log.info("order_event_publishing", order_id=event.order_id, topic=self._topic)
        task = asyncio.get_running_loop().create_task(
            self._deliver(event), name=f"order-created:{event.order_id}"
        )
        # Keep a strong reference until the task finishes.
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def drain(self) -> None:
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def close(self) -> None:
        if self._producer is None:
            return
        self._producer.flush(timeout=self._send_timeout)
        self._producer.close(timeout=self._send_timeout)

    async def _deliver(self, event: OrderCreatedEvent) -> Any:
        try:
            # send() may block on cluster metadata and get() waits for the ack.
            metadata = await asyncio.to_thread(self._send_and_wait, event)
        except Exception as e:
            log.error(
                "order_event_publish_failed",
                order_id=event.order_id,
                topic=self._topic,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        log.info(
            "order_event_published",
            order_id=event.order_id,
            topic=self._topic,
            partition=getattr(metadata, "partition", None),
            offset=getattr(metadata, "offset", None),
        )
        return metadata

    def _send_and_wait(self, event: OrderCreatedEvent) -> Any:
        future = self._producer.send(self._topic, value=event.to_payload(), key=event.order_id)
        return future.get(timeout=self._send_timeout)


# --- Module Notes -----------------------------------------------------------
# Keying by order id keeps every event of one order on one partition, so per-order
# ordering holds while the topic as a whole stays unordered.
