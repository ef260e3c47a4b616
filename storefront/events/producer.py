"""Order lifecycle events on Kafka.

Consumers (shipping, notifications, analytics) live outside this service; the
only contract is the JSON document built by :func:`order_created`.
"""
import json
import time

from kafka import KafkaProducer
from kafka.errors import KafkaError

from storefront.core.config import settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

ORDER_CREATED = "order.created"

_producer = None
# monotonic deadline before which no new connection is attempted
_retry_after = 0.0


class ProducerUnavailable(KafkaError):
    """Raised without touching the network while the broker is known to be down."""


def get_producer() -> KafkaProducer:
    global _producer, _retry_after
    if _producer is None:
        if time.monotonic() < _retry_after:
            raise ProducerUnavailable("Kafka producer unavailable, retrying later")
        try:
            _producer = KafkaProducer(
                bootstrap_servers=settings.KAFKA_BOOTSTRAP.split(","),
                client_id="storefront",
                acks="all",
                value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
                key_serializer=lambda v: (v.encode("utf-8") if isinstance(v, str) else v),
                linger_ms=5,
                retries=3,
                max_block_ms=settings.KAFKA_MAX_BLOCK_MS,
            )
        except KafkaError:
            _retry_after = time.monotonic() + settings.KAFKA_RETRY_SECONDS
            raise
    return _producer


def order_created(order) -> dict:
    return {
        "type": ORDER_CREATED,
        "order_id": order.id,
        "user_id": order.user_id,
        "payment_method": order.payment_method,
        "is_paid": order.is_paid,
        "total_order_price": str(order.total_order_price),
        "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in order.items],
    }


def _delivery_failed(topic: str, key: str, exc):
    logger.error("Delivery of %s event %s failed: %s", topic, key, exc)


def send(topic: str, key: str, value: dict):
    # queued only; delivery happens in the producer's io thread and is flushed on shutdown
    future = get_producer().send(topic, key=key, value=value)
    future.add_errback(_delivery_failed, topic, key)
    return future


def close_producer():
    global _producer
    if _producer is not None:
        logger.info("Flushing and closing Kafka producer")
        _producer.close(timeout=5)
        _producer = None
