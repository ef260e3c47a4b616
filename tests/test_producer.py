import pytest
from kafka.errors import KafkaError, NoBrokersAvailable

from storefront.events import producer


class RecordingProducer:
    def __init__(self):
        self.sent = []

    def send(self, topic, key=None, value=None):
        self.sent.append((topic, key, value))
        return PendingDelivery()

    def flush(self, timeout=None):
        raise AssertionError("requests must not wait for delivery")


class PendingDelivery:
    def __init__(self):
        self.errbacks = []

    def add_errback(self, f, *args):
        self.errbacks.append((f, args))
        return self


@pytest.fixture
def fresh_producer(monkeypatch):
    monkeypatch.setattr(producer, "_producer", None)
    monkeypatch.setattr(producer, "_retry_after", 0.0)


def test_send_queues_without_flushing(monkeypatch, fresh_producer):
    fake = RecordingProducer()
    monkeypatch.setattr(producer, "_producer", fake)

    future = producer.send("order.events", key="1", value={"type": "order.created"})

    assert fake.sent == [("order.events", "1", {"type": "order.created"})]
    assert future.errbacks[0][1] == ("order.events", "1")


def test_unreachable_broker_is_not_retried_on_every_send(monkeypatch, fresh_producer):
    attempts = []

    def unreachable(**config):
        attempts.append(config)
        raise NoBrokersAvailable()
    monkeypatch.setattr(producer, "KafkaProducer", unreachable)

    with pytest.raises(KafkaError):
        producer.send("order.events", key="1", value={})
    with pytest.raises(producer.ProducerUnavailable):
        producer.send("order.events", key="2", value={})

    assert len(attempts) == 1
    assert attempts[0]["max_block_ms"] > 0


def test_connect_is_retried_after_cooldown(monkeypatch, fresh_producer):
    fake = RecordingProducer()
    monkeypatch.setattr(producer, "_retry_after", 100.0)
    monkeypatch.setattr(producer.time, "monotonic", lambda: 200.0)
    monkeypatch.setattr(producer, "KafkaProducer", lambda **config: fake)

    producer.send("order.events", key="3", value={})
    assert len(fake.sent) == 1
