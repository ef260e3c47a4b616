from redis import Redis, RedisError
from storefront.core.config import settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

def event_key(event_id: str) -> str:
    return f"payment-event:{event_id}"

class ProcessedEvents:
    """Ids of payment events already turned into orders, kept for a TTL.

    Redis outages are logged and ignored: a redelivered event still cannot
    create a second order because its cart is gone after the first commit.
    """

    def __init__(self, client: Redis | None = None, ttl: int | None = None):
        self.redis = client or Redis.from_url(settings.REDIS_URL, decode_responses=True)
        self.ttl = ttl or settings.PROCESSED_EVENT_TTL_SECONDS

    def seen(self, event_id: str) -> bool:
        try:
            return bool(self.redis.exists(event_key(event_id)))
        except RedisError as e:
            logger.warning("Could not check payment event %s: %s", event_id, e)
            return False

    def remember(self, event_id: str) -> None:
        try:
            self.redis.set(event_key(event_id), "1", ex=self.ttl)
        except RedisError as e:
            logger.warning("Could not record payment event %s: %s", event_id, e)

_store: ProcessedEvents | None = None

def get_processed_events() -> ProcessedEvents:
    global _store
    if _store is None:
        _store = ProcessedEvents()
    return _store
