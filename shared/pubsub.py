import logging
from typing import Iterator, Optional

import redis

from .events import Event

logger = logging.getLogger(__name__)


def auction_channel(tournament_id: int) -> str:
    return f"tournament:{tournament_id}:auction"


def event_log_key(tournament_id: int) -> str:
    return f"tournament:{tournament_id}:event_log"


class LiveFeed:
    """
    Publishes auction-floor events to Redis so screens watching the auction
    can follow along. Publishing is best effort: a Redis outage is logged and
    never undoes the database write that produced the event.
    """

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        self.redis = redis_client

    @classmethod
    def from_url(cls, redis_url: Optional[str]) -> "LiveFeed":
        if not redis_url:
            return cls(None)
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        return cls(client)

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def publish(self, event: Event) -> bool:
        if not self.enabled:
            return False
        try:
            payload = event.to_json()
            self.redis.publish(auction_channel(event.tournament_id), payload)
            key = event_log_key(event.tournament_id)
            self.redis.lpush(key, payload)
            self.redis.ltrim(key, 0, 199)
            return True
        except redis.RedisError as e:
            logger.warning(f"Live feed publish failed for tournament {event.tournament_id}: {e}")
            return False

    def recent_events(self, tournament_id: int, count: int = 50) -> list:
        if not self.enabled:
            return []
        events_json = self.redis.lrange(event_log_key(tournament_id), 0, count - 1)
        return [Event.from_json(e) for e in events_json]

    def stream(self, tournament_id: int, keepalive: int = 30) -> Iterator[str]:
        """Yield server-sent-event frames for one tournament's auction channel."""
        pubsub = self.redis.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(auction_channel(tournament_id))

        yield f"data: {{\"type\":\"connected\",\"tournament_id\":{tournament_id}}}\n\n"

        try:
            while True:
                message = pubsub.get_message(timeout=keepalive)
                if message and message['type'] == 'message':
                    yield f"data: {message['data']}\n\n"
                else:
                    yield ": keepalive\n\n"
        finally:
            pubsub.close()

    def ping(self) -> bool:
        if not self.enabled:
            return False
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False
