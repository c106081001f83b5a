"""
Event publisher for sale domain events.
Publishes to Redis pub/sub topics with graceful degradation to log-only delivery.
"""

import logging
import json
import uuid
from typing import Optional

import redis
from redis.exceptions import RedisError, ConnectionError, TimeoutError
from flask import Flask

from sales_backend.domain.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """
    Fire-and-forget publisher for domain events.

    Delivery is best effort: when Redis is disabled or unreachable the message
    is only logged, and a failed publish never propagates to the caller.
    """

    def __init__(self, app: Optional[Flask] = None, client: Optional[redis.Redis] = None):
        """Initialize publisher; ``client`` overrides the Redis connection."""
        self.client = client
        self._enabled: bool = client is not None
        self._prefix: str = "sales"

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize Redis client from Flask app config."""
        self._prefix = app.config.get('EVENTS_TOPIC_PREFIX', 'sales')

        if self.client is not None:
            self._enabled = True
            return

        self._enabled = app.config.get('EVENTS_ENABLED', True)
        redis_url = app.config.get('REDIS_URL', 'redis://redis:6379/0')

        if not self._enabled:
            logger.info("[EVENTS] Redis publishing is DISABLED via config, events will only be logged")
            return

        try:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
                retry_on_timeout=True,
                health_check_interval=30
            )
            self.client.ping()
            logger.info(f"[EVENTS] ✓ Redis connected: {redis_url}")
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"[EVENTS] ⚠ Redis connection failed: {e}. Events will only be logged.")
            self._enabled = False
            self.client = None

    @property
    def enabled(self) -> bool:
        return self._enabled and self.client is not None

    def topic_for(self, event: DomainEvent) -> str:
        return event.default_topic(self._prefix)

    def publish(self, event: DomainEvent, topic: Optional[str] = None) -> str:
        """
        Publish ``event`` to ``topic`` (default: derived from the event type).

        Returns the generated message id.
        """
        topic = topic or self.topic_for(event)
        message_id = str(uuid.uuid4())
        body = json.dumps({'message_id': message_id, **event.to_dict()}, default=str)

        logger.info(
            f"[EVENTS] Publishing message to topic '{topic}' | Message ID: {message_id} "
            f"| Event Type: {event.event_type()}"
        )
        logger.debug(f"[EVENTS] Message body: {body}")

        if not self.enabled:
            return message_id

        try:
            receivers = self.client.publish(topic, body)
            logger.info(f"[EVENTS] ✓ Published message {message_id} to '{topic}' ({receivers} subscriber(s))")
        except RedisError as e:
            logger.error(f"[EVENTS] ✗ Failed to publish message {message_id} to '{topic}': {e}")

        return message_id


_publisher: Optional[EventPublisher] = None

def init_events(app: Flask, client: Optional[redis.Redis] = None) -> EventPublisher:
    """Initialize event publisher singleton."""
    global _publisher
    _publisher = EventPublisher(app, client=client)
    if not hasattr(app, 'extensions'):
        app.extensions = {}
    app.extensions['events'] = _publisher
    return _publisher

def get_publisher() -> EventPublisher:
    """Get event publisher instance."""
    if _publisher is None:
        raise RuntimeError("Event publisher not initialized.")
    return _publisher
