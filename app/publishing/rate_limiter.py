"""
Secondary, short-window rate limiting for publishing.

Independent of the daily quota: it caps bursts (e.g. 10 publishes per minute)
per key. Storage defaults to process memory; point RATELIMIT_STORAGE_URI at a
shared backend (e.g. redis://host:port) when running several workers.
"""

import logging

from limits import parse
from limits.storage import storage_from_string
from limits.strategies import MovingWindowRateLimiter

from .models import RateLimitDecision

logger = logging.getLogger(__name__)

NAMESPACE = "publish"


class PublishRateLimiter:
    """Moving-window rate limiter keyed by caller-supplied strings."""

    def __init__(self, limit: str = "10/minute", storage_uri: str = "memory://"):
        self.item = parse(limit)
        self.storage = storage_from_string(storage_uri)
        self.strategy = MovingWindowRateLimiter(self.storage)

    def limit(self, key: str) -> RateLimitDecision:
        """Record one hit for `key` and report whether it was allowed."""
        allowed = self.strategy.hit(self.item, NAMESPACE, key)
        if not allowed:
            logger.info(f"Rate limit {self.item} exceeded for {key}")
        return RateLimitDecision(success=allowed)

    def reset(self) -> None:
        """Clear all counters (tests, admin)."""
        self.storage.reset()
