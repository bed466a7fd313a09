"""
Test cases for the secondary publish rate limiter.
"""

from app.publishing.rate_limiter import PublishRateLimiter


class TestPublishRateLimiter:
    """Test moving-window limiting per key."""

    def test_allows_up_to_limit(self):
        limiter = PublishRateLimiter("3/minute")

        decisions = [limiter.limit("publish:203.0.113.7").success for _ in range(4)]

        assert decisions == [True, True, True, False]

    def test_keys_are_independent(self):
        limiter = PublishRateLimiter("1/minute")

        assert limiter.limit("publish:203.0.113.7").success is True
        assert limiter.limit("publish:198.51.100.1").success is True
        assert limiter.limit("publish:203.0.113.7").success is False

    def test_reset_clears_counters(self):
        limiter = PublishRateLimiter("1/minute")
        limiter.limit("publish:203.0.113.7")

        limiter.reset()

        assert limiter.limit("publish:203.0.113.7").success is True
