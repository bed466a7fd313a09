"""
Publishing module: quota-charged, rate-limited, moderated document creation.
"""

from .factory import create_publishing_module
from .models import PublishErrorCode, PublishResult, PublishMetrics
from .rate_limiter import PublishRateLimiter
from .services import PublishService

__all__ = [
    "create_publishing_module",
    "PublishErrorCode",
    "PublishResult",
    "PublishMetrics",
    "PublishRateLimiter",
    "PublishService",
]
