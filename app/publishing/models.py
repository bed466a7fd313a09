"""
Data models for the publishing pipeline.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from threading import Lock
from typing import Optional

from app.quota.models import QuotaInfo


class PublishErrorCode(Enum):
    """Why a publish attempt was rejected."""
    EMPTY_CONTENT = "empty_content"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    INSUFFICIENT_QUOTA = "insufficient_quota"
    QUOTA_UNAVAILABLE = "quota_unavailable"
    RATE_LIMITED = "rate_limited"
    CONTENT_BLOCKED = "content_blocked"
    MODERATION_UNAVAILABLE = "moderation_unavailable"
    RATE_LIMITER_UNAVAILABLE = "rate_limiter_unavailable"
    PERSISTENCE_FAILURE = "persistence_failure"
    INVALID_REQUEST = "invalid_request"


@dataclass
class PublishResult:
    """Result of a publish attempt."""
    success: bool
    document_id: Optional[str] = None
    quota: Optional[QuotaInfo] = None
    error: Optional[str] = None  # User-facing message
    code: Optional[PublishErrorCode] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "success": self.success,
            "id": self.document_id,
            "quota": self.quota.to_dict() if self.quota else None,
            "error": self.error,
            "code": self.code.value if self.code else None
        }


@dataclass
class RateLimitDecision:
    """Answer from the secondary rate limiter."""
    success: bool


@dataclass
class PublishMetrics:
    """Counters for publish outcomes and fail-open decisions."""
    published: int = 0
    blocked: int = 0
    rate_limited: int = 0
    moderation_skipped: int = 0
    rate_limiter_skipped: int = 0
    persistence_failures: int = 0
    refund_failures: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    def increment(self, name: str) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + 1)

    def snapshot(self) -> dict:
        with self._lock:
            return {f.name: getattr(self, f.name) for f in fields(self) if not f.name.startswith("_")}
