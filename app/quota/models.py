"""
Data models for the quota management system.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List


# Values for OperationResult.reason
REASON_INSUFFICIENT_QUOTA = "insufficient_quota"
REASON_STORAGE_ERROR = "storage_error"


@dataclass
class QuotaConfig:
    """Configuration for quota limits."""
    daily_limit: int = 50
    reset_window_hours: int = 24


@dataclass
class QuotaRecord:
    """Persistent quota row for one identity."""
    identity: str
    remaining_operations: int
    last_reset: datetime
    created_at: datetime


@dataclass
class OperationRecord:
    """Append-only log row for one charged operation."""
    id: int
    identity: str
    operation_type: str
    operation_count: int
    created_at: datetime
    document_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "identity": self.identity,
            "operation_type": self.operation_type,
            "operation_count": self.operation_count,
            "document_id": self.document_id,
            "created_at": self.created_at.isoformat()
        }


@dataclass
class QuotaInfo:
    """Quota state as seen by callers."""
    identity: str
    remaining: int
    total: int
    reset_time: datetime
    is_new_user: bool = False

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ip": self.identity,
            "remaining": self.remaining,
            "total": self.total,
            "reset_time": self.reset_time.isoformat(),
            "is_new_user": self.is_new_user
        }


@dataclass
class OperationResult:
    """Result of a quota consume operation."""
    success: bool
    quota: Optional[QuotaInfo] = None
    error: Optional[str] = None  # User-facing message
    reason: Optional[str] = None  # "insufficient_quota", "storage_error"

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "quota": self.quota.to_dict() if self.quota else None,
            "error": self.error,
            "reason": self.reason
        }


@dataclass
class OperationBreakdown:
    """Aggregated operations of one type."""
    operation_type: str
    total_count: int
    operation_instances: int

    def to_dict(self) -> dict:
        return {
            "operation_type": self.operation_type,
            "total_count": self.total_count,
            "operation_instances": self.operation_instances
        }


@dataclass
class UsageStats:
    """Usage statistics derived from the quota and the operation log."""
    quota: QuotaInfo
    operations_today: int
    operation_breakdown: List[OperationBreakdown] = field(default_factory=list)
    usage_percentage: int = 0

    def to_dict(self) -> dict:
        return {
            "quota": self.quota.to_dict(),
            "operations_today": self.operations_today,
            "operation_breakdown": [b.to_dict() for b in self.operation_breakdown],
            "usage_percentage": self.usage_percentage
        }
