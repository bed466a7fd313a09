"""
Quota manager for IP-based daily operation budgets.
"""

import logging
import sqlite3
from datetime import datetime, timedelta
from typing import Callable, Optional

from app.storage.db import utc_now
from .models import (
    QuotaConfig,
    QuotaInfo,
    OperationResult,
    UsageStats,
    REASON_INSUFFICIENT_QUOTA,
    REASON_STORAGE_ERROR,
)
from .store import QuotaStore

logger = logging.getLogger(__name__)


def start_of_local_day(now: datetime) -> datetime:
    """Midnight of the server's local calendar day containing `now`."""
    local = now.astimezone()
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


class QuotaManager:
    """
    Tracks and enforces per-identity operation budgets.

    Each identity has a rolling window of `reset_window_hours`. Expired
    windows are reset lazily by the next check; there is no background
    scheduler, so every read may also write.
    """

    def __init__(
        self,
        store: QuotaStore,
        config: QuotaConfig,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize QuotaManager.

        Args:
            store: Persistent quota store
            config: QuotaConfig with the daily limit and window length
            clock: Returns the current aware datetime (injectable for tests)
        """
        self.store = store
        self.config = config
        self.clock = clock

    @property
    def window(self) -> timedelta:
        return timedelta(hours=self.config.reset_window_hours)

    def check_quota(self, identity: str) -> QuotaInfo:
        """
        Read the quota for an identity, creating or resetting it as needed.

        Storage errors propagate: there is no safe default to report.
        """
        now = self.clock()
        record = self.store.get_quota(identity)

        if record is None:
            record, created = self.store.create_quota(identity, self.config.daily_limit, now)
            return self._info(identity, record.remaining_operations, record.last_reset, is_new_user=created)

        if now - record.last_reset >= self.window:
            if self.store.reset_quota(identity, self.config.daily_limit, now, expected_last_reset=record.last_reset):
                return self._info(identity, self.config.daily_limit, now)
            record = self.store.get_quota(identity)

        return self._info(identity, record.remaining_operations, record.last_reset)

    def consume_quota(
        self,
        identity: str,
        operation_type: str,
        operation_count: int = 1,
        document_id: Optional[str] = None,
    ) -> OperationResult:
        """
        Charge `operation_count` operations and record them in the log.

        Returns:
            OperationResult; failures never mutate the quota
        """
        if operation_count < 1:
            raise ValueError("operation_count must be at least 1")

        try:
            quota_info = self.check_quota(identity)

            if quota_info.remaining < operation_count:
                return self._insufficient(quota_info, operation_count)

            remaining = self.store.try_consume(
                identity, operation_type, operation_count, self.clock(), document_id
            )
            if remaining is None:
                # A concurrent request spent the units between check and write
                quota_info = self.check_quota(identity)
                logger.warning(f"Lost quota race for {identity}; {quota_info.remaining} remaining")
                return self._insufficient(quota_info, operation_count)

        except sqlite3.Error as e:
            logger.error(f"Error consuming quota for {identity}: {e}")
            return OperationResult(
                success=False,
                error="Failed to process quota operation",
                reason=REASON_STORAGE_ERROR
            )

        quota_info.remaining = remaining
        return OperationResult(success=True, quota=quota_info)

    def refund_quota(self, identity: str, operation_count: int = 1) -> bool:
        """
        Credit operations back after a downstream failure.

        The credit is clamped at the daily limit. A failed refund is logged
        and swallowed so it cannot replace the caller's own error.

        Returns:
            True if the refund was written
        """
        try:
            self.store.refund(identity, operation_count, self.config.daily_limit)
            return True
        except sqlite3.Error as e:
            logger.error(f"Error refunding {operation_count} operation(s) to {identity}: {e}")
            return False

    def attach_document(self, identity: str, document_id: str) -> bool:
        """Link the newest unlinked operation of `identity` to a document."""
        return self.store.attach_document_id(identity, document_id)

    def get_usage_stats(self, identity: str) -> UsageStats:
        """
        Usage statistics for display.

        Returns dict-serializable UsageStats with:
        - quota: current QuotaInfo (may reset an expired window)
        - operations_today: operations logged since local midnight
        - operation_breakdown: totals per operation type
        - usage_percentage: share of the daily limit already spent
        """
        quota = self.check_quota(identity)
        breakdown = self.store.sum_operations_since(identity, start_of_local_day(self.clock()))
        operations_today = sum(b.total_count for b in breakdown)

        limit = self.config.daily_limit
        usage_percentage = round((limit - quota.remaining) / limit * 100) if limit else 0

        return UsageStats(
            quota=quota,
            operations_today=operations_today,
            operation_breakdown=breakdown,
            usage_percentage=usage_percentage
        )

    # =====================
    # Private helper methods
    # =====================

    def _info(self, identity: str, remaining: int, last_reset: datetime, is_new_user: bool = False) -> QuotaInfo:
        return QuotaInfo(
            identity=identity,
            remaining=remaining,
            total=self.config.daily_limit,
            reset_time=last_reset + self.window,
            is_new_user=is_new_user
        )

    def _insufficient(self, quota_info: QuotaInfo, operation_count: int) -> OperationResult:
        return OperationResult(
            success=False,
            quota=quota_info,
            error=(
                f"Insufficient quota. You have {quota_info.remaining} documents remaining. "
                f"This action requires {operation_count} documents."
            ),
            reason=REASON_INSUFFICIENT_QUOTA
        )
