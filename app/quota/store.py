"""
SQLite-backed persistence for quota records and the operation log.

The store is the single source of truth for remaining operations; nothing
above it caches quota values between calls.
"""

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from app.storage.db import (
    get_connection,
    initialize_schema,
    to_db_timestamp,
    from_db_timestamp,
)
from .models import QuotaRecord, OperationRecord, OperationBreakdown

logger = logging.getLogger(__name__)


class QuotaStore:
    """Repository for quota rows and append-only operation records.

    Every method opens its own connection, so one instance can be shared by
    all request threads. Storage errors (sqlite3.Error) propagate.
    """

    def __init__(self, db_path: Union[str, Path]):
        """
        Initialize the store, creating the schema on first use.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        initialize_schema(self.db_path)

    # =====================
    # Quota records
    # =====================

    def get_quota(self, identity: str) -> Optional[QuotaRecord]:
        """Fetch the quota record for an identity, or None if never seen."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT ip_address, remaining_operations, last_reset, created_at "
                "FROM quotas WHERE ip_address = ?",
                (identity,)
            ).fetchone()
            return self._row_to_quota(row) if row else None
        finally:
            conn.close()

    def create_quota(self, identity: str, daily_limit: int, now: datetime) -> Tuple[QuotaRecord, bool]:
        """
        Create a quota record with a full allowance.

        Idempotent: if another request created the row first, the existing
        record is returned untouched.

        Returns:
            Tuple of (record, created)
        """
        stamp = to_db_timestamp(now)
        conn = get_connection(self.db_path)
        try:
            with conn:
                cursor = conn.execute(
                    "INSERT OR IGNORE INTO quotas "
                    "(ip_address, remaining_operations, last_reset, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (identity, daily_limit, stamp, stamp)
                )
                created = cursor.rowcount == 1
                row = conn.execute(
                    "SELECT ip_address, remaining_operations, last_reset, created_at "
                    "FROM quotas WHERE ip_address = ?",
                    (identity,)
                ).fetchone()
        finally:
            conn.close()

        if created:
            logger.info(f"Created quota for {identity}: {daily_limit} operations")
        return self._row_to_quota(row), created

    def update_quota(self, identity: str, remaining: int, last_reset: Optional[datetime] = None) -> None:
        """Overwrite the remaining count, and optionally the window start."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                if last_reset is None:
                    conn.execute(
                        "UPDATE quotas SET remaining_operations = ? WHERE ip_address = ?",
                        (remaining, identity)
                    )
                else:
                    conn.execute(
                        "UPDATE quotas SET remaining_operations = ?, last_reset = ? "
                        "WHERE ip_address = ?",
                        (remaining, to_db_timestamp(last_reset), identity)
                    )
        finally:
            conn.close()

    def reset_quota(self, identity: str, daily_limit: int, now: datetime, expected_last_reset: datetime) -> bool:
        """
        Start a new window with a full allowance.

        Only applies while the stored window start still equals
        `expected_last_reset`, so a caller holding a stale read cannot wipe out
        a reset (and the spending after it) that another request already made.

        Returns:
            True if this call performed the reset
        """
        conn = get_connection(self.db_path)
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE quotas SET remaining_operations = ?, last_reset = ? "
                    "WHERE ip_address = ? AND last_reset = ?",
                    (daily_limit, to_db_timestamp(now), identity, to_db_timestamp(expected_last_reset))
                )
        finally:
            conn.close()

        if cursor.rowcount != 1:
            logger.debug(f"Quota for {identity} was already reset by another request")
            return False
        logger.info(f"Reset quota for {identity}: {daily_limit} operations")
        return True

    def try_consume(
        self,
        identity: str,
        operation_type: str,
        count: int,
        now: datetime,
        document_id: Optional[str] = None,
    ) -> Optional[int]:
        """
        Atomically deduct `count` operations and log them.

        The decrement is conditional on enough remaining operations, so two
        concurrent consumers can never both spend the last unit. Deduction
        and log append commit together.

        Returns:
            New remaining count, or None if the quota was insufficient
        """
        conn = get_connection(self.db_path)
        try:
            with conn:
                # Take the write lock first so concurrent consumers queue on the busy timeout
                conn.execute("BEGIN IMMEDIATE")
                cursor = conn.execute(
                    "UPDATE quotas SET remaining_operations = remaining_operations - ? "
                    "WHERE ip_address = ? AND remaining_operations >= ?",
                    (count, identity, count)
                )
                if cursor.rowcount != 1:
                    return None

                remaining = conn.execute(
                    "SELECT remaining_operations FROM quotas WHERE ip_address = ?",
                    (identity,)
                ).fetchone()[0]

                conn.execute(
                    "INSERT INTO operations "
                    "(ip_address, operation_type, operation_count, document_id, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (identity, operation_type, count, document_id, to_db_timestamp(now))
                )
        finally:
            conn.close()

        logger.info(f"Consumed {count} {operation_type} operation(s) for {identity} -> {remaining} remaining")
        return remaining

    def refund(self, identity: str, count: int, cap: int) -> None:
        """Credit operations back, never above `cap`."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.execute(
                    "UPDATE quotas SET remaining_operations = MIN(remaining_operations + ?, ?) "
                    "WHERE ip_address = ?",
                    (count, cap, identity)
                )
        finally:
            conn.close()
        logger.info(f"Refunded {count} operation(s) to {identity}")

    # =====================
    # Operation log
    # =====================

    def append_operation(
        self,
        identity: str,
        operation_type: str,
        count: int,
        now: datetime,
        document_id: Optional[str] = None,
    ) -> OperationRecord:
        """Append one record to the operation log."""
        conn = get_connection(self.db_path)
        try:
            with conn:
                cursor = conn.execute(
                    "INSERT INTO operations "
                    "(ip_address, operation_type, operation_count, document_id, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (identity, operation_type, count, document_id, to_db_timestamp(now))
                )
                operation_id = cursor.lastrowid
        finally:
            conn.close()

        return OperationRecord(
            id=operation_id,
            identity=identity,
            operation_type=operation_type,
            operation_count=count,
            document_id=document_id,
            created_at=now
        )

    def attach_document_id(self, identity: str, document_id: str) -> bool:
        """
        Set document_id on the newest operation of `identity` that has none.

        Returns:
            True if a record was updated
        """
        conn = get_connection(self.db_path)
        try:
            with conn:
                cursor = conn.execute(
                    "UPDATE operations SET document_id = ? WHERE id = ("
                    "  SELECT id FROM operations "
                    "  WHERE ip_address = ? AND document_id IS NULL "
                    "  ORDER BY created_at DESC, id DESC LIMIT 1"
                    ")",
                    (document_id, identity)
                )
                return cursor.rowcount == 1
        finally:
            conn.close()

    def sum_operations_since(self, identity: str, since: datetime) -> List[OperationBreakdown]:
        """Sum operation counts per type for `identity` since `since`."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                """
                SELECT operation_type,
                       SUM(operation_count) AS total_count,
                       COUNT(*) AS operation_instances
                FROM operations
                WHERE ip_address = ? AND created_at >= ?
                GROUP BY operation_type
                ORDER BY total_count DESC
                """,
                (identity, to_db_timestamp(since))
            ).fetchall()
        finally:
            conn.close()

        return [
            OperationBreakdown(
                operation_type=row["operation_type"],
                total_count=row["total_count"],
                operation_instances=row["operation_instances"]
            )
            for row in rows
        ]

    def list_operations(self, identity: str, limit: int = 100) -> List[OperationRecord]:
        """Most recent operations for an identity, newest first."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                "SELECT id, ip_address, operation_type, operation_count, document_id, created_at "
                "FROM operations WHERE ip_address = ? "
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (identity, limit)
            ).fetchall()
        finally:
            conn.close()

        return [
            OperationRecord(
                id=row["id"],
                identity=row["ip_address"],
                operation_type=row["operation_type"],
                operation_count=row["operation_count"],
                document_id=row["document_id"],
                created_at=from_db_timestamp(row["created_at"])
            )
            for row in rows
        ]

    @staticmethod
    def _row_to_quota(row: sqlite3.Row) -> QuotaRecord:
        return QuotaRecord(
            identity=row["ip_address"],
            remaining_operations=row["remaining_operations"],
            last_reset=from_db_timestamp(row["last_reset"]),
            created_at=from_db_timestamp(row["created_at"])
        )
