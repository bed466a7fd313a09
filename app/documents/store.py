"""
SQLite-backed document persistence.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Union

from app.storage.db import (
    get_connection,
    initialize_schema,
    to_db_timestamp,
    from_db_timestamp,
    utc_now,
)
from .models import Document

logger = logging.getLogger(__name__)


class DocumentStore:
    """Create and fetch documents by id. Storage errors propagate."""

    def __init__(self, db_path: Union[str, Path], clock: Callable[[], datetime] = utc_now):
        self.db_path = Path(db_path)
        self.clock = clock
        initialize_schema(self.db_path)

    def create(self, document_id: str, title: Optional[str], content: str) -> Document:
        """Insert a new document. Raises sqlite3.IntegrityError on a duplicate id."""
        now = self.clock()
        stamp = to_db_timestamp(now)
        conn = get_connection(self.db_path)
        try:
            with conn:
                conn.execute(
                    "INSERT INTO documents (id, title, content, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (document_id, title, content, stamp, stamp)
                )
        finally:
            conn.close()

        logger.info(f"Saved document {document_id} ({len(content)} chars)")
        return Document(
            id=document_id,
            title=title,
            content=content,
            created_at=now,
            updated_at=now
        )

    def get(self, document_id: str) -> Optional[Document]:
        """Fetch a document, or None if it does not exist."""
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT id, title, content, created_at, updated_at FROM documents WHERE id = ?",
                (document_id,)
            ).fetchone()
        finally:
            conn.close()

        if not row:
            return None

        return Document(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            created_at=from_db_timestamp(row["created_at"]),
            updated_at=from_db_timestamp(row["updated_at"])
        )
