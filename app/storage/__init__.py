"""
SQLite persistence shared by the quota and document subsystems.
"""

from .db import get_connection, initialize_schema, utc_now

__all__ = ["get_connection", "initialize_schema", "utc_now"]
