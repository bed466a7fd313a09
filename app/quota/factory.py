"""
Factory for creating quota management components.
"""

from pathlib import Path
from typing import Callable

from .models import QuotaConfig
from .manager import QuotaManager
from .store import QuotaStore
from .routes import create_quota_routes


def create_quota_module(
    db_path: Path,
    get_identity: Callable[[], str],
    daily_limit: int = 50,
    reset_window_hours: int = 24,
) -> dict:
    """
    Create quota management module.

    Args:
        db_path: SQLite database file shared with the document store
        get_identity: Resolves the identity of the current request
        daily_limit: Operations allowed per identity per window
        reset_window_hours: Length of the rolling quota window

    Returns:
        Dictionary with:
        - manager: QuotaManager instance
        - store: QuotaStore instance
        - config: QuotaConfig instance
        - blueprint: Flask blueprint serving /api/quota
    """
    config = QuotaConfig(
        daily_limit=daily_limit,
        reset_window_hours=reset_window_hours
    )

    store = QuotaStore(db_path)
    manager = QuotaManager(store=store, config=config)

    return {
        "manager": manager,
        "store": store,
        "config": config,
        "blueprint": create_quota_routes(manager, get_identity)
    }
