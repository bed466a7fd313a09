"""
Factory for creating the document module.
"""
from pathlib import Path
from typing import Callable

from app.quota import QuotaManager
from .services import MarkdownRenderer
from .store import DocumentStore
from .routes import create_document_routes


def create_document_module(
    db_path: Path,
    quota_manager: QuotaManager,
    get_identity: Callable[[], str],
    document_template: str,
    view_cost: int = 1,
) -> dict:
    """Create document module with store, renderer and routes.

    Args:
        db_path: SQLite database file
        quota_manager: QuotaManager used to record views
        get_identity: Resolves the identity of the current request
        document_template: Template string for the document page
        view_cost: Operations logged per view (0 disables view tracking)

    Returns:
        Dictionary containing the store, renderer and blueprint
    """
    store = DocumentStore(db_path)
    renderer = MarkdownRenderer()

    blueprint = create_document_routes(
        store,
        renderer,
        quota_manager,
        get_identity,
        document_template,
        view_cost=view_cost
    )

    return {
        "store": store,
        "renderer": renderer,
        "blueprint": blueprint
    }
