"""
Document routes for viewing published documents.
"""
import logging
from typing import Callable

from flask import Blueprint, abort, render_template_string
from pygments.formatters import HtmlFormatter

from app.quota import QuotaManager
from .services import MarkdownRenderer
from .store import DocumentStore

logger = logging.getLogger(__name__)

HIGHLIGHT_CSS = HtmlFormatter(style="friendly").get_style_defs(".highlight")


def create_document_routes(
    document_store: DocumentStore,
    renderer: MarkdownRenderer,
    quota_manager: QuotaManager,
    get_identity: Callable[[], str],
    document_template: str,
    view_cost: int = 1,
) -> Blueprint:
    """Create document routes."""
    bp = Blueprint('documents', __name__)

    @bp.route("/doc/<doc_id>")
    def view_document(doc_id):
        """View a published document."""
        document = document_store.get(doc_id)
        if not document:
            abort(404)

        # Views are tracked but never blocked by an exhausted quota
        if view_cost > 0:
            try:
                result = quota_manager.consume_quota(get_identity(), "view", view_cost, document_id=doc_id)
                if not result.success:
                    logger.debug(f"View of {doc_id} not charged: {result.error}")
            except Exception as e:
                logger.error(f"Error tracking view operation: {e}")

        return render_template_string(
            document_template,
            document=document,
            html_content=renderer.render(document.content),
            highlight_css=HIGHLIGHT_CSS,
        )

    return bp
