"""
Published document storage, rendering and viewing.
"""

from .factory import create_document_module
from .models import Document
from .store import DocumentStore
from .services import MarkdownRenderer
from .utils import generate_short_id

__all__ = [
    "create_document_module",
    "Document",
    "DocumentStore",
    "MarkdownRenderer",
    "generate_short_id",
]
