"""
Content moderation for published documents.
"""

from .checker import ContentModerator, basic_content_check
from .models import ModerationResult

__all__ = ["ContentModerator", "basic_content_check", "ModerationResult"]
