"""
Quota routes: read-only usage statistics for the calling client.
"""

import logging
from typing import Callable

from flask import Blueprint, jsonify

from .identity import mask_identity
from .manager import QuotaManager

logger = logging.getLogger(__name__)


def create_quota_routes(quota_manager: QuotaManager, get_identity: Callable[[], str]) -> Blueprint:
    """Create Flask routes for quota statistics.

    Args:
        quota_manager: The quota manager instance
        get_identity: Resolves the identity of the current request

    Returns:
        Flask blueprint with quota routes
    """
    quota_bp = Blueprint('quota', __name__, url_prefix='/api')

    @quota_bp.route("/quota", methods=["GET"])
    def get_quota():
        """Get the caller's quota and today's usage."""
        identity = get_identity()

        try:
            stats = quota_manager.get_usage_stats(identity)
        except Exception as e:
            logger.error(f"Error in quota API: {e}")
            return jsonify({"error": "Internal server error"}), 500

        quota = stats.quota.to_dict()
        quota["ip"] = mask_identity(identity)

        return jsonify({
            "ip": mask_identity(identity),
            "quota": quota,
            "usage": {
                "operations_today": stats.operations_today,
                "breakdown": [b.to_dict() for b in stats.operation_breakdown],
                "usage_percentage": stats.usage_percentage
            }
        })

    return quota_bp
