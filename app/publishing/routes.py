from typing import Callable

from flask import Blueprint, request, jsonify, render_template_string

from app.quota import QuotaManager
from .models import PublishErrorCode
from .services import PublishService

STATUS_CODES = {
    PublishErrorCode.EMPTY_CONTENT: 400,
    PublishErrorCode.INVALID_REQUEST: 400,
    PublishErrorCode.PAYLOAD_TOO_LARGE: 413,
    PublishErrorCode.INSUFFICIENT_QUOTA: 429,
    PublishErrorCode.RATE_LIMITED: 429,
    PublishErrorCode.CONTENT_BLOCKED: 422,
    PublishErrorCode.PERSISTENCE_FAILURE: 500,
    PublishErrorCode.QUOTA_UNAVAILABLE: 503,
    PublishErrorCode.MODERATION_UNAVAILABLE: 503,
    PublishErrorCode.RATE_LIMITER_UNAVAILABLE: 503,
}


def create_publishing_routes(
    publish_service: PublishService,
    quota_manager: QuotaManager,
    get_identity: Callable[[], str],
    editor_template: str,
) -> Blueprint:
    """Create Flask routes for the editor and publishing."""

    publishing_bp = Blueprint('publishing', __name__)

    def render_editor(content: str = "", result=None, quota=None, status: int = 200):
        return render_template_string(
            editor_template,
            content=content,
            result=result,
            quota=quota,
            max_content_bytes=publish_service.max_content_bytes
        ), status

    @publishing_bp.route("/", methods=["GET"])
    def editor():
        """Editor page with the caller's current quota."""
        quota = quota_manager.check_quota(get_identity())
        return render_editor(quota=quota)

    @publishing_bp.route("/", methods=["POST"])
    def publish():
        """Publish markdown from the editor form or a JSON body."""
        if request.is_json:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({
                    "success": False,
                    "error": "Request body must be a JSON object",
                    "code": PublishErrorCode.INVALID_REQUEST.value
                }), 400
        else:
            data = request.form

        content = data.get("content") or ""
        title = data.get("title") or None

        result = publish_service.publish(get_identity(), content, title=title)
        status = 200 if result.success else STATUS_CODES.get(result.code, 400)

        if request.is_json:
            return jsonify(result.to_dict()), status

        return render_editor(content=content, result=result, quota=result.quota, status=status)

    return publishing_bp
