from typing import Any, Callable, Dict

from app.documents import DocumentStore
from app.moderation import ContentModerator
from app.quota import QuotaManager
from .models import PublishMetrics
from .rate_limiter import PublishRateLimiter
from .services import PublishService
from .routes import create_publishing_routes


def create_publishing_module(
    quota_manager: QuotaManager,
    document_store: DocumentStore,
    get_identity: Callable[[], str],
    llm_config,
    publish_config,
    moderation_config,
    editor_template: str,
    moderator: ContentModerator = None,
    rate_limiter: PublishRateLimiter = None,
) -> Dict[str, Any]:
    """Create and configure all publishing components."""

    if moderator is None:
        moderator = ContentModerator(
            llm_config,
            max_input_char=moderation_config.max_input_char,
            enabled=moderation_config.enabled
        )

    if rate_limiter is None:
        rate_limiter = PublishRateLimiter(
            limit=publish_config.rate_limit,
            storage_uri=publish_config.rate_limit_storage_uri
        )

    metrics = PublishMetrics()

    publish_service = PublishService(
        quota_manager=quota_manager,
        rate_limiter=rate_limiter,
        moderator=moderator,
        document_store=document_store,
        publish_config=publish_config,
        moderation_fail_open=moderation_config.fail_open,
        metrics=metrics
    )

    publishing_bp = create_publishing_routes(
        publish_service,
        quota_manager,
        get_identity,
        editor_template
    )

    return {
        "blueprint": publishing_bp,
        "service": publish_service,
        "moderator": moderator,
        "rate_limiter": rate_limiter,
        "metrics": metrics
    }
