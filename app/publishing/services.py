"""
Publish orchestration.

Publishing charges one quota unit up front and then runs the rate limiter,
moderation and persistence stages. Every stage that rejects the attempt after
the charge refunds that unit exactly once.
"""

import logging
from typing import Callable, Optional

from app.documents import DocumentStore, generate_short_id
from app.moderation import ContentModerator
from app.quota import QuotaManager
from app.quota.models import REASON_INSUFFICIENT_QUOTA
from .models import PublishErrorCode, PublishMetrics, PublishResult
from .rate_limiter import PublishRateLimiter
from .stage_pool import StagePool

logger = logging.getLogger(__name__)

PUBLISH_OPERATION = "publish"
PUBLISH_COST = 1

MODERATION_WORKERS = 8
RATE_LIMIT_WORKERS = 4


class PublishService:
    """Main service for handling document publishing."""

    def __init__(
        self,
        quota_manager: QuotaManager,
        rate_limiter: PublishRateLimiter,
        moderator: ContentModerator,
        document_store: DocumentStore,
        publish_config,
        moderation_fail_open: bool = True,
        metrics: Optional[PublishMetrics] = None,
        id_factory: Callable[[], str] = generate_short_id,
        moderation_workers: int = MODERATION_WORKERS,
        rate_limit_workers: int = RATE_LIMIT_WORKERS,
    ):
        self.quota_manager = quota_manager
        self.rate_limiter = rate_limiter
        self.moderator = moderator
        self.document_store = document_store
        self.publish_config = publish_config
        self.moderation_fail_open = moderation_fail_open
        self.metrics = metrics or PublishMetrics()
        self.id_factory = id_factory
        # Separate pools so slow moderation can never starve the rate limiter
        self._moderation_pool = StagePool("moderation", moderation_workers)
        self._rate_limit_pool = StagePool("rate-limiter", rate_limit_workers)

    @property
    def max_content_bytes(self) -> int:
        return self.publish_config.max_content_bytes

    def publish(self, identity: str, content: str, title: Optional[str] = None) -> PublishResult:
        """Publish a markdown document for `identity`.

        Args:
            identity: Client identity charged for the publish
            content: Markdown source
            title: Optional title, defaults to the configured default title

        Returns:
            PublishResult; every user-facing failure is reported here, not raised
        """
        if not isinstance(content, str) or not (title is None or isinstance(title, str)):
            return PublishResult(
                success=False,
                error="Content and title must be text",
                code=PublishErrorCode.INVALID_REQUEST
            )

        if not content or not content.strip():
            return PublishResult(
                success=False,
                error="Content is required",
                code=PublishErrorCode.EMPTY_CONTENT
            )

        content_size = len(content.encode("utf-8"))
        if content_size > self.max_content_bytes:
            return PublishResult(
                success=False,
                error=(
                    f"Document is too large ({round(content_size / 1024)}KB). "
                    f"Maximum size is {round(self.max_content_bytes / 1024)}KB."
                ),
                code=PublishErrorCode.PAYLOAD_TOO_LARGE
            )

        quota_result = self.quota_manager.consume_quota(identity, PUBLISH_OPERATION, PUBLISH_COST)
        if not quota_result.success:
            code = (
                PublishErrorCode.INSUFFICIENT_QUOTA
                if quota_result.reason == REASON_INSUFFICIENT_QUOTA
                else PublishErrorCode.QUOTA_UNAVAILABLE
            )
            return PublishResult(
                success=False,
                quota=quota_result.quota,
                error=quota_result.error,
                code=code
            )

        rejection = self._check_rate_limit(identity) or self._check_moderation(content)
        if rejection:
            self._refund(identity)
            return rejection

        document_id = self.id_factory()
        try:
            self.document_store.create(
                document_id,
                title or self.publish_config.default_title,
                content
            )
        except Exception as e:
            logger.error(f"Error saving document {document_id} for {identity}: {e}", exc_info=True)
            self.metrics.increment("persistence_failures")
            self._refund(identity)
            return PublishResult(
                success=False,
                error="Failed to save document",
                code=PublishErrorCode.PERSISTENCE_FAILURE
            )

        try:
            if not self.quota_manager.attach_document(identity, document_id):
                logger.warning(f"No pending operation to link to document {document_id} for {identity}")
        except Exception as e:
            logger.warning(f"Failed to link operation to document {document_id}: {e}")

        self.metrics.increment("published")
        logger.info(f"Published document {document_id} for {identity} ({content_size} bytes)")
        return PublishResult(success=True, document_id=document_id, quota=quota_result.quota)

    def shutdown(self) -> None:
        """Stop the stage worker threads."""
        self._moderation_pool.shutdown()
        self._rate_limit_pool.shutdown()

    # =====================
    # Pipeline stages
    # =====================

    def _check_rate_limit(self, identity: str) -> Optional[PublishResult]:
        try:
            decision = self._call_with_timeout(self._rate_limit_pool, self.rate_limiter.limit, f"publish:{identity}")
        except Exception as e:
            self.metrics.increment("rate_limiter_skipped")
            if self.publish_config.rate_limiter_fail_open:
                logger.warning(f"Rate limiting error, continuing without it: {e!r}")
                return None
            logger.error(f"Rate limiting error, rejecting publish: {e!r}")
            return PublishResult(
                success=False,
                error="Publishing is temporarily unavailable. Please try again later.",
                code=PublishErrorCode.RATE_LIMITER_UNAVAILABLE
            )

        if not decision.success:
            self.metrics.increment("rate_limited")
            return PublishResult(
                success=False,
                error="Rate limit exceeded. Please wait before publishing again.",
                code=PublishErrorCode.RATE_LIMITED
            )
        return None

    def _check_moderation(self, content: str) -> Optional[PublishResult]:
        try:
            verdict = self._call_with_timeout(self._moderation_pool, self.moderator.moderate, content)
        except Exception as e:
            self.metrics.increment("moderation_skipped")
            if self.moderation_fail_open:
                logger.warning(f"Content moderation error, continuing without it: {e!r}")
                return None
            logger.error(f"Content moderation error, rejecting publish: {e!r}")
            return PublishResult(
                success=False,
                error="Content moderation is temporarily unavailable. Please try again later.",
                code=PublishErrorCode.MODERATION_UNAVAILABLE
            )

        if not verdict.safe:
            self.metrics.increment("blocked")
            return PublishResult(
                success=False,
                error=f"Content blocked: {verdict.reason}",
                code=PublishErrorCode.CONTENT_BLOCKED
            )
        return None

    def _call_with_timeout(self, pool: StagePool, func, *args):
        """Run a collaborator call on its pool, giving up after the configured timeout."""
        return pool.call(self.publish_config.collaborator_timeout_seconds, func, *args)

    def _refund(self, identity: str) -> None:
        if not self.quota_manager.refund_quota(identity, PUBLISH_COST):
            self.metrics.increment("refund_failures")
