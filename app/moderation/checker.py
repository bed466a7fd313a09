import logging
import re
from pathlib import Path
from typing import Optional

from langchain_core.prompts import PromptTemplate

from .llm import LLMProvider
from .models import ModerationResult

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).parent / "prompts"
DEFAULT_UNSAFE_REASON = "Content flagged as potentially harmful"

# Content longer than this is treated as spam by the pattern check
BASIC_CHECK_MAX_LENGTH = 50000

SUSPICIOUS_PATTERNS = [
    re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE),
    re.compile(r"<iframe\b[^>]*>", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"<[^>]*\bon\w+\s*=", re.IGNORECASE),  # onclick=, onload=, ... inside a tag
]


def basic_content_check(content: str) -> ModerationResult:
    """Pattern-based check used when the model is unavailable."""
    for pattern in SUSPICIOUS_PATTERNS:
        if pattern.search(content):
            return ModerationResult(
                safe=False,
                reason="Content contains potentially malicious code",
                source="patterns"
            )

    if len(content) > BASIC_CHECK_MAX_LENGTH:
        return ModerationResult(
            safe=False,
            reason="Content exceeds reasonable length limits",
            source="patterns"
        )

    return ModerationResult(safe=True, source="patterns")


def parse_verdict(response_text: str) -> ModerationResult:
    """Turn a "SAFE" / "UNSAFE: reason" reply into a result."""
    if "UNSAFE" in response_text.upper():
        parts = response_text.split(":", 1)
        reason = parts[1].strip() if len(parts) > 1 else ""
        return ModerationResult(safe=False, reason=reason or DEFAULT_UNSAFE_REASON)
    return ModerationResult(safe=True)


class ContentModerator:
    """Checks content for abuse using an LLM, falling back to pattern matching."""

    def __init__(
        self,
        llm_config,
        prompts_dir: Path = DEFAULT_PROMPTS_DIR,
        max_input_char: int = 20000,
        enabled: bool = True,
        provider: Optional[LLMProvider] = None,
    ):
        self.llm_config = llm_config
        self.prompts_dir = prompts_dir
        self.max_input_char = max_input_char
        self.enabled = enabled
        self.provider = provider or LLMProvider.from_config(llm_config)

    def moderate(self, content: str) -> ModerationResult:
        """Moderate content; only the first `max_input_char` characters go to the model."""
        if not self.enabled or not self.provider.is_configured:
            return basic_content_check(content)

        try:
            prompt_template = PromptTemplate.from_file(
                self.prompts_dir / "moderation.md",
                encoding="utf-8"
            )
            prompt_content = prompt_template.format(content=content[:self.max_input_char])

            return parse_verdict(self.provider.complete(prompt_content).strip())

        except Exception as e:
            logger.warning(f"Content moderation error, using pattern check: {e}")
            return basic_content_check(content)
