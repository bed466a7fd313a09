from dataclasses import dataclass
from typing import Optional


@dataclass
class ModerationResult:
    """Verdict on a piece of content."""
    safe: bool
    reason: Optional[str] = None
    source: str = "llm"  # "llm" or "patterns"

    def to_dict(self) -> dict:
        return {"safe": self.safe, "reason": self.reason, "source": self.source}
