from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Document:
    """A published markdown document."""
    id: str
    content: str
    created_at: datetime
    updated_at: datetime
    title: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat()
        }
