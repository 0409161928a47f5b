"""A piece of text with metadata and a relevance score."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Document:
    """Document content, free-form metadata and a score (0 unless set)."""

    page_content: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0

    def with_metadata(self, metadata: dict[str, Any]) -> Document:
        self.metadata = dict(metadata)
        return self

    def with_score(self, score: float) -> Document:
        self.score = float(score)
        return self