"""Shared typed models for the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Article:
    """Normalized article record as read from the record store."""

    article_id: str
    title: str
    url: str
    original_content: str = ""
    rewritten_content: str = ""
    citations: list[str] = field(default_factory=list)
    created_at: str = ""
    enriched: bool = False

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Article:
        """Build an Article from the store's JSON shape.

        Records written before the ``enriched`` flag existed count as enriched
        when they already carry rewritten content, so a rerun never regresses them.
        """
        rewritten = _as_text(record.get("rewrittenContent"))
        enriched = record.get("enriched")
        citations = record.get("citations")
        return cls(
            article_id=_as_text(record.get("_id") or record.get("id")),
            title=_as_text(record.get("title")),
            url=_as_text(record.get("url")),
            original_content=_as_text(record.get("originalContent")),
            rewritten_content=rewritten,
            citations=[str(c) for c in citations] if isinstance(citations, list) else [],
            created_at=_as_text(record.get("createdAt")),
            enriched=bool(enriched) if isinstance(enriched, bool) else bool(rewritten),
        )

    def to_record(self) -> dict[str, Any]:
        return {
            "_id": self.article_id,
            "title": self.title,
            "url": self.url,
            "originalContent": self.original_content,
            "rewrittenContent": self.rewritten_content,
            "citations": list(self.citations),
            "createdAt": self.created_at,
            "enriched": self.enriched,
        }


@dataclass(frozen=True, slots=True)
class ScrapedArticle:
    """Title and main text pulled from one blog post page."""

    title: str
    url: str
    content: str


@dataclass(slots=True)
class ReferenceSnapshot:
    """Reference material gathered for a single article's rewrite."""

    query: str
    references: list[tuple[str, str]] = field(default_factory=list)

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.references]

    @property
    def texts(self) -> list[str]:
        return [text for _, text in self.references if text]


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""
