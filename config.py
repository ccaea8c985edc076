"""Runtime configuration for the article pipeline.

The environment is read exactly once, in ``load_config``; every component
receives the resulting ``PipelineConfig`` explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import urlparse

BLOG_BASE_URL = "https://beyondchats.com/blogs/"
DEFAULT_API_BASE_URL = "http://localhost:4000"
DEFAULT_LLM_PROVIDER = "gemini"

# Crawl bounds are fixed, not environment-tunable.
PAGES_BACK = 3
CANDIDATE_CAP = 10
OLDEST_COUNT = 5


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Everything the ingestion and enrichment runs need to know."""

    api_base_url: str = DEFAULT_API_BASE_URL
    google_api_key: str = ""
    google_cx: str = ""
    llm_provider: str = DEFAULT_LLM_PROVIDER
    llm_api_key: str = ""
    openai_model: str = "gpt-3.5-turbo"
    gemini_model: str = "gemini-2.0-flash"
    claude_model: str = "claude-sonnet-4-5"
    blog_base_url: str = BLOG_BASE_URL
    pages_back: int = PAGES_BACK
    candidate_cap: int = CANDIDATE_CAP
    oldest_count: int = OLDEST_COUNT
    item_delay_seconds: float = 1.0

    @property
    def search_configured(self) -> bool:
        return bool(self.google_api_key and self.google_cx)

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def origin_domain(self) -> str:
        """Host of the crawled blog without a leading ``www.``."""
        host = urlparse(self.blog_base_url).hostname or ""
        return host.removeprefix("www.")


def load_config(env: Mapping[str, str] | None = None) -> PipelineConfig:
    """Build the pipeline config from ``env`` (defaults to ``os.environ``)."""
    if env is None:
        env = os.environ

    return PipelineConfig(
        api_base_url=_get(env, "API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        google_api_key=_get(env, "GOOGLE_API_KEY"),
        google_cx=_get(env, "GOOGLE_CX"),
        llm_provider=_get(env, "LLM_PROVIDER", DEFAULT_LLM_PROVIDER).lower(),
        llm_api_key=_get(env, "LLM_API_KEY"),
        openai_model=_get(env, "OPENAI_MODEL", "gpt-3.5-turbo"),
        gemini_model=_get(env, "GEMINI_MODEL", "gemini-2.0-flash"),
        claude_model=_get(env, "CLAUDE_MODEL", "claude-sonnet-4-5"),
        item_delay_seconds=float(_get(env, "ITEM_DELAY_SECONDS", "1.0")),
    )


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    value = env.get(name)
    return value.strip() if isinstance(value, str) and value.strip() else default
