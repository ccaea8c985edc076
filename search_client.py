"""Google Custom Search client used to find reference articles."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import requests

from config import PipelineConfig

GOOGLE_SEARCH_API_URL = "https://www.googleapis.com/customsearch/v1"
REQUEST_TIMEOUT_SECONDS = 20
SEARCH_RESULT_COUNT = 5
MAX_REFERENCES = 2

# Returned when no search credentials are configured.
MOCK_REFERENCES: tuple[str, ...] = (
    "https://www.ibm.com/topics/chatbots",
    "https://www.salesforce.com/blog/what-is-a-chatbot/",
)

LOGGER = logging.getLogger(__name__)


def find_references(query: str, config: PipelineConfig) -> list[str]:
    """Return up to two external reference URLs for ``query``.

    Without credentials the fixed MOCK_REFERENCES are returned. Search failures
    and empty result sets yield an empty list rather than an error.
    """
    if not config.search_configured:
        LOGGER.warning("Google search not configured, using mock references")
        return list(MOCK_REFERENCES)

    params = {
        "key": config.google_api_key,
        "cx": config.google_cx,
        "q": query,
        "num": SEARCH_RESULT_COUNT,
    }
    try:
        response = requests.get(GOOGLE_SEARCH_API_URL, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
        response.raise_for_status()
        links = _parse_result_links(response.json())
    except (requests.RequestException, ValueError, RuntimeError) as exc:
        LOGGER.warning("Google search failed for query=%r: %s", query, exc)
        return []

    if not links:
        LOGGER.info("No Google results for query=%r", query)
        return []

    references = [link for link in links if not _is_same_site(link, config.origin_domain)]
    return references[:MAX_REFERENCES]


def _parse_result_links(payload: Any) -> list[str]:
    if not isinstance(payload, dict):
        raise RuntimeError("Unexpected search payload shape: expected an object")

    items = payload.get("items") or []
    if not isinstance(items, list):
        raise RuntimeError("Unexpected search payload shape: items is not a list")

    links: list[str] = []
    for item in items:
        link = item.get("link") if isinstance(item, dict) else None
        if isinstance(link, str) and link.strip():
            links.append(link.strip())
    return links


def _is_same_site(link: str, origin_domain: str) -> bool:
    if not origin_domain:
        return False
    host = (urlparse(link).hostname or "").lower()
    return host == origin_domain or host.endswith(f".{origin_domain}")
