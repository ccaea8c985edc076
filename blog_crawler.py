"""Blog index crawling: article link collection and the backward page walk."""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin, urlparse, urlunparse

import requests
from bs4 import BeautifulSoup

from config import PipelineConfig
from text_extractor import ARTICLE_TIMEOUT_SECONDS, fetch_html

_ARTICLE_PATH_RE = re.compile(r"^/blogs/[a-z0-9-]+/?$")
_PAGE_NUMBER_RE = re.compile(r"/page/(\d+)")
_EXCLUDED_SEGMENTS = ("/tag/", "/page/", "/author/")

LOGGER = logging.getLogger(__name__)


def ordered_article_links(index_html: str, base_url: str) -> list[str]:
    """Return article URLs found in ``index_html``, deduplicated in page order."""
    soup = BeautifulSoup(index_html or "", "html.parser")
    base_host = _site_host(base_url)

    seen: set[str] = set()
    links: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        parsed = urlparse(urljoin(base_url, href))
        if _site_host(parsed.geturl()) != base_host:
            continue
        if any(segment in parsed.path for segment in _EXCLUDED_SEGMENTS):
            continue
        if not _ARTICLE_PATH_RE.match(parsed.path):
            continue

        url = urlunparse((parsed.scheme, parsed.netloc, parsed.path, "", "", ""))
        if url not in seen:
            seen.add(url)
            links.append(url)
    return links


def _site_host(url: str) -> str:
    """Host compared case-insensitively, with ``www.`` treated as the bare domain."""
    return (urlparse(url).hostname or "").lower().removeprefix("www.")


def collect_article_links(index_html: str, base_url: str) -> set[str]:
    """Return the set of article URLs linked from one index page."""
    return set(ordered_article_links(index_html, base_url))


def find_last_page(index_html: str) -> int:
    """Return the highest ``/page/N`` number linked from the page, or 1."""
    soup = BeautifulSoup(index_html or "", "html.parser")
    last_page = 1
    for anchor in soup.find_all("a", href=True):
        match = _PAGE_NUMBER_RE.search(anchor["href"])
        if match:
            last_page = max(last_page, int(match.group(1)))
    return last_page


def page_url(base_url: str, page: int) -> str:
    if page <= 1:
        return base_url
    return f"{base_url.rstrip('/')}/page/{page}/"


def discover_oldest_articles(config: PipelineConfig, count: int | None = None) -> list[str]:
    """Walk the blog index backward from its last page and pick the oldest posts.

    At most ``config.pages_back`` pages are visited, stopping early once
    ``config.candidate_cap`` candidates are collected. Only the final ``count``
    deduplicated candidates are returned: those nearest the end of the index.
    """
    if count is None:
        count = config.oldest_count
    base_url = config.blog_base_url

    try:
        last_page = find_last_page(fetch_html(base_url, timeout=ARTICLE_TIMEOUT_SECONDS))
    except requests.RequestException as exc:
        LOGGER.warning("Could not read blog index %s, assuming one page: %s", base_url, exc)
        last_page = 1
    LOGGER.info("Blog index last page: %s", last_page)

    first_page = max(1, last_page - config.pages_back + 1)
    candidates: list[str] = []
    for page in range(last_page, first_page - 1, -1):
        if len(candidates) >= config.candidate_cap:
            break
        url = page_url(base_url, page)
        try:
            html = fetch_html(url, timeout=ARTICLE_TIMEOUT_SECONDS)
        except requests.RequestException as exc:
            LOGGER.warning("Failed to fetch index page %s, skipping: %s", page, exc)
            continue

        links = ordered_article_links(html, base_url)
        candidates.extend(links)
        LOGGER.info("Index page %s: found %s article links", page, len(links))

    unique = list(dict.fromkeys(candidates))
    oldest = unique[-count:] if count > 0 else []
    LOGGER.info(
        "Discovery complete: candidates=%s unique=%s selected=%s",
        len(candidates),
        len(unique),
        len(oldest),
    )
    return oldest
