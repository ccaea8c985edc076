"""Heuristic main-content extraction for arbitrary HTML pages."""

from __future__ import annotations

import logging
import re
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from models import ScrapedArticle

USER_AGENT = "Mozilla/5.0 (compatible; ArticleBot/1.0)"
REFERENCE_TIMEOUT_SECONDS = 10
ARTICLE_TIMEOUT_SECONDS = 15

REFERENCE_MAX_CHARS = 5000
ARTICLE_MAX_CHARS = 8000
MIN_CONTENT_CHARS = 200

# Removed before any text is measured.
_NOISE_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside")

# Evaluated in order; a later selector only wins with strictly longer text.
CONTENT_SELECTORS = (
    "article",
    "main",
    ".content",
    ".post-content",
    ".entry-content",
    ".blog-content",
)

_WHITESPACE_RE = re.compile(r"\s+")

LOGGER = logging.getLogger(__name__)


def extract_main_text(
    html: str,
    max_chars: int = REFERENCE_MAX_CHARS,
    *,
    all_matches: bool = False,
) -> str:
    """Return the most likely main-content text of ``html``.

    Each selector in CONTENT_SELECTORS contributes the text of its first match,
    or of every match joined together when ``all_matches`` is set; the longest
    candidate wins. Candidates under MIN_CONTENT_CHARS fall back to
    the whole body text. Output is whitespace-collapsed and cut to ``max_chars``.
    Malformed markup never raises; the worst case is an empty string.
    """
    if not html:
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(list(_NOISE_TAGS)):
            tag.decompose()

        content = ""
        for selector in CONTENT_SELECTORS:
            nodes = soup.select(selector) if all_matches else soup.select(selector, limit=1)
            if not nodes:
                continue
            text = normalize_whitespace(" ".join(node.get_text(" ") for node in nodes))
            if len(text) > len(content):
                content = text

        if len(content) < MIN_CONTENT_CHARS:
            root = soup.body or soup
            content = normalize_whitespace(root.get_text(" "))
    except Exception as exc:  # bs4 can trip on pathological input
        LOGGER.warning("HTML extraction failed, returning empty text: %s", exc)
        return ""

    return content[:max_chars]


def extract_title(html: str, fallback_url: str) -> str:
    """Return the first ``<h1>`` text, or the URL's last path segment."""
    try:
        heading = BeautifulSoup(html or "", "html.parser").find("h1")
        title = normalize_whitespace(heading.get_text(" ")) if heading else ""
    except Exception as exc:
        LOGGER.warning("Title extraction failed for %s: %s", fallback_url, exc)
        title = ""
    return title or _slug_from_url(fallback_url)


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def fetch_html(url: str, timeout: float = ARTICLE_TIMEOUT_SECONDS) -> str:
    """GET ``url`` and return the body text; raises requests.RequestException."""
    response = requests.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    response.raise_for_status()
    return response.text


def scrape_reference(url: str, timeout: float = REFERENCE_TIMEOUT_SECONDS) -> str:
    """Fetch a reference page and return its main text, or "" on failure."""
    try:
        html = fetch_html(url, timeout=timeout)
    except requests.RequestException as exc:
        LOGGER.warning("Failed to scrape reference %s: %s", url, exc)
        return ""
    return extract_main_text(html, max_chars=REFERENCE_MAX_CHARS, all_matches=True)


def scrape_article(url: str, timeout: float = ARTICLE_TIMEOUT_SECONDS) -> ScrapedArticle:
    """Fetch one blog post and pull out its title and body text.

    Request failures propagate so the caller can skip the URL.
    """
    html = fetch_html(url, timeout=timeout)
    return ScrapedArticle(
        title=extract_title(html, url),
        url=url,
        content=extract_main_text(html, max_chars=ARTICLE_MAX_CHARS),
    )


def _slug_from_url(url: str) -> str:
    segments = [part for part in urlparse(url).path.split("/") if part]
    return segments[-1] if segments else url
