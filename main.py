"""CLI entrypoint for the blog article ingestion and enrichment pipeline."""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass

from dotenv import load_dotenv

from article_store import ArticleStore, HttpArticleStore, JsonFileArticleStore
from blog_crawler import discover_oldest_articles
from config import PipelineConfig, load_config
from models import Article, ReferenceSnapshot
from rewriter import build_citations, format_citation_footer, rewrite_article
from search_client import find_references
from text_extractor import scrape_article, scrape_reference

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class RunStats:
    processed: int = 0
    skipped: int = 0
    failed: int = 0


def parse_args() -> argparse.Namespace:
    """Parse command-line flags."""
    parser = argparse.ArgumentParser(description="Crawl blog articles and enrich them with AI rewrites")
    parser.add_argument(
        "--mode",
        choices=["ingest", "enrich", "all"],
        default="all",
        help="'ingest' crawls and stores the oldest posts, 'enrich' rewrites stored posts, 'all' does both.",
    )
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of articles to enrich")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only log what would be processed, without store writes or LLM calls",
    )
    parser.add_argument(
        "--store-file",
        default=None,
        help="Use a local JSON file as the article store instead of the HTTP API",
    )
    return parser.parse_args()


def run_ingestion(
    config: PipelineConfig,
    store: ArticleStore,
    *,
    count: int | None = None,
    dry_run: bool = False,
) -> RunStats:
    """Crawl the oldest blog posts and create one unenriched record per post."""
    stats = RunStats()
    urls = discover_oldest_articles(config, count=count)
    LOGGER.info("Ingestion: %s article URLs selected", len(urls))

    try:
        known_urls = {article.url for article in store.list_articles()}
    except Exception as exc:
        LOGGER.warning("Ingestion: could not list existing articles, duplicates not checked: %s", exc)
        known_urls = set()

    for url in urls:
        if url in known_urls:
            stats.skipped += 1
            LOGGER.info("Skipping already ingested url=%s", url)
            continue

        if dry_run:
            stats.processed += 1
            LOGGER.info("[dry-run] Would ingest: %s", url)
            continue

        try:
            scraped = scrape_article(url)
            store.create_article(
                {
                    "title": scraped.title,
                    "url": scraped.url,
                    "originalContent": scraped.content,
                    "enriched": False,
                }
            )
            stats.processed += 1
            LOGGER.info("Ingested article: %s", scraped.title)
        except Exception as exc:  # one bad page must not stop the crawl
            stats.failed += 1
            LOGGER.exception("Failed ingesting url=%s: %s", url, exc)

    LOGGER.info(
        "Ingestion complete. processed=%s skipped=%s failed=%s",
        stats.processed,
        stats.skipped,
        stats.failed,
    )
    return stats


def enrich_article(article: Article, config: PipelineConfig, store: ArticleStore) -> Article:
    """Search, scrape, rewrite and persist one article; store errors propagate."""
    snapshot = ReferenceSnapshot(query=article.title)
    for url in find_references(article.title, config):
        snapshot.references.append((url, scrape_reference(url)))
    LOGGER.info(
        "Article id=%s: %s reference URLs, %s scraped",
        article.article_id,
        len(snapshot.urls),
        len(snapshot.texts),
    )

    result = rewrite_article(article.original_content, snapshot.texts, config)
    LOGGER.info("Article id=%s rewritten via tier=%s", article.article_id, result.tier.name)

    citations = build_citations(snapshot.urls)
    return store.update_article(
        article.article_id,
        {
            "rewrittenContent": result.text + format_citation_footer(citations),
            "citations": citations,
            "enriched": True,
        },
    )


def run_enrichment(
    config: PipelineConfig,
    store: ArticleStore,
    *,
    limit: int | None = None,
    dry_run: bool = False,
) -> RunStats:
    """Rewrite every unenriched stored article.

    A failure to list articles propagates; anything that goes wrong for a single
    article is logged and the run moves on to the next one.
    """
    stats = RunStats()
    articles = store.list_articles()
    LOGGER.info("Enrichment: found %s articles", len(articles))

    for index, article in enumerate(articles, start=1):
        if limit is not None and stats.processed >= limit:
            LOGGER.info("Enrichment limit of %s reached", limit)
            break

        LOGGER.info("[%s/%s] Processing: %s", index, len(articles), article.title)
        if article.enriched:
            stats.skipped += 1
            LOGGER.info("Skipping already enriched id=%s", article.article_id)
            continue

        if dry_run:
            stats.processed += 1
            LOGGER.info("[dry-run] Would enrich: %s", article.title)
            continue

        try:
            enrich_article(article, config, store)
            stats.processed += 1
            LOGGER.info("Updated article id=%s", article.article_id)
        except Exception as exc:
            stats.failed += 1
            LOGGER.exception("Failed enriching id=%s: %s", article.article_id, exc)
            continue

        time.sleep(config.item_delay_seconds)

    LOGGER.info(
        "Enrichment complete. processed=%s skipped=%s failed=%s",
        stats.processed,
        stats.skipped,
        stats.failed,
    )
    return stats


def build_store(config: PipelineConfig, store_file: str | None) -> ArticleStore:
    if store_file:
        return JsonFileArticleStore(store_file)
    return HttpArticleStore(config.api_base_url)


def main() -> None:
    """Initialize config and execute the requested runs."""
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = parse_args()

    config = load_config()
    LOGGER.info(
        "Configuration: store=%s search=%s llm_provider=%s llm_key=%s",
        args.store_file or config.api_base_url,
        "configured" if config.search_configured else "mock",
        config.llm_provider,
        "configured" if config.llm_configured else "missing",
    )
    store = build_store(config, args.store_file)

    if args.mode in ("ingest", "all"):
        run_ingestion(config, store, dry_run=args.dry_run)
    if args.mode in ("enrich", "all"):
        run_enrichment(config, store, limit=args.limit, dry_run=args.dry_run)


if __name__ == "__main__":
    main()
