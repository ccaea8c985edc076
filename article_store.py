"""Record store access: list, get, create and update articles."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import requests

from models import Article

REQUEST_TIMEOUT_SECONDS = 30
MAX_RETRIES = 3

_DEFAULT_FIELDS: dict[str, Any] = {
    "title": "",
    "url": "",
    "originalContent": "",
    "rewrittenContent": "",
    "citations": [],
    "enriched": False,
}

LOGGER = logging.getLogger(__name__)


class ArticleStoreError(RuntimeError):
    """The store could not be reached or rejected the request."""


class ArticleNotFoundError(LookupError):
    """No article exists with the requested id."""


@runtime_checkable
class ArticleStore(Protocol):
    """CRUD contract shared by the HTTP and file-backed stores.

    get_article and update_article raise ArticleNotFoundError for unknown ids.
    """

    def list_articles(self) -> list[Article]: ...

    def get_article(self, article_id: str) -> Article: ...

    def create_article(self, fields: dict[str, Any]) -> Article: ...

    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article: ...


class HttpArticleStore:
    """Client for the articles REST API (``/articles`` and ``/articles/{id}``)."""

    def __init__(self, base_url: str, *, timeout: float = REQUEST_TIMEOUT_SECONDS) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def list_articles(self) -> list[Article]:
        body = self._request("GET", "/articles")
        if not isinstance(body, list):
            raise ArticleStoreError("Unexpected article list payload: expected a list")
        return [Article.from_record(item) for item in body if isinstance(item, dict)]

    def get_article(self, article_id: str) -> Article:
        return Article.from_record(self._request("GET", f"/articles/{article_id}"))

    def create_article(self, fields: dict[str, Any]) -> Article:
        return Article.from_record(self._request("POST", "/articles", json_payload=fields))

    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article:
        return Article.from_record(
            self._request("PUT", f"/articles/{article_id}", json_payload=fields)
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send a store request, retrying rate limits and transport errors with backoff."""
        url = f"{self.base_url}{path}"
        delay_seconds = 1.0
        last_error: Exception | None = None

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = requests.request(
                    method=method,
                    url=url,
                    headers={"Content-Type": "application/json"},
                    json=json_payload,
                    timeout=self.timeout,
                )
                if response.status_code == 404:
                    raise ArticleNotFoundError(f"{method} {path}: article not found")
                if response.status_code == 429 and attempt < MAX_RETRIES:
                    time.sleep(delay_seconds)
                    delay_seconds *= 2
                    continue
                response.raise_for_status()
                return response.json()
            except requests.HTTPError as exc:
                # 4xx other than 404/429 will not succeed on retry.
                last_error = exc
                if exc.response is not None and exc.response.status_code < 500:
                    break
            except (requests.RequestException, ValueError) as exc:
                last_error = exc

            if attempt < MAX_RETRIES:
                LOGGER.warning(
                    "Store request %s %s failed on attempt %s/%s: %s",
                    method,
                    path,
                    attempt,
                    MAX_RETRIES,
                    last_error,
                )
                time.sleep(delay_seconds)
                delay_seconds *= 2

        raise ArticleStoreError(f"Store request {method} {path} failed: {last_error}")


class JsonFileArticleStore:
    """Articles kept as a JSON array in a local file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def list_articles(self) -> list[Article]:
        return [Article.from_record(record) for record in self._read()]

    def get_article(self, article_id: str) -> Article:
        for record in self._read():
            if record.get("_id") == article_id:
                return Article.from_record(record)
        raise ArticleNotFoundError(f"Article {article_id} not found")

    def create_article(self, fields: dict[str, Any]) -> Article:
        records = self._read()
        article = Article.from_record({
            **_DEFAULT_FIELDS,
            **fields,
            "_id": uuid.uuid4().hex,
            "createdAt": datetime.now(UTC).isoformat(),
        })
        records.append(article.to_record())
        self._write(records)
        LOGGER.debug("Created article _id=%s in %s", article.article_id, self.path)
        return article

    def update_article(self, article_id: str, fields: dict[str, Any]) -> Article:
        records = self._read()
        for index, record in enumerate(records):
            if record.get("_id") != article_id:
                continue
            # id and creation time are immutable
            updates = {k: v for k, v in fields.items() if k not in ("_id", "createdAt")}
            article = Article.from_record({**record, **updates})
            records[index] = article.to_record()
            self._write(records)
            return article
        raise ArticleNotFoundError(f"Article {article_id} not found")

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "[]")
        except json.JSONDecodeError as exc:
            raise ArticleStoreError(f"Corrupt article store file {self.path}: {exc}") from exc
        if not isinstance(data, list):
            raise ArticleStoreError(f"Article store file {self.path} must hold a JSON array")
        return [record for record in data if isinstance(record, dict)]

    def _write(self, records: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")
