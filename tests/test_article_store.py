from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests

from article_store import (
    ArticleNotFoundError,
    ArticleStore,
    ArticleStoreError,
    HttpArticleStore,
    JsonFileArticleStore,
)
from models import Article


def _mock_resp(payload: object, status_code: int = 200) -> MagicMock:
    mock = MagicMock()
    mock.status_code = status_code
    mock.json.return_value = payload
    if status_code >= 400:
        error = requests.HTTPError(f"{status_code} error")
        error.response = mock
        mock.raise_for_status.side_effect = error
    return mock


_RECORD = {
    "_id": "abc123",
    "title": "Chatbots 101",
    "url": "https://beyondchats.com/blogs/chatbots-101/",
    "originalContent": "Original text",
    "rewrittenContent": "",
    "citations": [],
    "createdAt": "2026-01-01T00:00:00+00:00",
}


# ---------------------------------------------------------------------------
# JSON file store
# ---------------------------------------------------------------------------

@pytest.fixture()
def file_store(tmp_path: Path) -> JsonFileArticleStore:
    return JsonFileArticleStore(tmp_path / "data" / "articles.json")


def test_file_store_list_empty_when_missing(file_store: JsonFileArticleStore) -> None:
    assert file_store.list_articles() == []


def test_file_store_create_assigns_id_and_defaults(file_store: JsonFileArticleStore) -> None:
    created = file_store.create_article({"title": "T", "url": "https://site/blogs/t/"})

    assert created.article_id
    assert created.created_at
    assert created.original_content == ""
    assert created.rewritten_content == ""
    assert created.citations == []
    assert created.enriched is False
    assert file_store.list_articles() == [created]


def test_file_store_update_merges_fields(file_store: JsonFileArticleStore) -> None:
    created = file_store.create_article({"title": "T", "url": "u", "originalContent": "body"})

    updated = file_store.update_article(
        created.article_id,
        {"rewrittenContent": "new", "citations": ["https://a"], "enriched": True, "createdAt": "x"},
    )

    assert updated.original_content == "body"
    assert updated.rewritten_content == "new"
    assert updated.citations == ["https://a"]
    assert updated.enriched is True
    assert updated.created_at == created.created_at
    assert file_store.get_article(created.article_id) == updated


def test_file_store_not_found(file_store: JsonFileArticleStore) -> None:
    with pytest.raises(ArticleNotFoundError):
        file_store.get_article("missing")
    with pytest.raises(ArticleNotFoundError):
        file_store.update_article("missing", {"title": "x"})


def test_file_store_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "articles.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ArticleStoreError):
        JsonFileArticleStore(path).list_articles()


def test_file_store_writes_normalized_records(file_store: JsonFileArticleStore) -> None:
    created = file_store.create_article({"title": "T", "url": "u", "extra": "dropped"})

    records = json.loads(file_store.path.read_text(encoding="utf-8"))

    assert records == [created.to_record()]
    assert set(records[0]) == {
        "_id", "title", "url", "originalContent", "rewrittenContent",
        "citations", "createdAt", "enriched",
    }


def test_file_store_update_persists_flag_for_legacy_record(tmp_path: Path) -> None:
    path = tmp_path / "articles.json"
    legacy = {k: v for k, v in _RECORD.items() if k != "createdAt"}
    path.write_text(json.dumps([legacy]), encoding="utf-8")

    JsonFileArticleStore(path).update_article("abc123", {"title": "Renamed"})

    [record] = json.loads(path.read_text(encoding="utf-8"))
    assert record["title"] == "Renamed"
    assert record["enriched"] is False
    assert record["createdAt"] == ""


def test_stores_satisfy_article_store_protocol(file_store: JsonFileArticleStore) -> None:
    assert isinstance(file_store, ArticleStore)
    assert isinstance(HttpArticleStore("http://localhost:4000"), ArticleStore)
    assert not isinstance(object(), ArticleStore)


# ---------------------------------------------------------------------------
# HTTP store
# ---------------------------------------------------------------------------

def test_http_store_list_articles() -> None:
    store = HttpArticleStore("http://localhost:4000/")
    with patch("article_store.requests.request", return_value=_mock_resp([_RECORD])) as mock_req:
        articles = store.list_articles()

    assert articles == [Article.from_record(_RECORD)]
    _, kwargs = mock_req.call_args
    assert kwargs["method"] == "GET"
    assert kwargs["url"] == "http://localhost:4000/articles"


def test_http_store_update_sends_put() -> None:
    store = HttpArticleStore("http://localhost:4000")
    merged = {**_RECORD, "rewrittenContent": "new", "enriched": True}
    with patch("article_store.requests.request", return_value=_mock_resp(merged)) as mock_req:
        updated = store.update_article("abc123", {"rewrittenContent": "new", "enriched": True})

    assert updated.rewritten_content == "new"
    _, kwargs = mock_req.call_args
    assert kwargs["method"] == "PUT"
    assert kwargs["url"] == "http://localhost:4000/articles/abc123"
    assert kwargs["json"] == {"rewrittenContent": "new", "enriched": True}


def test_http_store_not_found() -> None:
    store = HttpArticleStore("http://localhost:4000")
    with patch("article_store.requests.request", return_value=_mock_resp({"error": "Not found"}, 404)):
        with pytest.raises(ArticleNotFoundError):
            store.get_article("nope")


def test_http_store_retries_transport_errors_then_fails() -> None:
    store = HttpArticleStore("http://localhost:4000")
    with patch("article_store.requests.request", side_effect=requests.ConnectionError("refused")) as mock_req, \
         patch("article_store.time.sleep") as mock_sleep:
        with pytest.raises(ArticleStoreError, match="refused"):
            store.list_articles()

    assert mock_req.call_count == 3
    assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]


def test_http_store_retries_rate_limit() -> None:
    store = HttpArticleStore("http://localhost:4000")
    responses = [_mock_resp({}, 429), _mock_resp([_RECORD])]
    with patch("article_store.requests.request", side_effect=responses), \
         patch("article_store.time.sleep"):
        articles = store.list_articles()

    assert len(articles) == 1


def test_http_store_client_error_not_retried() -> None:
    store = HttpArticleStore("http://localhost:4000")
    with patch("article_store.requests.request", return_value=_mock_resp({}, 400)) as mock_req, \
         patch("article_store.time.sleep"):
        with pytest.raises(ArticleStoreError):
            store.create_article({"title": ""})

    assert mock_req.call_count == 1


def test_article_from_legacy_record_without_flag() -> None:
    legacy = {**_RECORD, "rewrittenContent": "Already rewritten"}
    legacy.pop("createdAt")

    article = Article.from_record(legacy)

    assert article.enriched is True
    assert article.created_at == ""
    assert Article.from_record(_RECORD).enriched is False
