"""
NewsAPI candidate source.

Queries the /v2/everything endpoint sorted by publish time, restricted to a
technology domain allowlist. If the restricted query returns nothing, the
same query is repeated without the domain filter.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Any

import httpx

from ..config import NewsConfig
from ..core.types import Article
from ..errors import FetchError
from .base import ArticleSource

logger = logging.getLogger(__name__)


class NewsApiSource(ArticleSource):
    """Fetch technology articles from NewsAPI.

    Args:
        cfg: News settings (query, domains, page size, HTTP options)
        api_key: NewsAPI key sent as the X-Api-Key header
        http_client: Optional preconfigured client, mainly for tests
    """

    def __init__(
        self,
        cfg: NewsConfig,
        api_key: str | None,
        http_client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Missing NewsAPI key")
        self.cfg = cfg
        self.api_key = api_key
        self._http_client = http_client

    def fetch_candidates(self, language: str) -> list[Article]:
        params: dict[str, Any] = {
            "q": self.cfg.query,
            "language": language,
            "pageSize": self.cfg.page_size,
            "sortBy": "publishedAt",
        }
        if self.cfg.domains:
            params["domains"] = ",".join(self.cfg.domains)

        data = self._get(params)
        articles = parse_newsapi_articles(data)
        logger.info("Found %d articles", len(articles))

        if not articles and "domains" in params:
            params.pop("domains")
            logger.info("No articles on allowlisted domains; retrying without domain filter")
            data = self._get(params)
            articles = parse_newsapi_articles(data)
            logger.info("Found %d articles in fallback request", len(articles))

        return articles

    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        """GET the endpoint with retry on network errors.

        Non-200 responses are not retried.
        """
        headers = {"X-Api-Key": self.api_key}
        last_error: str | None = None

        for attempt in range(self.cfg.retries + 1):
            try:
                resp = self._request(params, headers)
            except httpx.TransportError as exc:
                last_error = f"{type(exc).__name__}: {exc}"
                logger.warning(
                    "News request failed (attempt %d/%d): %s",
                    attempt + 1,
                    self.cfg.retries + 1,
                    last_error,
                )
                if attempt < self.cfg.retries:
                    time.sleep(0.5 * (attempt + 1))
                continue

            if resp.status_code != 200:
                raise FetchError(
                    f"news API returned non-200 status code: {resp.status_code}, body: {resp.text[:500]}"
                )
            try:
                return resp.json()
            except ValueError as exc:
                raise FetchError(f"error decoding response: {exc}") from exc

        raise FetchError(f"error making request: {last_error}")

    def _request(self, params: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return self._http_client.get(self.cfg.base_url, params=params, headers=headers)
        with httpx.Client(
            timeout=self.cfg.timeout_seconds,
            trust_env=self.cfg.trust_env,
        ) as client:
            return client.get(self.cfg.base_url, params=params, headers=headers)


def parse_newsapi_articles(data: Any) -> list[Article]:
    """Convert a NewsAPI response payload into Article objects.

    Entries that are not objects or lack a title or URL are skipped. Null
    text fields become "".

    Raises:
        FetchError: If the payload is not an object, reports an error status
            or lacks "articles"
    """
    if not isinstance(data, dict):
        raise FetchError(f"Invalid NewsAPI payload: expected an object, got {type(data).__name__}")
    if data.get("status") == "error":
        raise FetchError(f"news API error: {data.get('code')}: {data.get('message')}")
    items = data.get("articles")
    if not isinstance(items, list):
        raise FetchError("Invalid NewsAPI payload: missing 'articles' list")

    articles: list[Article] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping malformed article entry: %r", item)
            continue
        title = (item.get("title") or "").strip()
        url = (item.get("url") or "").strip()
        if not title or not url:
            logger.warning("Skipping article without title or url")
            continue
        source = item.get("source")
        if not isinstance(source, dict):
            source = {}
        articles.append(
            Article(
                title=title,
                description=item.get("description") or "",
                content=item.get("content") or "",
                source_name=source.get("name") or "",
                author=item.get("author") or "",
                published_at=_parse_timestamp(item.get("publishedAt")),
                url=url,
            )
        )
    return articles


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable publishedAt: %s", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
