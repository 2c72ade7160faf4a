"""Minimal X API v2 Recent Search client (read-only)."""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

import requests

from tweetletter.errors import ProviderCallError
from tweetletter.models import Author, PostMetrics, RawPost, SearchPage

logger = logging.getLogger(__name__)

_RECENT_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"

# Fields we always request.
_TWEET_FIELDS = "created_at,public_metrics,author_id,referenced_tweets,in_reply_to_user_id"
_EXPANSIONS = "author_id"
_USER_FIELDS = "username,verified,public_metrics"


class XClientError(ProviderCallError):
    """Raised when the X API returns an unexpected response."""


class XClient:
    """Thin wrapper around ``GET /2/tweets/search/recent``."""

    def __init__(self, bearer_token: str, max_results: int = 20, timeout: float = 30) -> None:
        if not bearer_token:
            raise ValueError("X_BEARER_TOKEN is required but was empty.")
        self._bearer = bearer_token
        self._max_results = min(max(max_results, 10), 100)
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {self._bearer}"})

    # ── public ──────────────────────────────────────────────────────────
    def search_recent(self, query: str) -> SearchPage:
        """Execute a single Recent Search query and return the parsed page."""
        params: dict[str, Any] = {
            "query": query,
            "max_results": self._max_results,
            "tweet.fields": _TWEET_FIELDS,
            "expansions": _EXPANSIONS,
            "user.fields": _USER_FIELDS,
        }

        data = self._get(params)
        page = parse_search_response(data)
        if not page.posts:
            logger.info("No results for query: %s", query)
        else:
            logger.info("Fetched %d posts for query: %s", len(page.posts), query)
        return page

    # ── private ─────────────────────────────────────────────────────────
    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._session.get(_RECENT_SEARCH_URL, params=params, timeout=self._timeout)
            if resp.status_code == 429:
                retry_after = int(resp.headers.get("Retry-After", "60"))
                logger.warning("Rate-limited; sleeping %ds", retry_after)
                time.sleep(retry_after)
                resp = self._session.get(
                    _RECENT_SEARCH_URL, params=params, timeout=self._timeout
                )
        except requests.RequestException as exc:
            raise XClientError(f"X API request failed: {exc}") from exc

        if resp.status_code != 200:
            raise XClientError(
                f"X API returned {resp.status_code}: {resp.text[:500]}"
            )
        try:
            return resp.json()  # type: ignore[no-any-return]
        except ValueError as exc:
            raise XClientError(f"X API returned invalid JSON: {exc}") from exc


def _parse_author(raw: dict[str, Any]) -> Author:
    pm = raw.get("public_metrics") or {}
    return Author(
        id=str(raw["id"]),
        handle=raw.get("username", ""),
        verified=bool(raw.get("verified", False)),
        follower_count=pm.get("followers_count", 0),
    )


def _parse_post(raw: dict[str, Any], fetched_at: datetime) -> RawPost:
    pm = raw.get("public_metrics") or {}
    refs = {ref.get("type") for ref in raw.get("referenced_tweets") or []}
    return RawPost(
        id=str(raw["id"]),
        text=raw.get("text", ""),
        created_at=raw.get("created_at") or fetched_at,
        author_id=str(raw.get("author_id", "")),
        metrics=PostMetrics(
            like_count=pm.get("like_count", 0),
            retweet_count=pm.get("retweet_count", 0),
            reply_count=pm.get("reply_count", 0),
            quote_count=pm.get("quote_count", 0),
        ),
        is_reply="replied_to" in refs or bool(raw.get("in_reply_to_user_id")),
        is_retweet="retweeted" in refs,
    )


def parse_search_response(data: dict[str, Any]) -> SearchPage:
    """Turn a Recent Search JSON body into a ``SearchPage``.

    A body with no ``data`` array is a valid empty page.
    """
    tweets_raw: list[dict[str, Any]] = data.get("data") or []
    if not tweets_raw:
        return SearchPage()

    # Build author-id → Author map from expansions
    includes = data.get("includes") or {}
    users: list[dict[str, Any]] = includes.get("users") or []
    authors = {str(u["id"]): _parse_author(u) for u in users if "id" in u}

    fetched_at = datetime.now(UTC)
    posts = [_parse_post(raw, fetched_at) for raw in tweets_raw if "id" in raw]
    return SearchPage(posts=posts, authors=authors)
