"""Fan out one provider call per query term and merge the results."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from tweetletter import config
from tweetletter.dedupe import dedupe_posts
from tweetletter.errors import SearchUnavailable
from tweetletter.filters import Predicate
from tweetletter.models import CanonicalPost, SearchPage
from tweetletter.rank import by_recency

logger = logging.getLogger(__name__)


class SearchProvider(Protocol):
    def search_recent(self, query: str) -> SearchPage: ...


def _accepted(page: SearchPage, predicate: Predicate) -> list[CanonicalPost]:
    """Join each post to its author, apply *predicate*, keep the survivors."""
    kept: list[CanonicalPost] = []
    for raw in page.posts:
        author = page.authors.get(raw.author_id)
        if author is None:
            logger.debug("No author found for post %s; dropping", raw.id)
            continue
        post = CanonicalPost(
            id=raw.id,
            author_handle=author.handle,
            text=raw.text,
            created_at=raw.created_at,
            metrics=raw.metrics,
        )
        if predicate(post, author):
            kept.append(post)
    return kept


def search(
    query_terms: list[str],
    predicate: Predicate,
    provider: SearchProvider,
    max_workers: int | None = None,
) -> list[CanonicalPost]:
    """Run every query term and return deduplicated posts, newest first.

    A failing term counts as an empty result. ``SearchUnavailable`` is raised
    only when every call failed. An empty list is a valid outcome.
    """
    if not query_terms:
        return []

    workers = max(1, min(max_workers or config.SEARCH_WORKERS, len(query_terms)))
    errors: dict[str, Exception] = {}
    last_error: Exception | None = None
    pages: list[SearchPage | None] = []

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="x-search") as pool:
        futures = [pool.submit(provider.search_recent, term) for term in query_terms]
        # Join in submission order so ties keep query-term order.
        for term, future in zip(query_terms, futures):
            try:
                pages.append(future.result())
            except Exception as exc:
                logger.warning("Search failed for query %r: %s", term, exc)
                errors[term] = exc
                last_error = exc
                pages.append(None)

    # Terms may repeat, so count failed calls rather than distinct terms.
    failed = sum(page is None for page in pages)
    if failed == len(query_terms):
        raise SearchUnavailable(
            f"All {len(query_terms)} searches failed; last error: {last_error}",
            errors=errors,
        ) from last_error

    merged: list[CanonicalPost] = []
    for term, page in zip(query_terms, pages):
        if page is None:
            continue
        kept = _accepted(page, predicate)
        logger.info("  [%s] %d fetched, %d kept", term, len(page.posts), len(kept))
        merged.extend(kept)

    posts = by_recency(dedupe_posts(merged))
    if not posts:
        logger.info("No posts survived filtering for %d query terms", len(query_terms))
    return posts
