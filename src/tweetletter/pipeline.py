"""Pipeline orchestration — wires compile → search → synthesise → persist."""

from __future__ import annotations

import logging
from datetime import datetime

from tweetletter.filters import compile_filters
from tweetletter.models import DigestResult, FilterSpec, NarrativeSettings, Sector
from tweetletter.narrative import synthesize
from tweetletter.search import SearchProvider, search
from tweetletter.store import DigestStore

logger = logging.getLogger(__name__)


def build_digest(
    spec: FilterSpec,
    settings: NarrativeSettings,
    provider: SearchProvider,
    sector: Sector | None = None,
    now: datetime | None = None,
    max_workers: int | None = None,
) -> DigestResult:
    """Compile *spec*, search, and synthesise the narrative fragment.

    Raises ``ValidationError`` before any provider call when there is nothing
    to search for, and ``SearchUnavailable`` when every search failed.
    """
    compiled = compile_filters(spec, sector)
    posts = search(compiled.query_terms, compiled.predicate, provider, max_workers=max_workers)
    if not posts:
        logger.warning("No posts matched; broaden keywords, handles or thresholds.")

    return DigestResult(
        query_terms=compiled.query_terms,
        posts=posts,
        narrative_html=synthesize(posts, settings, now=now),
    )


def refresh_newsletter(
    store: DigestStore,
    newsletter_id: int,
    provider: SearchProvider,
    user_id: int | None = None,
    now: datetime | None = None,
) -> DigestResult:
    """Re-run the digest for a stored newsletter and persist the new posts."""
    newsletter = store.get_newsletter(newsletter_id)
    if newsletter is None or (user_id is not None and newsletter.user_id != user_id):
        raise KeyError(f"Newsletter {newsletter_id} not found")

    logger.info("=== refresh start [newsletter=%d] ===", newsletter_id)
    spec = newsletter.filter_spec()

    sector: Sector | None = None
    if spec.sector_id is not None:
        sector = store.get_sector(spec.sector_id, user_id=newsletter.user_id)
        if sector is None:
            logger.warning("Sector %d not found; searching without it", spec.sector_id)

    result = build_digest(spec, newsletter.narrative_settings, provider, sector=sector, now=now)
    # Keywords folded in above stay on the newsletter, not in its stored filters.
    store.update_newsletter(
        newsletter_id, tweet_content=result.posts, tweet_filters=newsletter.tweet_filters
    )
    logger.info(
        "=== refresh done [newsletter=%d] — %d posts ===", newsletter_id, len(result.posts)
    )
    return result
