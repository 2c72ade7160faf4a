"""Deduplication logic — keep one copy of each post across query terms."""

from __future__ import annotations

import logging

from tweetletter.models import CanonicalPost

logger = logging.getLogger(__name__)


def dedupe_posts(items: list[CanonicalPost]) -> list[CanonicalPost]:
    """Return *items* with repeated post IDs removed; first occurrence wins."""
    seen: set[str] = set()
    unique: list[CanonicalPost] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        unique.append(item)
    logger.info(
        "Dedupe: %d total → %d unique (dropped %d repeats)",
        len(items),
        len(unique),
        len(items) - len(unique),
    )
    return unique
