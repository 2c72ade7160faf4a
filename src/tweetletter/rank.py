"""Ordering for canonical posts."""

from __future__ import annotations

import logging

from tweetletter.models import CanonicalPost

logger = logging.getLogger(__name__)


def by_recency(items: list[CanonicalPost]) -> list[CanonicalPost]:
    """Sort most recent first.

    ``sorted`` is stable even with ``reverse=True``, so posts with the same
    timestamp keep their fetch order.
    """
    ranked = sorted(items, key=lambda p: p.created_at, reverse=True)
    if ranked:
        logger.info(
            "Ordered %d posts; newest=%s oldest=%s",
            len(ranked),
            ranked[0].created_at.isoformat(),
            ranked[-1].created_at.isoformat(),
        )
    return ranked
