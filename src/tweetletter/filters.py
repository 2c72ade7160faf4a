"""Compile a filter spec into X query strings and a local post predicate."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import NamedTuple

from tweetletter.errors import ValidationError
from tweetletter.models import Author, CanonicalPost, FilterSpec, Sector

logger = logging.getLogger(__name__)

# Recent Search query length limit (Basic tier).
MAX_QUERY_LENGTH = 512

# Safe-mode denylist, matched as case-insensitive substrings of the post text.
SAFE_MODE_DENYLIST: tuple[str, ...] = ("fuck", "shit", "damn", "ass")

_SAFE_MODE_TOKENS = "-has:links -has:mentions lang:en"

Predicate = Callable[[CanonicalPost, Author | None], bool]


class CompiledFilters(NamedTuple):
    query_terms: list[str]
    predicate: Predicate
    handles: list[str]


def merge_handles(spec: FilterSpec, sector: Sector | None = None) -> list[str]:
    """Return the spec's trusted handles unioned with the sector's, in order.

    The sector only contributes when the spec actually references one.
    """
    handles = list(spec.trusted_handles)
    if spec.sector_id is None or sector is None:
        return handles
    if sector.id is not None and sector.id != spec.sector_id:
        logger.warning(
            "Sector %s supplied for filters referencing sector %s; merging anyway",
            sector.id,
            spec.sector_id,
        )
    seen = set(handles)
    for handle in sector.handles:
        if handle not in seen:
            seen.add(handle)
            handles.append(handle)
    return handles


def _provider_tokens(spec: FilterSpec) -> list[str]:
    tokens: list[str] = []
    if spec.verified_only:
        tokens.append("is:verified")
    if spec.exclude_replies:
        tokens.append("-is:reply")
    if spec.exclude_retweets:
        tokens.append("-is:retweet")
    if spec.safe_mode:
        tokens.append(_SAFE_MODE_TOKENS)
    return tokens


def _acct_clause(handles: list[str]) -> str:
    clause = " OR ".join(f"from:{h}" for h in handles)
    # Parenthesise so appended operators apply to the whole disjunction.
    return f"({clause})" if len(handles) > 1 else clause


def build_query_terms(spec: FilterSpec, handles: list[str]) -> list[str]:
    """One query per keyword, plus one ``from:`` disjunction for *handles*."""
    bodies = list(spec.keywords)
    if handles:
        bodies.append(_acct_clause(handles))

    suffix = " ".join(_provider_tokens(spec))
    terms: list[str] = []
    for body in bodies:
        term = f"{body} {suffix}".strip()
        if len(term) > MAX_QUERY_LENGTH:
            logger.warning(
                "Query is %d chars (limit %d); the provider may reject it: %.80s…",
                len(term),
                MAX_QUERY_LENGTH,
                term,
            )
        terms.append(term)
    return terms


def contains_denylisted(text: str) -> bool:
    text_lower = text.lower()
    return any(token in text_lower for token in SAFE_MODE_DENYLIST)


def build_predicate(spec: FilterSpec) -> Predicate:
    """Return the in-process filter for rules X search cannot express."""
    min_followers = spec.min_followers
    safe_mode = spec.safe_mode

    def predicate(post: CanonicalPost, author: Author | None) -> bool:
        if author is None:
            return False
        if min_followers > 0 and author.follower_count < min_followers:
            return False
        if safe_mode and contains_denylisted(post.text):
            return False
        return True

    return predicate


def compile_filters(spec: FilterSpec, sector: Sector | None = None) -> CompiledFilters:
    """Turn *spec* (and its optional *sector*) into query terms and a predicate.

    Raises ``ValidationError`` when there is nothing to search for: no
    keywords and no trusted handles, even after the sector merge.
    """
    handles = merge_handles(spec, sector)
    if not spec.keywords and not handles:
        raise ValidationError(
            "Add at least one keyword or trusted source handle to search for."
        )

    terms = build_query_terms(spec, handles)
    for term in terms:
        logger.debug("Query term: %s", term)
    logger.info(
        "Compiled %d query terms (%d keywords, %d handles)",
        len(terms),
        len(spec.keywords),
        len(handles),
    )
    return CompiledFilters(query_terms=terms, predicate=build_predicate(spec), handles=handles)
