"""Domain models used across the pipeline."""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

_PROFILE_URL_RE = re.compile(r"^https?://(?:www\.)?(?:x|twitter)\.com/", re.IGNORECASE)

# Follower floors behind the older ``followerThreshold`` select.
LEGACY_FOLLOWER_THRESHOLDS: dict[str, int] = {
    "low": 1000,
    "medium": 10000,
    "high": 100000,
}


def normalize_handle(raw: str) -> str:
    """Strip whitespace, profile URLs and a leading ``@`` from a handle."""
    handle = _PROFILE_URL_RE.sub("", raw.strip())
    handle = handle.split("/", 1)[0].split("?", 1)[0]
    return handle.lstrip("@").strip()


def unique_handles(handles: Any, *, ignore_case: bool = True) -> list[str]:
    """Normalise *handles* and drop duplicates, keeping first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for raw in handles or []:
        handle = normalize_handle(str(raw))
        if not handle:
            continue
        key = handle.lower() if ignore_case else handle
        if key in seen:
            continue
        seen.add(key)
        out.append(handle)
    return out


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FilterSpec(_CamelModel):
    """What to search for and which posts to keep."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    keywords: tuple[str, ...] = ()
    trusted_handles: tuple[str, ...] = ()
    verified_only: bool = False
    min_followers: int = Field(default=0, ge=0)
    exclude_replies: bool = False
    exclude_retweets: bool = False
    safe_mode: bool = True
    sector_id: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_shape(cls, data: Any) -> Any:
        """Accept the older persisted filter shape and map it onto this one."""
        if not isinstance(data, dict):
            return data
        data = dict(data)

        outlets = data.pop("newsOutlets", None)
        if outlets is None:
            outlets = data.pop("news_outlets", None)
        if outlets is not None and not (
            data.get("trustedHandles") or data.get("trusted_handles")
        ):
            data["trustedHandles"] = outlets

        threshold = data.pop("followerThreshold", None) or data.pop("follower_threshold", None)
        if threshold is not None and "minFollowers" not in data and "min_followers" not in data:
            floor = LEGACY_FOLLOWER_THRESHOLDS.get(str(threshold).lower())
            if floor is None:
                logger.warning("Unknown legacy followerThreshold %r; ignoring", threshold)
            else:
                data["minFollowers"] = floor

        account_types = data.pop("accountTypes", None) or data.pop("account_types", None)
        if account_types and "verified" in account_types:
            data["verifiedOnly"] = True

        return data

    @field_validator("keywords", mode="before")
    @classmethod
    def _clean_keywords(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(kw).strip() for kw in value if str(kw).strip()]

    @field_validator("trusted_handles", mode="before")
    @classmethod
    def _clean_handles(cls, value: Any) -> list[str]:
        if isinstance(value, str):
            value = [value]
        return unique_handles(value)


class Sector(_CamelModel):
    """A named, user-owned list of trusted source handles."""

    id: int | None = None
    user_id: int | None = None
    name: str
    description: str = ""
    handles: list[str] = Field(default_factory=list)

    @field_validator("handles", mode="before")
    @classmethod
    def _clean_handles(cls, value: Any) -> list[str]:
        return unique_handles(value, ignore_case=False)


class Author(BaseModel):
    id: str
    handle: str = ""
    verified: bool = False
    follower_count: int = 0


class PostMetrics(BaseModel):
    like_count: int = 0
    retweet_count: int = 0
    reply_count: int = 0
    quote_count: int = 0


class RawPost(BaseModel):
    """A post exactly as the search provider described it."""

    id: str
    text: str
    created_at: datetime
    author_id: str = ""
    metrics: PostMetrics = Field(default_factory=PostMetrics)
    is_reply: bool = False
    is_retweet: bool = False


class SearchPage(BaseModel):
    """One provider response: posts plus the expanded author records."""

    posts: list[RawPost] = Field(default_factory=list)
    authors: dict[str, Author] = Field(default_factory=dict)


class CanonicalPost(BaseModel):
    id: str
    author_handle: str
    text: str
    created_at: datetime
    metrics: PostMetrics = Field(default_factory=PostMetrics)


class NarrativeSettings(_CamelModel):
    # style/tone stay plain strings: unknown values fall back at synthesis time.
    style: str = "professional"
    tone: str = "formal"
    word_count: int = Field(default=300, ge=100, le=1000)
    paragraph_count: int = Field(default=6, ge=1, le=10)


class Newsletter(_CamelModel):
    id: int | None = None
    user_id: int
    template_id: int | None = None
    keywords: list[str] = Field(default_factory=list)
    tweet_filters: FilterSpec = Field(default_factory=FilterSpec)
    narrative_settings: NarrativeSettings = Field(default_factory=NarrativeSettings)
    tweet_content: list[CanonicalPost] = Field(default_factory=list)
    status: str = "draft"
    created_at: datetime | None = None

    def filter_spec(self) -> FilterSpec:
        """Return the stored filters with the newsletter's keywords folded in."""
        if self.tweet_filters.keywords or not self.keywords:
            return self.tweet_filters
        return FilterSpec.model_validate(
            {**self.tweet_filters.model_dump(), "keywords": self.keywords}
        )


class DigestResult(BaseModel):
    query_terms: list[str] = Field(default_factory=list)
    posts: list[CanonicalPost] = Field(default_factory=list)
    narrative_html: str = ""

    @property
    def is_empty(self) -> bool:
        """True when the search succeeded but nothing survived filtering."""
        return not self.posts
