"""Unit tests for model normalisation and legacy filter migration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from tweetletter.models import FilterSpec, NarrativeSettings, Newsletter, Sector, normalize_handle


class TestNormalizeHandle:
    def test_strips_at_and_whitespace(self) -> None:
        assert normalize_handle("  @Reuters ") == "Reuters"

    def test_strips_profile_url(self) -> None:
        assert normalize_handle("https://x.com/BBCNews") == "BBCNews"
        assert normalize_handle("https://twitter.com/AP/status/1") == "AP"


class TestFilterSpec:
    def test_handles_deduped_case_insensitively(self) -> None:
        spec = FilterSpec(trusted_handles=["@Reuters", "reuters", "AP"])
        assert spec.trusted_handles == ("Reuters", "AP")

    def test_blank_keywords_dropped(self) -> None:
        assert FilterSpec(keywords=[" ai ", "", "  "]).keywords == ("ai",)

    def test_negative_min_followers_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            FilterSpec(min_followers=-1)

    def test_frozen(self) -> None:
        spec = FilterSpec(keywords=["ai"])
        with pytest.raises(PydanticValidationError):
            spec.safe_mode = False  # type: ignore[misc]

    def test_camel_case_round_trip(self) -> None:
        spec = FilterSpec(keywords=["ai"], trusted_handles=["AP"], min_followers=10, sector_id=2)
        dumped = spec.model_dump(by_alias=True)
        assert dumped["trustedHandles"] == ("AP",)
        assert FilterSpec.model_validate(dumped) == spec


class TestLegacyMigration:
    def test_news_outlets_become_trusted_handles(self) -> None:
        spec = FilterSpec.model_validate(
            {"verifiedOnly": False, "minFollowers": 0, "safeMode": True, "newsOutlets": ["@WSJ", "FT"]}
        )
        assert spec.trusted_handles == ("WSJ", "FT")

    def test_follower_threshold_fills_min_followers(self) -> None:
        spec = FilterSpec.model_validate({"followerThreshold": "medium"})
        assert spec.min_followers == 10000

    def test_explicit_min_followers_wins(self) -> None:
        spec = FilterSpec.model_validate({"followerThreshold": "high", "minFollowers": 5})
        assert spec.min_followers == 5

    def test_verified_account_type(self) -> None:
        spec = FilterSpec.model_validate({"accountTypes": ["news", "verified"]})
        assert spec.verified_only is True

    def test_dump_writes_new_shape(self) -> None:
        dumped = FilterSpec.model_validate({"newsOutlets": ["AP"]}).model_dump(by_alias=True)
        assert "newsOutlets" not in dumped
        assert dumped["trustedHandles"] == ("AP",)


class TestOtherModels:
    def test_sector_handles_keep_case_distinct_entries(self) -> None:
        sector = Sector(name="News", handles=["@AP", "AP", "ap"])
        assert sector.handles == ["AP", "ap"]

    def test_narrative_bounds(self) -> None:
        with pytest.raises(PydanticValidationError):
            NarrativeSettings(paragraph_count=11)
        with pytest.raises(PydanticValidationError):
            NarrativeSettings(word_count=50)

    def test_newsletter_keywords_fold_into_filters(self) -> None:
        newsletter = Newsletter(user_id=1, keywords=["ai"], tweet_filters=FilterSpec(safe_mode=False))
        spec = newsletter.filter_spec()
        assert spec.keywords == ("ai",)
        assert spec.safe_mode is False
