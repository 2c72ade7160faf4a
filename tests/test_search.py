"""Unit tests for the search orchestrator."""

from datetime import UTC, datetime, timedelta

import pytest

from tweetletter.errors import SearchUnavailable
from tweetletter.filters import compile_filters
from tweetletter.models import Author, FilterSpec, RawPost, SearchPage
from tweetletter.search import search
from tweetletter.x_client import XClientError

_BASE = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _raw(post_id: str, author_id: str, minutes: int, text: str = "market update") -> RawPost:
    return RawPost(
        id=post_id,
        text=text,
        author_id=author_id,
        created_at=_BASE + timedelta(minutes=minutes),
    )


def _author(author_id: str, followers: int) -> Author:
    return Author(id=author_id, handle=f"user_{author_id}", follower_count=followers)


class FakeProvider:
    """Returns canned pages per query; raises for queries mapped to an exception."""

    def __init__(self, responses: dict[str, SearchPage | Exception]) -> None:
        self._responses = responses
        self.calls: list[str] = []

    def search_recent(self, query: str) -> SearchPage:
        self.calls.append(query)
        response = self._responses.get(query, SearchPage())
        if isinstance(response, Exception):
            raise response
        return response


def _accept_all(post, author) -> bool:  # type: ignore[no-untyped-def]
    return author is not None


class TestSearch:
    def test_min_followers_scenario(self) -> None:
        spec = FilterSpec(keywords=["technology"], min_followers=1000, safe_mode=False)
        compiled = compile_filters(spec)
        page = SearchPage(
            posts=[
                _raw("1", "a", minutes=1),
                _raw("2", "b", minutes=5),
                _raw("3", "c", minutes=3),
            ],
            authors={
                "a": _author("a", 500),
                "b": _author("b", 50000),
                "c": _author("c", 2000),
            },
        )
        provider = FakeProvider({"technology": page})

        posts = search(compiled.query_terms, compiled.predicate, provider)

        assert [p.id for p in posts] == ["2", "3"]
        assert [p.author_handle for p in posts] == ["user_b", "user_c"]

    def test_dedupes_across_terms_first_wins(self) -> None:
        authors = {"a": _author("a", 10)}
        first = SearchPage(posts=[_raw("1", "a", 1, text="first copy")], authors=authors)
        second = SearchPage(
            posts=[_raw("1", "a", 1, text="second copy"), _raw("2", "a", 2)],
            authors=authors,
        )
        provider = FakeProvider({"q1": first, "q2": second})

        posts = search(["q1", "q2"], _accept_all, provider)

        assert sorted(p.id for p in posts) == ["1", "2"]
        assert next(p for p in posts if p.id == "1").text == "first copy"
        assert sorted(provider.calls) == ["q1", "q2"]

    def test_sorted_newest_first_and_ties_keep_fetch_order(self) -> None:
        authors = {"a": _author("a", 10)}
        page1 = SearchPage(posts=[_raw("old", "a", 0), _raw("tie1", "a", 10)], authors=authors)
        page2 = SearchPage(posts=[_raw("tie2", "a", 10), _raw("new", "a", 20)], authors=authors)
        provider = FakeProvider({"q1": page1, "q2": page2})

        posts = search(["q1", "q2"], _accept_all, provider)

        assert [p.id for p in posts] == ["new", "tie1", "tie2", "old"]
        stamps = [p.created_at for p in posts]
        assert stamps == sorted(stamps, reverse=True)

    def test_posts_without_author_are_dropped(self) -> None:
        page = SearchPage(posts=[_raw("1", "ghost", 1), _raw("2", "a", 2)], authors={"a": _author("a", 1)})
        posts = search(["q"], _accept_all, FakeProvider({"q": page}))
        assert [p.id for p in posts] == ["2"]

    def test_partial_failure_degrades(self) -> None:
        page = SearchPage(posts=[_raw("1", "a", 1)], authors={"a": _author("a", 1)})
        provider = FakeProvider({"ok": page, "bad": XClientError("boom")})

        posts = search(["bad", "ok"], _accept_all, provider)

        assert [p.id for p in posts] == ["1"]

    def test_all_failures_raise(self) -> None:
        provider = FakeProvider({"a": XClientError("down"), "b": RuntimeError("also down")})

        with pytest.raises(SearchUnavailable) as excinfo:
            search(["a", "b"], _accept_all, provider)

        assert set(excinfo.value.errors) == {"a", "b"}
        assert excinfo.value.__cause__ is not None

    def test_repeated_terms_all_failing_raise(self) -> None:
        spec = FilterSpec(keywords=["ai", "ai"], safe_mode=False)
        compiled = compile_filters(spec)
        provider = FakeProvider({"ai": XClientError("down")})

        with pytest.raises(SearchUnavailable):
            search(compiled.query_terms, compiled.predicate, provider)

        assert provider.calls == ["ai", "ai"]

    def test_empty_result_is_not_an_error(self) -> None:
        assert search(["nothing"], _accept_all, FakeProvider({})) == []

    def test_no_terms(self) -> None:
        provider = FakeProvider({})
        assert search([], _accept_all, provider) == []
        assert provider.calls == []
