"""End-to-end tests for ThreadResolver against a fake Reddit."""

import pytest

from thread_finder.config import Config
from thread_finder.models.query import ExtractionQuery
from thread_finder.models.result import Failure, FailureKind, Match, NoMatch
from thread_finder.resolver import ThreadResolver
from thread_finder.tests.fakes import FakeResponse, FakeSession, fast_config, listing, post_child


@pytest.mark.asyncio
async def test_exact_post_found_on_first_strategy(config):
    session = FakeSession([
        FakeResponse(200, listing([
            post_child("Totally different", author="alice", post_id="zzz"),
            post_child("My cat found a box", author="bob", subreddit="pics", post_id="abc"),
        ])),
    ])
    query = ExtractionQuery(subreddit="pics", username="bob", title="My cat found a box")

    async with ThreadResolver(config, session=session) as resolver:
        result = await resolver.resolve(query)

    assert isinstance(result, Match)
    assert result.url == "https://www.reddit.com/r/pics/comments/abc/post/"
    assert result.match_confidence == 1.0
    assert result.strategy == "title_in_subreddit"
    assert len(session.get_calls) == 1
    assert not session.closed


@pytest.mark.asyncio
async def test_unsearchable_query_sends_nothing(config):
    session = FakeSession()
    resolver = ThreadResolver(config, session=session)

    assert await resolver.resolve(ExtractionQuery(body_snippet="just text")) == NoMatch()
    assert session.get_calls == []


@pytest.mark.asyncio
async def test_deleted_user(config):
    session = FakeSession([FakeResponse(404)])
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(ExtractionQuery(username="ghost", body_snippet="some words here"))

    assert result == Failure(FailureKind.USER_NOT_FOUND)
    assert session.get_calls[0]["url"] == "https://www.reddit.com/user/ghost/comments.json"


@pytest.mark.asyncio
async def test_rate_limit_halts_resolution(config):
    session = FakeSession([FakeResponse(429)])
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(ExtractionQuery(title="Some title here", body_snippet="body words here"))

    assert result == Failure(FailureKind.RATE_LIMITED)
    assert len(session.get_calls) == 1
    assert resolver.state.rate_limited_until is not None
    assert resolver.state.current_delay == pytest.approx(0.002)


@pytest.mark.asyncio
async def test_weak_results_are_not_found(config):
    unrelated = listing([post_child("Quantum chromodynamics lecture notes", author="prof", subreddit="physics")])
    session = FakeSession([FakeResponse(200, unrelated), FakeResponse(200, unrelated)])
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(ExtractionQuery(title="My cat found a box", body_snippet="kitty"))

    assert result == NoMatch()
    # exact_title and body_snippet are the only applicable strategies
    assert len(session.get_calls) == 2


def test_invalid_config_rejected():
    with pytest.raises(ValueError, match="search_limit"):
        ThreadResolver(Config(search_limit=500))


def test_custom_strategy_list(config):
    resolver = ThreadResolver(config, session=FakeSession(), strategies=[])
    assert resolver.runner.strategies == []


@pytest.mark.asyncio
async def test_timeout_zero_cancels(config):
    session = FakeSession()
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(ExtractionQuery(title="Hello world"), timeout=0)

    assert result == Failure(FailureKind.CANCELLED)
    assert session.get_calls == []


@pytest.mark.asyncio
async def test_exact_title_short_circuits(config):
    session = FakeSession([
        FakeResponse(200, listing([])),
        FakeResponse(200, listing([post_child("My cat did something weird", subreddit="cats")])),
    ])
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(ExtractionQuery(title="My cat did something weird", subreddit="cats"))

    assert isinstance(result, Match)
    assert result.match_confidence >= 0.8
    assert result.strategy == "exact_title"
    assert len(session.get_calls) == 2


@pytest.mark.asyncio
async def test_placeholder_username_with_no_results(config):
    session = FakeSession([FakeResponse(200, listing([])) for _ in range(3)])
    resolver = ThreadResolver(config, session=session)

    result = await resolver.resolve(
        ExtractionQuery(title="AITA for X", username="redacted", subreddit="AmItheAsshole")
    )

    assert result == NoMatch()
    # Only the two strategies that do not need a username ran; the empty
    # phrase search falls back to a keyword search
    assert [call["url"] for call in session.get_calls] == [
        "https://www.reddit.com/r/AmItheAsshole/search.json",
        "https://www.reddit.com/search.json",
        "https://www.reddit.com/search.json",
    ]
    assert session.get_calls[2]["params"]["q"] == "aita"


@pytest.mark.asyncio
async def test_rate_limit_keeps_prior_match(config):
    session = FakeSession([
        FakeResponse(200, listing([post_child("My cat found a box", author="zzzz", subreddit="qqqq")])),
        FakeResponse(429),
    ])
    resolver = ThreadResolver(config, session=session)
    delay_before = resolver.state.current_delay

    result = await resolver.resolve(ExtractionQuery(subreddit="pics", username="bob", title="My cat found a box"))

    assert isinstance(result, Match)
    assert result.strategy == "title_in_subreddit"
    assert result.match_confidence == pytest.approx(0.75)
    assert len(session.get_calls) == 2
    assert resolver.state.current_delay == pytest.approx(delay_before * 2)
    assert resolver.fetcher.rate_limiter.cooldown_remaining() == pytest.approx(60.0, abs=1.0)


@pytest.mark.asyncio
async def test_request_failures_stop_resolution_with_api_error():
    session = FakeSession([FakeResponse(500), FakeResponse(500)])
    resolver = ThreadResolver(fast_config(failure_threshold=2), session=session)

    result = await resolver.resolve(ExtractionQuery(subreddit="pics", username="bob", title="My cat found a box"))

    assert result == Failure(FailureKind.API_ERROR)
    # Third strategy never started once two requests in a row failed
    assert len(session.get_calls) == 2


@pytest.mark.asyncio
async def test_failed_resolution_does_not_block_the_next_one():
    session = FakeSession([
        FakeResponse(500),
        FakeResponse(500),
        FakeResponse(200, listing([post_child("My cat found a box", subreddit="cats", post_id="abc")])),
        FakeResponse(200, listing([])),
    ])
    resolver = ThreadResolver(fast_config(failure_threshold=2), session=session)
    query = ExtractionQuery(title="My cat found a box", body_snippet="cardboard box kitten")

    first = await resolver.resolve(query)
    second = await resolver.resolve(query)

    assert first == Failure(FailureKind.API_ERROR)
    assert isinstance(second, Match)
    assert second.strategy == "exact_title"
    assert second.url == "https://www.reddit.com/r/cats/comments/abc/post/"
    assert second.match_confidence == pytest.approx(0.75)
    # Both strategies ran again on the second resolution
    assert len(session.get_calls) == 4
