"""Enrichment pipeline: time lookup, live-search trigger and retrieval, history window, message assembly."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from conftest import FakeServices
from relay.config import settings
from relay.schemas.chat import ChatTurn
from relay.services.clock import TIME_UNAVAILABLE, format_display, get_current_datetime
from relay.services.enrichment import (
    EnrichmentContext,
    build_system_message,
    enrich,
    window_history,
)
from relay.services.live_search import get_live_info, needs_live_data
from relay.services.lookup import Lookup


def _turns(n: int, start: int = 0) -> list[ChatTurn]:
    return [
        ChatTurn(sender="user" if i % 2 == 0 else "assistant", text=f"turn {i}")
        for i in range(start, start + n)
    ]


@pytest.mark.parametrize(
    "message",
    ["What's the weather in NYC?", "WEATHER please", "any news?", "Stock price of ACME", "events today", "current president"],
)
def test_needs_live_data_matches_keywords(message: str) -> None:
    assert needs_live_data(message)


@pytest.mark.parametrize("message", ["Hello there", "Explain recursion", ""])
def test_needs_live_data_ignores_plain_questions(message: str) -> None:
    assert not needs_live_data(message)


def test_format_display_uses_12_hour_clock() -> None:
    tz = timezone(timedelta(hours=-4))
    assert format_display(datetime(2026, 10, 19, 0, 5, 9, tzinfo=tz)) == "10/19/2026, 12:05:09 AM"
    assert format_display(datetime(2026, 1, 2, 13, 0, 0, tzinfo=tz)) == "1/2/2026, 1:00:00 PM"


@pytest.mark.asyncio
async def test_time_lookup_formats_service_datetime() -> None:
    services = FakeServices()
    async with services.client() as client:
        result = await get_current_datetime(client, timezone="Etc/UTC")

    assert result.ok
    assert result.value == "10/19/2026, 3:04:05 PM"
    assert services.time_calls[0].url.path.endswith("/Etc/UTC")


@pytest.mark.asyncio
async def test_time_lookup_uses_configured_timeout(monkeypatch) -> None:
    monkeypatch.setattr(settings, "time_api_timeout", 2.5)
    services = FakeServices()
    async with services.client() as client:
        await get_current_datetime(client)

    assert services.time_calls[0].extensions["timeout"] == {"connect": 2.5, "read": 2.5, "write": 2.5, "pool": 2.5}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "services",
    [
        FakeServices(time_error=httpx.ConnectError("down")),
        FakeServices(time_error=httpx.ReadTimeout("slow")),
        FakeServices(time_status=503),
        FakeServices(time_body={"unexpected": True}),
        FakeServices(time_body={"datetime": "not a date"}),
        FakeServices(time_body=["not", "an", "object"]),
    ],
)
async def test_time_lookup_soft_fails(services: FakeServices) -> None:
    async with services.client() as client:
        result = await get_current_datetime(client)

    assert not result.ok
    assert result.or_else(TIME_UNAVAILABLE) == TIME_UNAVAILABLE


@pytest.mark.asyncio
async def test_live_info_sends_prefixed_query_and_truncates_answer() -> None:
    services = FakeServices(search_answer="x" * 500)
    async with services.client() as client:
        result = await get_live_info(client, "weather in Paris", api_key="test-key")

    assert result.value == "Live: " + "x" * 200
    assert services.search_calls == [
        {
            "query": "current weather in Paris",
            "search_depth": "basic",
            "max_results": 3,
            "include_answer": True,
        }
    ]


@pytest.mark.asyncio
async def test_live_info_skipped_without_api_key() -> None:
    services = FakeServices()
    async with services.client() as client:
        result = await get_live_info(client, "weather in Paris", api_key="")

    assert result.skipped
    assert result.or_else("") == ""
    assert services.search_calls == []


@pytest.mark.asyncio
async def test_live_info_uses_configured_timeout(monkeypatch) -> None:
    monkeypatch.setattr(settings, "search_timeout", 7.0)
    services = FakeServices()
    async with services.client() as client:
        await get_live_info(client, "weather in Paris", api_key="test-key")

    assert services.search_timeouts == [{"connect": 7.0, "read": 7.0, "write": 7.0, "pool": 7.0}]


@pytest.mark.asyncio
async def test_live_info_ignores_environment_key(monkeypatch) -> None:
    monkeypatch.setattr(settings, "search_api_key", "env-key")
    services = FakeServices()
    async with services.client() as client:
        result = await get_live_info(client, "weather in Paris", api_key=None)
        messages = await enrich("weather in Paris", None, client)

    assert result.skipped
    assert "Live:" not in messages[0]["content"]
    assert services.search_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "services",
    [
        FakeServices(search_answer=None),
        FakeServices(search_answer=""),
        FakeServices(search_status=401),
        FakeServices(search_error=httpx.ConnectError("down")),
    ],
)
async def test_live_info_soft_fails(services: FakeServices) -> None:
    async with services.client() as client:
        result = await get_live_info(client, "news", api_key="test-key")

    assert not result.ok
    assert not result.skipped
    assert result.or_else("") == ""


def test_window_history_keeps_last_ten_in_order() -> None:
    windowed = window_history(_turns(15))

    assert len(windowed) == 10
    assert [m["content"] for m in windowed] == [f"turn {i}" for i in range(5, 15)]


def test_window_history_maps_roles() -> None:
    history = [
        ChatTurn(sender="user", text="a"),
        ChatTurn(sender="bot", text="b"),
        ChatTurn(sender="assistant", text="c"),
    ]
    assert [m["role"] for m in window_history(history)] == ["user", "assistant", "assistant"]


def test_window_history_depends_only_on_last_ten() -> None:
    tail = _turns(10, start=100)
    first = [ChatTurn(sender="user", text="old a"), *tail]
    second = [*_turns(7), *tail]

    assert window_history(first) == window_history(second)
    assert window_history(None) == []


def test_system_message_includes_live_info_only_when_present() -> None:
    with_live = EnrichmentContext(Lookup.found("1/1/2026, 9:00:00 AM"), Lookup.found("Live: Rain"))
    without_live = EnrichmentContext(Lookup.failed("down"), Lookup.skip("no keywords"))

    assert build_system_message(with_live) == {
        "role": "system",
        "content": "Concise assistant. Use history. Date/time: 1/1/2026, 9:00:00 AM. Incorporate: Live: Rain",
    }
    content = build_system_message(without_live)["content"]
    assert f"Date/time: {TIME_UNAVAILABLE}." in content
    assert "Incorporate:" not in content


def test_sentinel_text_from_service_is_not_mistaken_for_failure() -> None:
    context = EnrichmentContext(Lookup.found(TIME_UNAVAILABLE), Lookup.skip("no keywords"))
    assert context.current_datetime.ok


@pytest.mark.asyncio
async def test_enrich_assembles_system_history_user() -> None:
    services = FakeServices()
    message = "Tell me a joke"
    async with services.client() as client:
        messages = await enrich(message, _turns(15), client, search_api_key="test-key")

    assert messages[0]["role"] == "system"
    assert messages[-1] == {"role": "user", "content": message}
    middle = messages[1:-1]
    assert len(middle) == 10
    assert [m["content"] for m in middle] == [f"turn {i}" for i in range(5, 15)]
    assert services.search_calls == []


@pytest.mark.asyncio
async def test_enrich_weather_question_includes_live_answer() -> None:
    services = FakeServices(search_answer="Sunny, 72F")
    async with services.client() as client:
        messages = await enrich("What's the weather in NYC?", [], client, search_api_key="test-key")

    assert len(services.time_calls) == 1
    assert len(services.search_calls) == 1
    assert "Live: Sunny, 72F" in messages[0]["content"]
    assert "Date/time: 10/19/2026, 3:04:05 PM." in messages[0]["content"]


@pytest.mark.asyncio
async def test_enrich_without_search_key_never_incorporates() -> None:
    services = FakeServices()
    async with services.client() as client:
        messages = await enrich("current weather and news today", None, client, search_api_key="")

    assert services.search_calls == []
    assert "Incorporate:" not in messages[0]["content"]
    assert len(messages) == 2


@pytest.mark.asyncio
async def test_enrich_survives_every_collaborator_failing() -> None:
    services = FakeServices(
        time_error=httpx.ConnectError("down"),
        search_error=httpx.ConnectError("down"),
    )
    async with services.client() as client:
        messages = await enrich("weather?", [], client, search_api_key="test-key")

    assert messages[0]["content"] == f"Concise assistant. Use history. Date/time: {TIME_UNAVAILABLE}."
    assert messages[1] == {"role": "user", "content": "weather?"}
