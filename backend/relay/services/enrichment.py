"""
Request enrichment: turn a user message plus client-held history into the
message list sent to the language model.

Order of work per request:
1. current date/time from the time service (falls back to "Time unavailable")
2. live search, only when `needs_live_data` says so and a search key is configured
3. last 10 history turns mapped to user/assistant roles
4. one synthesized system message, then the history, then the new user message

Collaborator failures never leave this module as exceptions.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import httpx

from relay.schemas.chat import ChatTurn
from relay.services.clock import TIME_UNAVAILABLE, get_current_datetime
from relay.services.live_search import get_live_info, needs_live_data
from relay.services.lookup import Lookup

logger = logging.getLogger(__name__)

HISTORY_WINDOW = 10
SYSTEM_INSTRUCTION = "Concise assistant. Use history."


@dataclass(frozen=True)
class EnrichmentContext:
    """Per-request lookups; built fresh for every request and never reused."""

    current_datetime: Lookup
    live_info: Lookup

    @property
    def datetime_text(self) -> str:
        return self.current_datetime.or_else(TIME_UNAVAILABLE)

    @property
    def live_text(self) -> str:
        return self.live_info.or_else("")


def window_history(history: Sequence[ChatTurn] | None) -> list[dict[str, str]]:
    """Last HISTORY_WINDOW turns in original order as role/content dicts; non-'user' senders become 'assistant'."""
    recent = list(history or [])[-HISTORY_WINDOW:]
    return [
        {"role": "user" if turn.sender == "user" else "assistant", "content": turn.text}
        for turn in recent
    ]


def build_system_message(context: EnrichmentContext) -> dict[str, str]:
    content = f"{SYSTEM_INSTRUCTION} Date/time: {context.datetime_text}."
    if context.live_text:
        content += f" Incorporate: {context.live_text}"
    return {"role": "system", "content": content}


async def build_context(
    client: httpx.AsyncClient,
    message: str,
    search_api_key: str | None = None,
) -> EnrichmentContext:
    """Run the time lookup, then the live search if the message asks for live data."""
    current_datetime = await get_current_datetime(client)
    if needs_live_data(message):
        live_info = await get_live_info(client, message, api_key=search_api_key)
    else:
        live_info = Lookup.skip("no live-data keywords")
    logger.debug(
        "Enrichment: time_ok=%s live_ok=%s live_skipped=%s",
        current_datetime.ok,
        live_info.ok,
        live_info.skipped,
    )
    return EnrichmentContext(current_datetime=current_datetime, live_info=live_info)


def assemble(message: str, history: Sequence[ChatTurn] | None, context: EnrichmentContext) -> list[dict[str, str]]:
    """[system] + windowed history + [user message]; the order the model API expects."""
    return [
        build_system_message(context),
        *window_history(history),
        {"role": "user", "content": message},
    ]


async def enrich(
    message: str,
    history: Sequence[ChatTurn] | None,
    client: httpx.AsyncClient,
    search_api_key: str | None = None,
) -> list[dict[str, str]]:
    """Build the model request for `message`. Always returns; collaborator errors are absorbed."""
    context = await build_context(client, message, search_api_key=search_api_key)
    return assemble(message, history, context)
