"""Live information from the external search service (Tavily) for time-sensitive questions."""
from __future__ import annotations

import logging

import httpx

from relay.config import settings
from relay.services.lookup import Lookup

logger = logging.getLogger(__name__)

LIVE_KEYWORDS = ("weather", "news", "stock", "event", "today")
QUERY_PREFIX = "current "
LIVE_PREFIX = "Live: "
MAX_ANSWER_CHARS = 200


def needs_live_data(message: str) -> bool:
    """
    Keyword heuristic for "this question is about live data".
    Plain substring match on the lower-cased message, so "events" or "currently"
    also trigger; misses are expected. Swap this out for a real intent classifier.
    """
    text = (message or "").lower()
    return "current" in text or any(k in text for k in LIVE_KEYWORDS)


def _search_body(message: str) -> dict:
    return {
        "query": f"{QUERY_PREFIX}{message}",
        "search_depth": "basic",
        "max_results": 3,
        "include_answer": True,
    }


async def get_live_info(
    client: httpx.AsyncClient,
    message: str,
    api_key: str | None,
) -> Lookup:
    """
    Ask the search service for a synthesized answer about `message`.
    The key comes only from the caller; without one the call is skipped.
    On success the value is "Live: " + the first 200 characters of the answer;
    errors and empty answers give a failed Lookup and are never raised.
    """
    if not api_key:
        return Lookup.skip("search not configured")

    try:
        response = await client.post(
            settings.search_api_url,
            json=_search_body(message),
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=settings.search_timeout,
        )
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Search API error: %s", e)
        return Lookup.failed(str(e))

    answer = data.get("answer") if isinstance(data, dict) else None
    if not isinstance(answer, str) or not answer:
        logger.info("Search API returned no answer")
        return Lookup.failed("no answer")
    return Lookup.found(f"{LIVE_PREFIX}{answer[:MAX_ANSWER_CHARS]}")
