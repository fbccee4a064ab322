"""Current date/time from the external time service (WorldTimeAPI)."""
from __future__ import annotations

import logging
from datetime import datetime

import httpx

from relay.config import settings
from relay.services.lookup import Lookup

logger = logging.getLogger(__name__)

TIME_UNAVAILABLE = "Time unavailable"


def format_display(moment: datetime) -> str:
    """en-US style display string in the instant's own offset, e.g. '10/19/2026, 3:04:05 PM'."""
    hour = moment.hour % 12 or 12
    suffix = "AM" if moment.hour < 12 else "PM"
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment.minute:02d}:{moment.second:02d} {suffix}"


def _parse_datetime(data: object) -> datetime:
    if not isinstance(data, dict) or not isinstance(data.get("datetime"), str):
        raise ValueError("response has no datetime field")
    return datetime.fromisoformat(data["datetime"])


async def get_current_datetime(
    client: httpx.AsyncClient,
    timezone: str | None = None,
) -> Lookup:
    """
    Ask the time service for the current instant in `timezone` (default: TIMEZONE setting).
    Never raises: network errors, timeouts, non-2xx and malformed bodies give a failed Lookup.
    """
    tz = timezone or settings.timezone
    url = f"{settings.time_api_url}/{tz}"
    try:
        response = await client.get(url, timeout=settings.time_api_timeout)
        response.raise_for_status()
        moment = _parse_datetime(response.json())
    except (httpx.HTTPError, ValueError) as e:
        logger.error("Time API error: %s", e)
        return Lookup.failed(str(e))
    return Lookup.found(format_display(moment))
