"""Per-client-address rate limiting (slowapi), shared by the app and the chat route."""
from slowapi import Limiter
from slowapi.util import get_remote_address

from relay.config import settings


def configured_limit() -> str:
    """Read on every request so RATE_LIMIT_MAX/RATE_LIMIT_WINDOW changes apply without rebuilding the app."""
    return settings.rate_limit


# In-memory storage: counts are per process
limiter = Limiter(key_func=get_remote_address, default_limits=[configured_limit])
