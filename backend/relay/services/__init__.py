"""Application services (enrichment pipeline, collaborators, model calls)."""
from relay.services.chat import (
    ModelServiceError,
    ModelUnavailableError,
    generate_reply,
    get_chat_model,
)
from relay.services.enrichment import EnrichmentContext, enrich, window_history
from relay.services.live_search import needs_live_data
from relay.services.lookup import Lookup

__all__ = [
    "EnrichmentContext",
    "Lookup",
    "ModelServiceError",
    "ModelUnavailableError",
    "enrich",
    "generate_reply",
    "get_chat_model",
    "needs_live_data",
    "window_history",
]
