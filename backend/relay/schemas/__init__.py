from relay.schemas.chat import (
    MAX_HISTORY_TURNS,
    MAX_MESSAGE_LENGTH,
    ChatRequest,
    ChatResponse,
    ChatTurn,
)

__all__ = [
    "MAX_HISTORY_TURNS",
    "MAX_MESSAGE_LENGTH",
    "ChatRequest",
    "ChatResponse",
    "ChatTurn",
]
