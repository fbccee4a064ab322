"""Chat API request/response schemas."""
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

MAX_MESSAGE_LENGTH = 1000
MAX_HISTORY_TURNS = 20


class ChatTurn(BaseModel):
    """One message of the client-held conversation, tagged by sender."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field(..., description="Who sent this turn ('user' or 'assistant')")
    text: str = Field(..., description="Turn content")


class ChatRequest(BaseModel):
    """New user message plus the recent conversation the client keeps locally."""

    message: Annotated[
        str,
        StringConstraints(strip_whitespace=True, min_length=1, max_length=MAX_MESSAGE_LENGTH),
    ] = Field(..., description="User's latest message (trimmed, 1-1000 characters)")
    history: Annotated[list[ChatTurn], Field(max_length=MAX_HISTORY_TURNS)] | None = Field(
        None,
        description="Recent turns in conversation order, oldest first (at most 20)",
    )


class ChatResponse(BaseModel):
    """Reply text, or an error message on 4xx/5xx."""

    reply: str = Field(..., description="Assistant reply or error message")
