"""Chat API route: enrich the user's message and relay it to the language model."""
import logging
from collections.abc import AsyncIterator, Callable

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from langchain_core.language_models.chat_models import BaseChatModel

from relay.config import settings
from relay.limits import configured_limit, limiter
from relay.schemas.chat import ChatRequest, ChatResponse
from relay.services.chat import (
    ModelServiceError,
    ModelUnavailableError,
    generate_reply,
    get_chat_model,
)
from relay.services.enrichment import enrich

logger = logging.getLogger(__name__)

router = APIRouter()

PREVIEW_CHARS = 50


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """HTTP client for the time and search services, closed after the request."""
    async with httpx.AsyncClient() as client:
        yield client


def get_search_api_key() -> str | None:
    return settings.search_api_key


def get_model_factory() -> Callable[[], BaseChatModel]:
    """Chat model is built inside the handler so a missing key maps to an AI error, not a 500 from DI."""
    return get_chat_model


def _error(status_code: int, reply: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ChatResponse(reply=reply).model_dump())


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={400: {"model": ChatResponse}, 500: {"model": ChatResponse}},
)
@limiter.limit(configured_limit)
async def chat_endpoint(
    request: Request,
    body: ChatRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    search_api_key: str | None = Depends(get_search_api_key),
    model_factory: Callable[[], BaseChatModel] = Depends(get_model_factory),
):
    """
    Send `message` (trimmed, at most 1000 characters) and optional `history`
    (at most 20 {sender, text} turns, oldest first). The last 10 turns are used as context.
    Current date/time and, for live-data questions, a search answer are added to the prompt.
    """
    message = body.message
    logger.info("New chat: %s...", message[:PREVIEW_CHARS])

    messages = await enrich(message, body.history, client, search_api_key=search_api_key)

    try:
        reply = await generate_reply(messages, model_factory())
    except ModelServiceError as e:
        logger.error("Model service error: %s", e)
        return _error(500, f"AI error: {e}")
    except ModelUnavailableError:
        logger.exception("Model request failed")
        return _error(500, "Server error.")

    logger.info("Reply sent: %s...", reply[:PREVIEW_CHARS])
    return ChatResponse(reply=reply)
