"""Chat completion via the language model service (Groq, OpenAI-compatible) with LangChain."""
from __future__ import annotations

import logging

import httpx
import openai
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from relay.config import settings

logger = logging.getLogger(__name__)

MAX_OUTPUT_TOKENS = 200
TEMPERATURE = 0.3
NO_REPLY = "No reply."


class ModelServiceError(Exception):
    """The model service answered with an application error (bad key, quota, ...). Message is the provider's."""
    pass


class ModelUnavailableError(Exception):
    """The model service could not be reached or timed out."""
    pass


def get_chat_model() -> BaseChatModel:
    """Build the chat model from settings. Raises ModelServiceError if no API key is configured."""
    if not settings.llm_api_key:
        raise ModelServiceError("Missing GROQ_API_KEY in environment or .env")
    return ChatOpenAI(
        model=settings.chat_model,
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        temperature=TEMPERATURE,
        max_tokens=MAX_OUTPUT_TOKENS,
        timeout=settings.llm_timeout,
        max_retries=0,
    )


def _to_langchain_message(m: dict) -> HumanMessage | AIMessage | SystemMessage:
    role = (m.get("role") or "user").strip().lower()
    content = m.get("content") or ""
    if role == "system":
        return SystemMessage(content=content)
    if role == "assistant":
        return AIMessage(content=content)
    return HumanMessage(content=content)


def _provider_message(e: openai.APIStatusError) -> str:
    """Prefer the provider's own error text over the SDK's 'Error code: ...' wrapper."""
    body = e.body
    if isinstance(body, dict):
        inner = body.get("error") if isinstance(body.get("error"), dict) else body
        if inner.get("message"):
            return str(inner["message"])
    return e.message


async def generate_reply(messages: list[dict[str, str]], llm: BaseChatModel) -> str:
    """
    Send the assembled message list to the model and return its text.
    messages: list of {"role": "system"|"user"|"assistant", "content": "..."}.
    Empty model output becomes "No reply.".
    """
    lc_messages = [_to_langchain_message(m) for m in messages]
    try:
        response = await llm.ainvoke(lc_messages)
    except openai.APIStatusError as e:
        raise ModelServiceError(_provider_message(e)) from e
    except (openai.APIConnectionError, httpx.HTTPError) as e:
        raise ModelUnavailableError(f"LLM unavailable: {e}") from e

    content = getattr(response, "content", "")
    return content if isinstance(content, str) and content else NO_REPLY
