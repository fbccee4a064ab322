"""
Client-side conversation state for the chat page.

The session owns the ordered list of turns and mirrors it, JSON-encoded, into a
per-browser storage mapping (NiceGUI's app.storage.user in the UI, a plain dict
in tests). At most 20 turns are kept; the last 10 before a new message are sent
to the backend as context. Only one request may be in flight at a time.
"""
from __future__ import annotations

import json
import logging
from collections.abc import MutableMapping
from dataclasses import asdict, dataclass

import httpx

logger = logging.getLogger(__name__)

HISTORY_KEY = "chatHistory"
MAX_STORED_TURNS = 20
CONTEXT_TURNS = 10

THINKING_TEXT = "Thinking..."
EMPTY_REPLY_TEXT = "No response from AI."
CONNECTION_ERROR_TEXT = "Error: Could not connect to server. Check console."


@dataclass(frozen=True)
class ChatTurn:
    sender: str  # "user" or "assistant"
    text: str


class ChatSession:
    def __init__(
        self,
        storage: MutableMapping,
        chat_api: str,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._storage = storage
        self.chat_api = chat_api
        self.timeout = timeout
        self._transport = transport
        self._turns: list[ChatTurn] = self._load()
        self._pending: dict | None = None

    @property
    def turns(self) -> tuple[ChatTurn, ...]:
        return tuple(self._turns)

    @property
    def busy(self) -> bool:
        """True while a message has been sent and its reply has not arrived."""
        return self._pending is not None

    def _load(self) -> list[ChatTurn]:
        raw = self._storage.get(HISTORY_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable chat history in storage")
            return []
        if not isinstance(items, list):
            return []
        turns = [
            ChatTurn(sender=str(item["sender"]), text=str(item["text"]))
            for item in items
            if isinstance(item, dict) and "sender" in item and "text" in item
        ]
        return turns[-MAX_STORED_TURNS:]

    def _save(self) -> None:
        self._storage[HISTORY_KEY] = json.dumps([asdict(t) for t in self._turns])

    def append(self, turn: ChatTurn) -> None:
        """Add a turn; the oldest turns beyond 20 are dropped from memory and storage."""
        self._turns = [*self._turns, turn][-MAX_STORED_TURNS:]
        self._save()

    def clear(self) -> None:
        self._turns = []
        self._save()

    def context(self) -> list[dict[str, str]]:
        """The last 10 turns in the wire format of POST /chat."""
        return [asdict(t) for t in self._turns[-CONTEXT_TURNS:]]

    def begin(self, text: str) -> ChatTurn | None:
        """
        Record the user's message right away and prepare the request.
        Returns None (and does nothing) for blank input or while a reply is pending.
        """
        message = (text or "").strip()
        if not message or self.busy:
            return None
        turn = ChatTurn(sender="user", text=message)
        self.append(turn)
        self._pending = {"message": message, "history": self.context()}
        return turn

    async def finish(self) -> ChatTurn:
        """Send the prepared request and record the assistant's reply (or the connection error text)."""
        if self._pending is None:
            raise RuntimeError("No message pending; call begin() first")
        try:
            reply = await self._request_reply(self._pending)
        finally:
            self._pending = None
        turn = ChatTurn(sender="assistant", text=reply)
        self.append(turn)
        return turn

    async def send(self, text: str) -> ChatTurn | None:
        """begin() + finish(); returns the reply turn, or None if nothing was sent."""
        if self.begin(text) is None:
            return None
        return await self.finish()

    async def _request_reply(self, payload: dict) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(self.chat_api, json=payload)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Send error: %s", e)
            return CONNECTION_ERROR_TEXT
        reply = data.get("reply") if isinstance(data, dict) else None
        return reply or EMPTY_REPLY_TEXT
