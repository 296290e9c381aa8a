"""In-memory conversation history with sliding window and idle expiry."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    """A single conversation turn."""

    role: str  # "user" or "assistant"
    content: str

    @classmethod
    def user(cls, content: str) -> Turn:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role="assistant", content=content)

    def to_api(self) -> dict[str, str]:
        """Format the turn for the LLM messages API."""
        return {"role": self.role, "content": self.content}


@dataclass
class _Conversation:
    turns: list[Turn] = field(default_factory=list)
    last_seen: float = 0.0


class ConversationStore:
    """Ordered turn history per conversation id, process lifetime only.

    Bounded three ways: each conversation keeps at most *window_size* turns
    (oldest dropped first), at most *max_conversations* are held (least
    recently used evicted first), and a conversation untouched for
    *idle_ttl* seconds is treated as absent.
    """

    def __init__(
        self,
        *,
        window_size: int = 50,
        max_conversations: int = 1000,
        idle_ttl: float = 6 * 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.window_size = window_size
        self.max_conversations = max_conversations
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._conversations: OrderedDict[str, _Conversation] = OrderedDict()

    def __len__(self) -> int:
        return len(self._conversations)

    def _live(self, conversation_id: str) -> _Conversation | None:
        """Return the conversation unless it has gone idle past the TTL."""
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return None
        if self._clock() - conv.last_seen > self.idle_ttl:
            del self._conversations[conversation_id]
            logger.debug("Conversation %s expired after idling", conversation_id)
            return None
        return conv

    def append(self, conversation_id: str | int, turn: Turn) -> None:
        """Append a turn, creating the conversation if needed."""
        key = str(conversation_id)
        conv = self._live(key)
        if conv is None:
            conv = _Conversation()
            self._conversations[key] = conv

        conv.turns.append(turn)
        if len(conv.turns) > self.window_size:
            turns = conv.turns[-self.window_size :]
            # The model context must open with a user turn.
            while turns and turns[0].role != "user":
                turns = turns[1:]
            conv.turns = turns
        conv.last_seen = self._clock()
        self._conversations.move_to_end(key)

        while len(self._conversations) > self.max_conversations:
            evicted, _ = self._conversations.popitem(last=False)
            logger.debug("Evicted conversation %s (store full)", evicted)

    def get(self, conversation_id: str | int) -> list[Turn]:
        """Return a copy of the conversation's turns in insertion order."""
        conv = self._live(str(conversation_id))
        if conv is None:
            return []
        return list(conv.turns)

    def clear(self, conversation_id: str | int) -> int:
        """Discard a conversation. Returns the count of turns dropped."""
        conv = self._conversations.pop(str(conversation_id), None)
        return len(conv.turns) if conv else 0
