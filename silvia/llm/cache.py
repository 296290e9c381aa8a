"""LRU + TTL cache of LLM replies keyed by conversation context."""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import OrderedDict
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from silvia.bot.session import Turn

logger = logging.getLogger(__name__)


def context_key(turns: Sequence[Turn]) -> str:
    """Fingerprint an ordered turn sequence.

    Equal sequences (same roles, contents and order) give equal keys; any
    difference, including one extra trailing turn, gives a different key.
    """
    payload = json.dumps(
        [turn.to_api() for turn in turns],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class ResponseCache:
    """In-memory reply cache with a size cap and per-entry expiry."""

    def __init__(
        self,
        *,
        max_entries: int = 512,
        ttl: float = 24 * 3600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max_entries
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, str]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, key: str) -> str | None:
        """Return the cached reply for *key*, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, reply = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return reply

    def store(self, key: str, reply: str) -> None:
        """Record a reply, evicting the least recently used entries if full."""
        self._entries[key] = (self._clock(), reply)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()
