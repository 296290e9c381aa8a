"""Async Claude API client and the cached reply strategy."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import anthropic

from silvia.config import settings
from silvia.errors import LLMCallFailure
from silvia.llm.cache import context_key
from silvia.llm.prompt import build_system_prompt

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from silvia.bot.session import Turn
    from silvia.llm.cache import ResponseCache

    CompleteFn = Callable[..., Awaitable[str]]

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=settings.external_call_timeout_seconds,
            max_retries=1,
        )
    return _client


async def complete_text(
    messages: list[dict[str, Any]],
    *,
    temperature: float,
    system: str | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Single-shot Claude call over a full message history.

    Raises ``LLMCallFailure`` on API/network errors, timeouts, and
    responses without any text.
    """
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or settings.claude_model,
        "max_tokens": max_tokens or settings.llm_max_tokens,
        "temperature": temperature,
        "system": system if system is not None else build_system_prompt(),
        "messages": messages,
    }
    try:
        async with asyncio.timeout(settings.external_call_timeout_seconds):
            response = await client.messages.create(**kwargs)
    except TimeoutError as exc:
        msg = "LLM call timed out"
        raise LLMCallFailure(msg) from exc
    except anthropic.APIError as exc:
        msg = f"LLM call failed: {exc}"
        raise LLMCallFailure(msg) from exc

    text = "".join(
        block.text for block in (response.content or []) if getattr(block, "type", "") == "text"
    ).strip()
    if not text:
        msg = "LLM response contained no text"
        raise LLMCallFailure(msg)
    return text


async def generate_reply(
    turns: Sequence[Turn],
    cache: ResponseCache,
    *,
    complete: CompleteFn | None = None,
    temperature: float | None = None,
) -> str | None:
    """Reply to a conversation, consulting the cache first.

    *turns* must already end with the current user turn. A cache hit skips
    the LLM entirely; a miss calls it and stores the result. Returns None
    when the call fails so the caller can fall back.
    """
    key = context_key(turns)
    cached = cache.lookup(key)
    if cached is not None:
        logger.debug("Response cache hit (%d turns)", len(turns))
        return cached

    complete = complete or complete_text
    try:
        reply = await complete(
            [turn.to_api() for turn in turns],
            temperature=settings.llm_temperature if temperature is None else temperature,
        )
    except LLMCallFailure:
        logger.warning("LLM call failed; falling back", exc_info=True)
        return None

    cache.store(key, reply)
    return reply
