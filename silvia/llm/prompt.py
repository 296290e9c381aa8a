"""System prompt for the chat model."""

from silvia.config import settings


def build_system_prompt(assistant_name: str | None = None) -> str:
    """Build the fixed system prompt.

    The prompt must not vary per conversation: cached replies are keyed on
    the turn sequence alone.
    """
    name = assistant_name or settings.assistant_name
    return (
        f"You are {name}, a friendly and helpful assistant chatting over Telegram. "
        "Answer in the same language the user writes in, which is usually Spanish. "
        "Keep replies short and conversational; use plain text without Markdown."
    )
