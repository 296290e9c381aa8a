"""Rule-based intent classification for inbound chat messages.

Matching is plain phrase/keyword comparison on normalized text (surrounding
whitespace stripped, lower-cased). ``classify`` checks, in order: exact
name-query phrases, the ``/historial`` command, then the lost-child keywords.
Anything else is a greeting or generic fallback.
"""

from __future__ import annotations

from enum import StrEnum


class Intent(StrEnum):
    VOICE_MESSAGE = "voice_message"
    NAME_QUERY = "name_query"
    HISTORY_QUERY = "history_query"
    ALERT_KEYWORD_EXACT = "alert_keyword_exact"
    ALERT_KEYWORD_CONTEXTUAL = "alert_keyword_contextual"
    GREETING_OR_FALLBACK = "greeting_or_fallback"


NAME_QUERY_PHRASES: frozenset[str] = frozenset({
    "¿cuál es tu nombre?",
    "cuál es tu nombre?",
    "como te llamas?",
    "cómo te llamas?",
    "¿como te llamas?",
    "nombre?",
    "dime tu nombre",
})

GREETINGS: frozenset[str] = frozenset({"hola", "hi", "hello", "qué tal", "buenas", "hey"})

HISTORY_COMMAND = "/historial"

LOST_CHILD_KEYWORDS: tuple[str, ...] = (
    "loan",
    "niño perdido",
    "chico perdido",
    "encontrado niño",
    "vi a loan",
    "se donde esta loan",
    "encontre al niño",
    "vi al nene",
    "el nene esta",
)

# "Loan" on its own is read as a question about loans, not a sighting.
BARE_KEYWORD_MESSAGES: frozenset[str] = frozenset({"loan", "loan."})


def normalize(text: str) -> str:
    return text.strip().lower()


def is_name_query(normalized: str) -> bool:
    return normalized in NAME_QUERY_PHRASES


def is_history_query(normalized: str) -> bool:
    return HISTORY_COMMAND in normalized


def is_greeting(normalized: str) -> bool:
    return normalized in GREETINGS


def match_alert(normalized: str) -> Intent | None:
    """Return the alert intent for keyword matches, or None."""
    if not any(keyword in normalized for keyword in LOST_CHILD_KEYWORDS):
        return None
    if normalized in BARE_KEYWORD_MESSAGES:
        return Intent.ALERT_KEYWORD_EXACT
    return Intent.ALERT_KEYWORD_CONTEXTUAL


def classify_message(text: str | None, *, has_voice: bool) -> Intent:
    """Classify an inbound message; a voice attachment takes precedence over text."""
    if has_voice:
        return Intent.VOICE_MESSAGE
    return classify(text or "")


def classify(text: str) -> Intent:
    """Map a text message to its intent. First match wins."""
    normalized = normalize(text)
    if is_name_query(normalized):
        return Intent.NAME_QUERY
    if is_history_query(normalized):
        return Intent.HISTORY_QUERY
    alert = match_alert(normalized)
    if alert is not None:
        return alert
    return Intent.GREETING_OR_FALLBACK
