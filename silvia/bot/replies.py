"""Canned reply texts, localized by the user's stored locale."""

from __future__ import annotations

SUPPORTED_LOCALES: tuple[str, ...] = ("es", "en")

LANGUAGE_LABELS: dict[str, str] = {
    "en": "🇬🇧 English",
    "es": "🇪🇸 Español",
}

_REPLIES: dict[str, dict[str, str]] = {
    "es": {
        "welcome": "¡Hola! Soy {name}, un asistente avanzado. ¿En qué puedo ayudarte?",
        "loan_help": "¿En qué puedo ayudarte con el tema de los préstamos?",
        "alert": "🚨 ¡Posible avistamiento del niño perdido! 🚨\n\nMensaje: {text}",
        "history": "Historial de Conversación:\n\n{history}",
        "no_history": "No hay historial de conversación disponible.",
        "not_understood": "No entiendo tu solicitud. ¿Podrías reformularla?",
        "error": (
            "Ha ocurrido un error al procesar tu mensaje. "
            "Por favor, intenta nuevamente más tarde."
        ),
        "voice_unsupported": "El archivo no es compatible. Se esperaba formato OGG.",
        "voice_credentials": (
            "No se pudieron cargar las credenciales de Google Cloud. "
            "Verifica la configuración."
        ),
        "voice_failed": "No pude transcribir tu mensaje de voz. Intenta nuevamente.",
        "voice_empty": "No se detectó voz en el mensaje.",
        "choose_language": "¡Hola! Por favor, elige tu idioma.",
        "language_changed": "Idioma cambiado a {locale}",
        "cleared": "Se borraron {count} mensajes del historial.",
    },
    "en": {
        "welcome": "Hi! I'm {name}, an advanced assistant. How can I help you?",
        "loan_help": "How can I help you with loans?",
        "alert": "🚨 Possible sighting of the missing child! 🚨\n\nMessage: {text}",
        "history": "Conversation history:\n\n{history}",
        "no_history": "No conversation history available.",
        "not_understood": "I don't understand your request. Could you rephrase it?",
        "error": "Something went wrong processing your message. Please try again later.",
        "voice_unsupported": "That file is not supported. OGG audio was expected.",
        "voice_credentials": (
            "Google Cloud credentials could not be loaded. Check the configuration."
        ),
        "voice_failed": "I couldn't transcribe your voice message. Please try again.",
        "voice_empty": "No speech was detected in the message.",
        "choose_language": "Hi! Please choose your language.",
        "language_changed": "Language changed to {locale}",
        "cleared": "Cleared {count} messages from history.",
    },
}


def reply(key: str, locale: str, **kwargs: object) -> str:
    """Return the reply *key* in *locale*, falling back to Spanish."""
    table = _REPLIES.get(locale, _REPLIES["es"])
    return table[key].format(**kwargs)
