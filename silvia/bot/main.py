"""SilvIA+ bot entry point."""

import logging

from silvia.config import settings

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
# httpx logs every request at INFO, including the bot token in the URL.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def main() -> None:
    """Start the bot with long polling."""
    from telegram import Update

    from silvia.bot.app import create_app

    logger.info(
        "Starting %s on Telegram with model %s (reply mode: %s)...",
        settings.assistant_name,
        settings.claude_model,
        settings.reply_mode,
    )
    app = create_app()
    app.run_polling(allowed_updates=Update.ALL_TYPES)


if __name__ == "__main__":
    main()
