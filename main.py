from __future__ import annotations

import logging
import sys

from telegram import BotCommand, BotCommandScopeAllPrivateChats, BotCommandScopeDefault
from telegram.ext import Application, CommandHandler, MessageHandler, filters

from mbti_bot.config import AppConfig, ConfigError, load_config, validate_config
from mbti_bot.handlers import (
    help_command,
    reset_command,
    result_command,
    start_command,
    status_command,
    text_message_handler,
)
from mbti_bot.openai_service import OpenAIService
from mbti_bot.reporting import ReportBuilder

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


async def _post_init_set_commands(app: Application) -> None:
    commands = [
        BotCommand("start", "开始MBTI性格测评"),
        BotCommand("status", "查看当前进度"),
        BotCommand("result", "查看测评结果"),
        BotCommand("reset", "重新开始测评"),
        BotCommand("help", "命令说明"),
    ]

    scopes = [BotCommandScopeDefault(), BotCommandScopeAllPrivateChats()]
    language_codes: list[str | None] = [None, "zh", "en"]

    for scope in scopes:
        for language_code in language_codes:
            await app.bot.set_my_commands(
                commands,
                scope=scope,
                language_code=language_code,
            )

    logger.info("Telegram command menu updated for default/private scopes")


def build_openai_service(config: AppConfig) -> OpenAIService | None:
    if not validate_config(config):
        return None
    return OpenAIService(
        api_key=config.api_key,
        base_url=config.base_url,
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def build_application() -> Application:
    config = load_config()
    if not config.telegram_bot_token:
        raise ConfigError("Missing TELEGRAM_BOT_TOKEN in environment/.env")

    app = Application.builder().token(config.telegram_bot_token).post_init(_post_init_set_commands).build()

    app.bot_data["config"] = config
    app.bot_data["openai_service"] = build_openai_service(config)
    app.bot_data["reporter"] = ReportBuilder()
    app.bot_data["sessions"] = {}

    app.add_handler(CommandHandler("start", start_command))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("reset", reset_command))
    app.add_handler(CommandHandler("status", status_command))
    app.add_handler(CommandHandler("result", result_command))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, text_message_handler))

    return app


def main() -> None:
    configure_logging()

    try:
        app = build_application()
    except ConfigError as exc:
        logging.error("Startup failed: %s", exc)
        sys.exit(1)

    app.run_polling(drop_pending_updates=True)


if __name__ == "__main__":
    main()
