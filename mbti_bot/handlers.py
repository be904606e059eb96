from __future__ import annotations

import logging
from typing import Any

from telegram import Update
from telegram.ext import ContextTypes

from .assessment import AssessmentSession, ModelNotReadyError
from .config import AppConfig
from .constants import AXIS_DISPLAY
from .openai_service import OpenAIService, OpenAIServiceError
from .reporting import ReportBuilder

logger = logging.getLogger(__name__)


COMMANDS_HINT = "可用命令: /start, /status, /result, /reset, /help"


def _service(context: ContextTypes.DEFAULT_TYPE, key: str) -> Any:
    return context.application.bot_data[key]


def _chunk_text(text: str, limit: int = 3800) -> list[str]:
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    cursor = 0
    while cursor < len(text):
        next_cursor = min(cursor + limit, len(text))
        if next_cursor < len(text):
            split = text.rfind("\n", cursor, next_cursor)
            if split > cursor:
                next_cursor = split
        chunks.append(text[cursor:next_cursor].strip())
        cursor = next_cursor
    return [c for c in chunks if c]


async def _send_long(update: Update, text: str) -> None:
    if update.effective_message is None:
        return
    for chunk in _chunk_text(text):
        await update.effective_message.reply_text(chunk)


def _new_session(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> AssessmentSession:
    sessions: dict[int, AssessmentSession] = _service(context, "sessions")
    config: AppConfig = _service(context, "config")
    openai_service: OpenAIService | None = _service(context, "openai_service")

    session = AssessmentSession(config=config, service=openai_service)
    session.initialize()
    sessions[user_id] = session
    return session


def _get_session(context: ContextTypes.DEFAULT_TYPE, user_id: int) -> AssessmentSession | None:
    sessions: dict[int, AssessmentSession] = _service(context, "sessions")
    return sessions.get(user_id)


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None or update.effective_user is None:
        return

    session = _get_session(context, update.effective_user.id)
    if session is not None and len(session.get_conversation_history()) > 1 and not session.is_complete:
        await update.effective_message.reply_text(
            "你已经有一个进行中的测评。直接回复继续对话，或使用 /reset 重新开始。"
        )
        return

    session = _new_session(context, update.effective_user.id)
    welcome = await session.get_welcome_message()
    await update.effective_message.reply_text(welcome)


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None:
        return
    await update.effective_message.reply_text(
        "命令:\n"
        "/start - 开始MBTI性格测评\n"
        "/reset - 清空当前对话并重新开始\n"
        "/status - 查看当前进度\n"
        "/result - 查看测评结果（测评完成后）\n"
        "/help - 命令说明"
    )


async def reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None or update.effective_user is None:
        return

    session = _get_session(context, update.effective_user.id)
    if session is None:
        await update.effective_message.reply_text("当前没有进行中的测评。发送 /start 开始。")
        return

    session.reset_conversation()
    await update.effective_message.reply_text("对话已重置。")

    welcome = await session.get_welcome_message()
    await update.effective_message.reply_text(welcome)


async def status_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None or update.effective_user is None:
        return

    session = _get_session(context, update.effective_user.id)
    if session is None:
        await update.effective_message.reply_text("当前没有进行中的测评。发送 /start 开始。")
        return

    if session.is_complete:
        await update.effective_message.reply_text("测评已完成，发送 /result 查看结果。")
        return

    snapshot = session.progress()
    covered = [AXIS_DISPLAY.get(axis, axis) for axis in snapshot.covered_dimensions]
    remaining = [AXIS_DISPLAY.get(axis, axis) for axis in snapshot.remaining_dimensions]

    lines = [
        f"已回答问题: {snapshot.questions_asked}（至少 {snapshot.min_questions} 个后可以分析）",
        f"已涉及维度: {', '.join(covered) if covered else '暂无'}",
        f"待了解维度: {', '.join(remaining) if remaining else '信息基本充足'}",
    ]
    await update.effective_message.reply_text("\n".join(lines))


async def result_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None or update.effective_user is None:
        return

    reporter: ReportBuilder = _service(context, "reporter")
    session = _get_session(context, update.effective_user.id)

    if session is None or session.analysis is None:
        await update.effective_message.reply_text("还没有测评结果。继续对话，或发送 /start 开始测评。")
        return

    await _send_long(update, reporter.build_markdown(session.analysis))


async def text_message_handler(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    if update.effective_message is None or update.effective_user is None:
        return

    text = (update.effective_message.text or "").strip()
    if not text:
        return

    reporter: ReportBuilder = _service(context, "reporter")

    session = _get_session(context, update.effective_user.id)
    if session is None:
        await update.effective_message.reply_text("当前没有进行中的测评。发送 /start 开始。")
        return

    if session.is_complete:
        await update.effective_message.reply_text("本次测评已完成。发送 /result 查看结果，或 /reset 重新开始。")
        return

    try:
        result = await session.send_message(text)
    except ModelNotReadyError as exc:
        logger.warning("Message rejected, model not ready: %s", exc)
        await update.effective_message.reply_text("AI模型未初始化，请检查API Key配置。")
        return
    except OpenAIServiceError as exc:
        logger.exception("OpenAIServiceError: %s", exc)
        await update.effective_message.reply_text("AI请求失败，请稍后重新发送上一条消息。")
        return
    except Exception as exc:  # pragma: no cover
        logger.exception("Unexpected error in message handler: %s", exc)
        await update.effective_message.reply_text("处理消息时出现错误，请重试。")
        return

    await _send_long(update, result.message)

    if result.analysis is not None:
        await update.effective_message.reply_text("分析完成，以下是你的测评结果：")
        await _send_long(update, reporter.build_markdown(result.analysis))
