from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .constants import DEFAULT_ANALYSIS_KEYWORDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    api_key: str
    base_url: str = "https://api.deepseek.com"
    model: str = "deepseek-chat"
    temperature: float = 0.7
    max_tokens: int = 2000
    min_questions_before_analysis: int = 4
    analysis_keywords: tuple[str, ...] = field(default_factory=lambda: tuple(DEFAULT_ANALYSIS_KEYWORDS))
    telegram_bot_token: str = ""


class ConfigError(RuntimeError):
    pass


def _parse_keywords(raw: str) -> tuple[str, ...]:
    keywords = tuple(item.strip() for item in raw.split(",") if item.strip())
    return keywords or tuple(DEFAULT_ANALYSIS_KEYWORDS)


def load_config() -> AppConfig:
    load_dotenv()

    api_key = (os.getenv("DEEPSEEK_API_KEY") or os.getenv("OPENAI_API_KEY") or "").strip()
    base_url = os.getenv("DEEPSEEK_BASE_URL", "").strip() or "https://api.deepseek.com"
    model = os.getenv("DEEPSEEK_MODEL", "deepseek-chat").strip() or "deepseek-chat"
    temperature_raw = os.getenv("TEMPERATURE", "0.7").strip()
    max_tokens_raw = os.getenv("MAX_TOKENS", "2000").strip()
    min_questions_raw = os.getenv("MIN_QUESTIONS_BEFORE_ANALYSIS", "4").strip()
    keywords_raw = os.getenv("ANALYSIS_KEYWORDS", "")
    telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()

    try:
        temperature = float(temperature_raw)
        if temperature < 0 or temperature > 2:
            raise ValueError
    except ValueError as exc:
        raise ConfigError("TEMPERATURE must be a float in range [0, 2]") from exc

    try:
        max_tokens = int(max_tokens_raw)
        if max_tokens < 1:
            raise ValueError
    except ValueError as exc:
        raise ConfigError("MAX_TOKENS must be a positive integer") from exc

    try:
        min_questions = int(min_questions_raw)
        if min_questions < 1 or min_questions > 50:
            raise ValueError
    except ValueError as exc:
        raise ConfigError("MIN_QUESTIONS_BEFORE_ANALYSIS must be an integer in range [1, 50]") from exc

    return AppConfig(
        api_key=api_key,
        base_url=base_url,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        min_questions_before_analysis=min_questions,
        analysis_keywords=_parse_keywords(keywords_raw),
        telegram_bot_token=telegram_bot_token,
    )


def validate_config(config: AppConfig) -> bool:
    """Report whether the config carries an API credential.

    A missing key is not fatal: the session stays in the not-ready state and
    the UI shows a hint instead of failing at startup.
    """
    if not config.api_key:
        logger.warning("Missing DEEPSEEK_API_KEY in environment/.env, the model will not be initialized")
        return False
    return True
