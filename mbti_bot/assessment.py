from __future__ import annotations

import logging

from .config import AppConfig, validate_config
from .constants import MODEL_NOT_READY_MESSAGE, WELCOME_FALLBACK
from .conversation import ConversationStore
from .dialogue import AnalysisTrigger, ProgressSnapshot
from .models import AssessmentResult, SendResult, Turn, UserInfo
from .openai_service import OpenAIService, OpenAIServiceError
from .parsing import build_fallback_analysis, parse_analysis_result
from .prompts import ANALYSIS_SYSTEM_PROMPT, WELCOME_INSTRUCTION, build_analysis_prompt, build_system_prompt

logger = logging.getLogger(__name__)


class ModelNotReadyError(RuntimeError):
    pass


class AssessmentSession:
    """One conversational MBTI assessment, owned by the caller.

    ``send_message`` appends the user turn, asks the model for the next reply
    and, once the analysis trigger fires, runs a second analysis call whose
    output goes through the tolerant parser. A failed analysis never reaches
    the caller: the fixed fallback result is returned instead.
    """

    def __init__(self, config: AppConfig, service: OpenAIService | None = None) -> None:
        self.config = config
        self.store = ConversationStore()
        self.trigger = AnalysisTrigger(
            min_questions=config.min_questions_before_analysis,
            analysis_keywords=config.analysis_keywords,
        )
        self.service = service
        self.is_initialized = False
        self.is_analyzing = False
        self.analysis: AssessmentResult | None = None

    @property
    def is_model_ready(self) -> bool:
        return self.is_initialized and self.service is not None

    @property
    def is_complete(self) -> bool:
        return self.analysis is not None

    def initialize(self) -> bool:
        if not validate_config(self.config):
            logger.error("Model configuration is invalid, assessment session is not ready")
            self.is_initialized = False
            return False

        if self.service is None:
            self.service = OpenAIService(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                model=self.config.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
            )

        self.is_initialized = True
        logger.info("Assessment model initialized (model=%s, base_url=%s)", self.config.model, self.config.base_url)
        return True

    def _system_prompt(self) -> str:
        return build_system_prompt(self.store.questions_asked, self.config.min_questions_before_analysis)

    def _require_service(self) -> OpenAIService:
        if not self.is_model_ready or self.service is None:
            raise ModelNotReadyError("Assessment model is not initialized, check the API key configuration")
        return self.service

    async def send_message(self, text: str) -> SendResult:
        service = self._require_service()

        self.store.append_user(text)
        reply = await service.invoke(self._system_prompt(), self.store.snapshot())

        self.store.append_assistant(reply)
        questions_asked = self.store.increment_question_count()

        if self.trigger.should_analyze(reply, questions_asked, self.store.snapshot()):
            analysis = await self.perform_analysis()
            return SendResult(message=reply, analysis=analysis, is_complete=True)

        return SendResult(message=reply, analysis=None, is_complete=False)

    async def perform_analysis(self) -> AssessmentResult | None:
        if self.is_analyzing:
            logger.info("Analysis already in progress, skipping duplicate request")
            return None
        self.is_analyzing = True

        try:
            service = self._require_service()
            messages = [
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": build_analysis_prompt(self.store.snapshot())},
            ]
            raw = await service.complete(messages)
            logger.debug("Raw analysis reply: %s", raw)

            analysis = parse_analysis_result(raw)
            if analysis is None or not analysis.mbti_type:
                logger.error("Could not parse analysis reply, using fallback result")
                analysis = build_fallback_analysis()
        except (OpenAIServiceError, ModelNotReadyError) as exc:
            logger.error("MBTI analysis failed, using fallback result: %s", exc)
            analysis = build_fallback_analysis()
        except Exception:
            logger.exception("Unexpected MBTI analysis failure, using fallback result")
            analysis = build_fallback_analysis()
        finally:
            self.is_analyzing = False

        self.store.set_mbti_type(analysis.mbti_type)
        self.analysis = analysis
        return analysis

    async def get_welcome_message(self) -> str:
        if not self.is_model_ready or self.service is None:
            return MODEL_NOT_READY_MESSAGE

        try:
            reply = await self.service.invoke(self._system_prompt() + WELCOME_INSTRUCTION, ())
        except OpenAIServiceError as exc:
            logger.warning("Welcome message request failed, using default greeting: %s", exc)
            return WELCOME_FALLBACK

        self.store.append_assistant(reply)
        return reply

    def reset_conversation(self) -> None:
        self.store.reset()
        self.is_analyzing = False
        self.analysis = None

    def get_conversation_history(self) -> tuple[Turn, ...]:
        return self.store.snapshot()

    def get_user_info(self) -> UserInfo:
        return self.store.user_info()

    def progress(self) -> ProgressSnapshot:
        return self.trigger.progress_snapshot(self.store.questions_asked, self.store.snapshot())
