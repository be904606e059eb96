from __future__ import annotations

import asyncio

import pytest

from conftest import NEUTRAL_REPLIES, FakeOpenAIService
from mbti_bot.assessment import AssessmentSession, ModelNotReadyError
from mbti_bot.config import AppConfig
from mbti_bot.constants import MODEL_NOT_READY_MESSAGE, WELCOME_FALLBACK
from mbti_bot.models import ASSISTANT, USER
from mbti_bot.openai_service import OpenAIServiceError
from mbti_bot.prompts import ANALYSIS_SYSTEM_PROMPT, ENOUGH_INFO_HINT

USER_TEXTS = ["我周末去爬山了", "提前一天订好票", "下班后在家看书", "最近在学做饭"]


def test_initialize_without_api_key_marks_session_not_ready():
    assessment = AssessmentSession(config=AppConfig(api_key=""), service=FakeOpenAIService())

    assert assessment.initialize() is False
    assert assessment.is_model_ready is False


def test_initialize_builds_default_service(config):
    assessment = AssessmentSession(config=config)

    assert assessment.initialize() is True
    assert assessment.is_model_ready is True
    assert assessment.service.model == "deepseek-chat"


@pytest.mark.asyncio
async def test_send_message_requires_initialized_model(config):
    assessment = AssessmentSession(config=config, service=FakeOpenAIService(replies=["hi"]))

    with pytest.raises(ModelNotReadyError):
        await assessment.send_message("你好")
    assert assessment.get_conversation_history() == ()


@pytest.mark.asyncio
async def test_send_message_appends_turns_and_counts_questions(session, fake_service):
    fake_service.replies = list(NEUTRAL_REPLIES)

    for index, text in enumerate(USER_TEXTS[:3], start=1):
        result = await session.send_message(text)
        assert result.message == NEUTRAL_REPLIES[index - 1]
        assert result.analysis is None
        assert result.is_complete is False
        assert session.get_user_info().questions_asked == index

    history = session.get_conversation_history()
    assert [turn.role for turn in history] == [USER, ASSISTANT] * 3
    assert [turn.text for turn in history[::2]] == USER_TEXTS[:3]
    assert fake_service.complete_calls == []


@pytest.mark.asyncio
async def test_send_message_passes_system_prompt_and_full_history(session, fake_service):
    fake_service.replies = list(NEUTRAL_REPLIES)

    await session.send_message(USER_TEXTS[0])
    await session.send_message(USER_TEXTS[1])

    system_prompt, history = fake_service.invoke_calls[-1]
    assert "你已经问了1个问题" in system_prompt
    assert [turn.text for turn in history] == [USER_TEXTS[0], NEUTRAL_REPLIES[0], USER_TEXTS[1]]


@pytest.mark.asyncio
async def test_trigger_phrase_after_threshold_runs_analysis(session, fake_service):
    fake_service.replies = NEUTRAL_REPLIES + ["谢谢你的分享，我现在可以进行分析了。"]

    for text in USER_TEXTS[:3]:
        await session.send_message(text)
    result = await session.send_message(USER_TEXTS[3])

    assert result.is_complete is True
    assert result.analysis is not None
    assert result.analysis.mbti_type == "INTJ"
    assert session.get_user_info().mbti_type == "INTJ"
    assert session.is_complete is True
    assert session.is_analyzing is False

    assert len(fake_service.complete_calls) == 1
    messages = fake_service.complete_calls[0]
    assert messages[0] == {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT}
    assert f"用户: {USER_TEXTS[0]}" in messages[1]["content"]
    assert f"AI: {NEUTRAL_REPLIES[0]}" in messages[1]["content"]


@pytest.mark.asyncio
async def test_trigger_phrase_before_threshold_does_not_analyze(session, fake_service):
    fake_service.replies = ["我们来做个总结和分析吧"]

    result = await session.send_message("你好")

    assert result.is_complete is False
    assert fake_service.complete_calls == []


@pytest.mark.asyncio
async def test_unparseable_analysis_falls_back_to_default_result(session, fake_service):
    fake_service.replies = NEUTRAL_REPLIES + ["好的，接下来我会给出结论。"]
    fake_service.analysis_reply = "抱歉，我暂时无法给出结果。"

    for text in USER_TEXTS:
        result = await session.send_message(text)

    assert result.is_complete is True
    assert result.analysis.mbti_type == "ENFP"
    assert result.analysis.confidence == 0.6
    assert session.get_user_info().mbti_type == "ENFP"


@pytest.mark.asyncio
async def test_analysis_gateway_failure_is_masked_by_fallback(session, fake_service):
    fake_service.fail_complete = True

    analysis = await session.perform_analysis()

    assert analysis.mbti_type == "ENFP"
    assert analysis.confidence == 0.6
    assert session.is_analyzing is False


@pytest.mark.asyncio
async def test_primary_gateway_failure_propagates(session, fake_service):
    fake_service.fail_invoke = True

    with pytest.raises(OpenAIServiceError):
        await session.send_message("你好")
    assert session.get_user_info().questions_asked == 0


@pytest.mark.asyncio
async def test_analysis_is_skipped_while_another_is_running(session, fake_service):
    session.is_analyzing = True

    assert await session.perform_analysis() is None
    assert fake_service.complete_calls == []
    assert session.is_analyzing is True


@pytest.mark.asyncio
async def test_overlapping_analysis_calls_issue_single_request(session, fake_service):
    started = asyncio.Event()
    release = asyncio.Event()
    original_complete = fake_service.complete

    async def slow_complete(messages):
        started.set()
        await release.wait()
        return await original_complete(messages)

    fake_service.complete = slow_complete

    first = asyncio.create_task(session.perform_analysis())
    await started.wait()
    second = await session.perform_analysis()
    release.set()
    first_result = await first

    assert second is None
    assert first_result.mbti_type == "INTJ"
    assert len(fake_service.complete_calls) == 1


@pytest.mark.asyncio
async def test_welcome_message_is_recorded_as_first_turn(session, fake_service):
    greeting = "你好，我是你的MBTI分析师。周末你通常怎么度过？"
    fake_service.replies = [greeting]

    welcome = await session.get_welcome_message()

    assert welcome == greeting
    history = session.get_conversation_history()
    assert len(history) == 1
    assert history[0].role == ASSISTANT
    assert history[0].text == greeting
    system_prompt, sent_history = fake_service.invoke_calls[0]
    assert system_prompt.endswith("请开始介绍自己并提出第一个问题。")
    assert sent_history == ()


@pytest.mark.asyncio
async def test_welcome_message_falls_back_on_gateway_error(session, fake_service):
    fake_service.fail_invoke = True

    assert await session.get_welcome_message() == WELCOME_FALLBACK
    assert session.get_conversation_history() == ()


@pytest.mark.asyncio
async def test_welcome_message_when_model_not_ready():
    assessment = AssessmentSession(config=AppConfig(api_key=""))
    assessment.initialize()

    assert await assessment.get_welcome_message() == MODEL_NOT_READY_MESSAGE


@pytest.mark.asyncio
async def test_reset_conversation_clears_state(session, fake_service):
    fake_service.replies = list(NEUTRAL_REPLIES)
    await session.send_message(USER_TEXTS[0])
    await session.perform_analysis()

    session.reset_conversation()

    assert session.get_conversation_history() == ()
    info = session.get_user_info()
    assert info.questions_asked == 0
    assert info.mbti_type is None
    assert session.analysis is None
    assert session.is_analyzing is False


@pytest.mark.asyncio
async def test_progress_hint_switches_after_threshold(session, fake_service):
    fake_service.replies = NEUTRAL_REPLIES + ["再问一个问题：你喜欢看电影吗？", "最后一个问题"]

    for text in USER_TEXTS:
        await session.send_message(text)
    await session.send_message("喜欢")

    system_prompt, _ = fake_service.invoke_calls[-1]
    assert ENOUGH_INFO_HINT in system_prompt


@pytest.mark.asyncio
async def test_oversized_confidence_in_analysis_still_completes(session, fake_service):
    fake_service.replies = NEUTRAL_REPLIES + ["好的，我来做分析"]
    fake_service.analysis_reply = (
        '{"mbtiType":"INTJ","confidence":1' + "0" * 400 + ',"dimensions":{"EI":{"type":"I"}},"description":"x"}'
    )

    for text in USER_TEXTS:
        result = await session.send_message(text)

    assert result.is_complete is True
    assert result.analysis.mbti_type == "INTJ"
    assert 0.0 <= result.analysis.confidence <= 1.0


@pytest.mark.asyncio
async def test_unexpected_analysis_error_falls_back_to_default_result(session, fake_service):
    async def broken_complete(messages):
        raise RuntimeError("unexpected")

    fake_service.complete = broken_complete

    analysis = await session.perform_analysis()

    assert analysis.mbti_type == "ENFP"
    assert analysis.confidence == 0.6
    assert session.get_user_info().mbti_type == "ENFP"
    assert session.is_analyzing is False
