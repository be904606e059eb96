from __future__ import annotations

import json

import pytest

from mbti_bot.assessment import AssessmentSession
from mbti_bot.config import AppConfig
from mbti_bot.openai_service import OpenAIServiceError

INTJ_PAYLOAD = {
    "mbtiType": "INTJ",
    "confidence": 0.82,
    "dimensions": {
        "EI": {"type": "I", "confidence": 0.8, "reason": "用户更喜欢独处充电"},
        "SN": {"type": "N", "confidence": 0.85, "reason": "用户关注长期的可能性"},
        "TF": {"type": "T", "confidence": 0.75, "reason": "用户用逻辑做取舍"},
        "JP": {"type": "J", "confidence": 0.9, "reason": "用户习惯提前安排"},
    },
    "description": "INTJ是独立的战略思考者。",
    "strengths": ["战略思维", "独立工作"],
    "developmentAreas": ["增强灵活性"],
    "careerSuggestions": ["研究开发"],
}

INTJ_ANALYSIS_REPLY = "以下是分析结果：\n" + json.dumps(INTJ_PAYLOAD, ensure_ascii=False) + "\n希望对你有帮助。"

# No trigger phrases and no dimension keywords in these replies.
NEUTRAL_REPLIES = [
    "好的，能再讲讲你上周末做了什么吗？",
    "听起来很有意思，你当时是怎么安排时间的？",
    "明白了，那工作日下班后你一般做什么？",
]


class FakeOpenAIService:
    def __init__(
        self,
        replies: list[str] | None = None,
        analysis_reply: str = INTJ_ANALYSIS_REPLY,
        fail_invoke: bool = False,
        fail_complete: bool = False,
    ) -> None:
        self.replies = list(replies or [])
        self.analysis_reply = analysis_reply
        self.fail_invoke = fail_invoke
        self.fail_complete = fail_complete
        self.invoke_calls: list[tuple[str, tuple]] = []
        self.complete_calls: list[list[dict[str, str]]] = []

    async def invoke(self, system_prompt, history):
        self.invoke_calls.append((system_prompt, tuple(history)))
        if self.fail_invoke:
            raise OpenAIServiceError("gateway down")
        return self.replies.pop(0)

    async def complete(self, messages):
        self.complete_calls.append(messages)
        if self.fail_complete:
            raise OpenAIServiceError("gateway down")
        return self.analysis_reply


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(api_key="sk-test")


@pytest.fixture
def fake_service() -> FakeOpenAIService:
    return FakeOpenAIService()


@pytest.fixture
def session(config: AppConfig, fake_service: FakeOpenAIService) -> AssessmentSession:
    assessment = AssessmentSession(config=config, service=fake_service)
    assert assessment.initialize()
    return assessment
