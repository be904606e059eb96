from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .constants import AXES

USER = "user"
ASSISTANT = "assistant"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_confidence(value: Any, default: float = 0.0) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(confidence):
        return default
    return min(max(confidence, 0.0), 1.0)


def _coerce_text_list(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, list):
        return tuple(str(item).strip() for item in raw if str(item).strip())
    if isinstance(raw, str) and raw.strip():
        return (raw.strip(),)
    return ()


@dataclass(frozen=True, slots=True)
class Turn:
    role: str
    text: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass(slots=True)
class UserInfo:
    questions_asked: int = 0
    mbti_type: str | None = None
    # Placeholders kept for the UI; nothing in the assessment flow writes them yet.
    traits: dict[str, Any] = field(default_factory=dict)
    collected_data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DimensionResult:
    axis: str
    pole: str
    confidence: float
    reason: str

    @classmethod
    def from_payload(cls, axis: str, payload: dict[str, Any]) -> DimensionResult:
        return cls(
            axis=axis,
            pole=str(payload.get("type") or "").strip(),
            confidence=_coerce_confidence(payload.get("confidence")),
            reason=str(payload.get("reason") or "").strip(),
        )

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.pole, "confidence": self.confidence, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class AssessmentResult:
    mbti_type: str
    confidence: float
    dimensions: dict[str, DimensionResult]
    description: str
    strengths: tuple[str, ...] = ()
    development_areas: tuple[str, ...] = ()
    career_suggestions: tuple[str, ...] = ()

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        dimensions: dict[str, DimensionResult],
    ) -> AssessmentResult:
        return cls(
            mbti_type=str(payload.get("mbtiType", "")).strip(),
            confidence=_coerce_confidence(payload.get("confidence")),
            dimensions=dimensions,
            description=str(payload.get("description", "")).strip(),
            strengths=_coerce_text_list(payload.get("strengths")),
            development_areas=_coerce_text_list(payload.get("developmentAreas")),
            career_suggestions=_coerce_text_list(payload.get("careerSuggestions")),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "mbtiType": self.mbti_type,
            "confidence": self.confidence,
            "dimensions": {axis: self.dimensions[axis].to_payload() for axis in AXES if axis in self.dimensions},
            "description": self.description,
            "strengths": list(self.strengths),
            "developmentAreas": list(self.development_areas),
            "careerSuggestions": list(self.career_suggestions),
        }


@dataclass(slots=True)
class SendResult:
    message: str
    analysis: AssessmentResult | None
    is_complete: bool
