"""Tolerant extraction of an ``AssessmentResult`` from free-form model output.

The parser is an ordered chain of strategies. Each strategy returns either a
result or ``None``, and ``None`` hands the text to the next strategy:

1. ``parse_strict_json`` decodes the first brace-delimited JSON object;
2. ``scan_type_line`` recovers a bare four-letter type from a ``类型:`` or
   ``mbtiType`` line, which ``build_basic_analysis`` turns into a templated
   result.

``build_fallback_analysis`` is the fixed result used when the whole analysis
step fails; the orchestrator applies it, not this module.
"""
from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from .constants import (
    AXES,
    DEFAULT_TYPE,
    SYNTHESIZED_CONFIDENCE,
    SYNTHESIZED_DIMENSION_CONFIDENCE,
    TYPE_PROFILES,
)
from .models import AssessmentResult, DimensionResult

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
TYPE_RUN_RE = re.compile(r"(?<![A-Z])[A-Z]{4}(?![A-Z])")
VALID_TYPE_RE = re.compile(r"[EI][SN][TF][JP]")

ParserStrategy = Callable[[str], AssessmentResult | None]


def _dimension_reason(axis: str, pole: str) -> str:
    if axis == "EI":
        return f"基于对话分析，用户表现出{'外向' if pole == 'E' else '内向'}的特征"
    if axis == "SN":
        return f"用户在信息处理上偏向{'感觉' if pole == 'S' else '直觉'}型"
    if axis == "TF":
        return f"决策风格倾向于{'理性思考' if pole == 'T' else '情感考虑'}"
    return f"生活方式更偏向{'有序规划' if pole == 'J' else '灵活适应'}"


def _pole_for(mbti_type: str, index: int) -> str:
    return mbti_type[index] if index < len(mbti_type) else ""


def build_dimensions(mbti_type: str) -> dict[str, DimensionResult]:
    return {
        axis: DimensionResult(
            axis=axis,
            pole=_pole_for(mbti_type, index),
            confidence=SYNTHESIZED_DIMENSION_CONFIDENCE,
            reason=_dimension_reason(axis, _pole_for(mbti_type, index)),
        )
        for index, axis in enumerate(AXES)
    }


def _decode_dimensions(mbti_type: str, raw_dimensions: dict[str, Any]) -> dict[str, DimensionResult]:
    synthesized = build_dimensions(mbti_type)
    dimensions: dict[str, DimensionResult] = {}
    for axis in AXES:
        raw = raw_dimensions.get(axis)
        if isinstance(raw, dict):
            decoded = DimensionResult.from_payload(axis, raw)
            if not decoded.pole:
                decoded = replace(decoded, pole=synthesized[axis].pole)
            dimensions[axis] = decoded
        else:
            dimensions[axis] = synthesized[axis]
    return dimensions


def parse_strict_json(text: str) -> AssessmentResult | None:
    match = JSON_OBJECT_RE.search(text)
    if not match:
        return None

    try:
        payload = json.loads(match.group(0))
    except (ValueError, RecursionError) as exc:
        logger.info("Analysis JSON decode failed, trying line scan: %s", exc)
        return None

    if not isinstance(payload, dict):
        return None

    mbti_type = str(payload.get("mbtiType") or "").strip()
    raw_dimensions = payload.get("dimensions")
    description = str(payload.get("description") or "").strip()
    if not mbti_type or not raw_dimensions or not isinstance(raw_dimensions, dict) or not description:
        logger.info("Analysis JSON is missing required fields, trying line scan")
        return None

    dimensions = _decode_dimensions(mbti_type, raw_dimensions)
    poles = "".join(dimensions[axis].pole for axis in AXES)
    if poles != mbti_type:
        logger.warning("Analysis type %s disagrees with dimension poles %s", mbti_type, poles)

    return AssessmentResult.from_payload(payload, dimensions)


def scan_type_line(text: str) -> str | None:
    for line in text.splitlines():
        if "类型" not in line and "type" not in line.casefold():
            continue

        runs = TYPE_RUN_RE.findall(line)
        if not runs:
            continue

        # "MBTI" itself is four capitals; prefer a run made of real pole letters.
        for run in runs:
            if VALID_TYPE_RE.fullmatch(run):
                return run
        return runs[0]
    return None


def build_basic_analysis(mbti_type: str) -> AssessmentResult:
    profile = TYPE_PROFILES.get(mbti_type) or TYPE_PROFILES[DEFAULT_TYPE]
    return AssessmentResult(
        mbti_type=mbti_type,
        confidence=SYNTHESIZED_CONFIDENCE,
        dimensions=build_dimensions(mbti_type),
        description=profile["description"],
        strengths=tuple(profile["strengths"]),
        development_areas=tuple(profile["development_areas"]),
        career_suggestions=tuple(profile["career_suggestions"]),
    )


def parse_type_line(text: str) -> AssessmentResult | None:
    mbti_type = scan_type_line(text)
    if mbti_type is None:
        return None
    logger.info("Recovered type %s from analysis text, synthesizing result", mbti_type)
    return build_basic_analysis(mbti_type)


PARSER_CHAIN: tuple[ParserStrategy, ...] = (parse_strict_json, parse_type_line)


def parse_analysis_result(
    text: str,
    strategies: tuple[ParserStrategy, ...] = PARSER_CHAIN,
) -> AssessmentResult | None:
    for strategy in strategies:
        result = strategy(text)
        if result is not None:
            return result
    return None


def build_fallback_analysis() -> AssessmentResult:
    reasons = {
        "EI": ("E", "基于有限的对话信息推测用户偏向外向"),
        "SN": ("N", "用户表现出一定的直觉型特征"),
        "TF": ("F", "决策时似乎更重视人际关系和情感因素"),
        "JP": ("P", "表现出较强的灵活性和开放性"),
    }
    return AssessmentResult(
        mbti_type="ENFP",
        confidence=0.6,
        dimensions={
            axis: DimensionResult(axis=axis, pole=pole, confidence=0.6, reason=reason)
            for axis, (pole, reason) in reasons.items()
        },
        description="基于有限的对话信息，初步分析显示用户可能属于ENFP类型。建议进行更深入的对话以获得更准确的分析结果。",
        strengths=("善于交流", "富有创意", "适应性强", "关心他人"),
        development_areas=("需要更多信息来准确评估发展领域",),
        career_suggestions=("建议进行更详细的对话以提供准确的职业建议",),
    )
