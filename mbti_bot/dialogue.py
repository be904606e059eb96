from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from .constants import AXES, DEFAULT_ANALYSIS_KEYWORDS, DIMENSION_KEYWORDS, MIN_COVERED_DIMENSIONS
from .models import Turn

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProgressSnapshot:
    questions_asked: int
    min_questions: int
    covered_dimensions: list[str]
    remaining_dimensions: list[str]


class AnalysisTrigger:
    def __init__(
        self,
        min_questions: int = 4,
        analysis_keywords: Iterable[str] = DEFAULT_ANALYSIS_KEYWORDS,
        dimension_keywords: Mapping[str, Sequence[str]] = DIMENSION_KEYWORDS,
        min_covered_dimensions: int = MIN_COVERED_DIMENSIONS,
    ) -> None:
        self.min_questions = min_questions
        self.analysis_keywords = tuple(analysis_keywords)
        self.dimension_keywords = {axis: tuple(words) for axis, words in dimension_keywords.items()}
        self.min_covered_dimensions = min_covered_dimensions

    @staticmethod
    def _normalized_transcript(turns: Sequence[Turn]) -> str:
        return " ".join(turn.text for turn in turns).casefold()

    def covered_dimensions(self, turns: Sequence[Turn]) -> list[str]:
        text = self._normalized_transcript(turns)
        return [
            axis
            for axis, keywords in self.dimension_keywords.items()
            if any(keyword.casefold() in text for keyword in keywords)
        ]

    def count_covered_dimensions(self, turns: Sequence[Turn]) -> int:
        return len(self.covered_dimensions(turns))

    def has_collected_enough_dimension_info(self, turns: Sequence[Turn]) -> bool:
        return self.count_covered_dimensions(turns) >= self.min_covered_dimensions

    def has_analysis_intent(self, reply: str) -> bool:
        return any(keyword in reply for keyword in self.analysis_keywords)

    def should_analyze(self, reply: str, questions_asked: int, turns: Sequence[Turn]) -> bool:
        has_enough_questions = questions_asked >= self.min_questions
        if not has_enough_questions:
            logger.debug("Analysis check: %s/%s questions, not enough yet", questions_asked, self.min_questions)
            return False

        has_intent = self.has_analysis_intent(reply)
        has_enough_info = self.has_collected_enough_dimension_info(turns)

        logger.debug(
            "Analysis check: questions=%s intent=%s enough_info=%s reply=%r",
            questions_asked,
            has_intent,
            has_enough_info,
            reply[:100],
        )
        return has_intent or has_enough_info

    def progress_snapshot(self, questions_asked: int, turns: Sequence[Turn]) -> ProgressSnapshot:
        covered = self.covered_dimensions(turns)
        return ProgressSnapshot(
            questions_asked=questions_asked,
            min_questions=self.min_questions,
            covered_dimensions=[axis for axis in AXES if axis in covered],
            remaining_dimensions=[axis for axis in AXES if axis not in covered],
        )
