from __future__ import annotations

from dataclasses import replace

from .models import ASSISTANT, USER, Turn, UserInfo


class ConversationStore:
    """Ordered turns plus the per-session counters for one assessment."""

    def __init__(self) -> None:
        self._turns: list[Turn] = []
        self._user_info = UserInfo()

    def append_user(self, text: str) -> Turn:
        turn = Turn(role=USER, text=text)
        self._turns.append(turn)
        return turn

    def append_assistant(self, text: str) -> Turn:
        turn = Turn(role=ASSISTANT, text=text)
        self._turns.append(turn)
        return turn

    def increment_question_count(self) -> int:
        self._user_info.questions_asked += 1
        return self._user_info.questions_asked

    @property
    def questions_asked(self) -> int:
        return self._user_info.questions_asked

    def set_mbti_type(self, mbti_type: str) -> None:
        self._user_info.mbti_type = mbti_type

    def reset(self) -> None:
        # Swap in fresh objects so earlier snapshots stay untouched.
        self._turns = []
        self._user_info = UserInfo()

    def snapshot(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def user_info(self) -> UserInfo:
        return replace(
            self._user_info,
            traits=dict(self._user_info.traits),
            collected_data=dict(self._user_info.collected_data),
        )

    def transcript(self) -> str:
        return " ".join(turn.text for turn in self._turns)

    def __len__(self) -> int:
        return len(self._turns)
