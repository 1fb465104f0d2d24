"""
Fill-time answers store.

AnswerState is the only thing that changes while a form is being filled
in. It is immutable: every edit returns a new state, so the engine can be
handed a snapshot and never observe or cause a change.

    state = AnswerState(guardian={"name": "Ada"}, participants=({"age": 10}, {"age": 14}))
    state = state.with_answer("needs_transport", "yes")
    state = state.with_answer("tshirt_size", "M", participant_index=1)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, Tuple

from formlogic.context import EvaluationContext


def _copy(mapping: Optional[Mapping[str, Any]]) -> dict:
    return dict(mapping or {})


@dataclass(frozen=True)
class AnswerState:
    """
    Snapshot of everything entered so far.

    Properties:
        guardian: Guardian record
        participants: One record per registered participant
        answers: Answers to fields of non-repeating steps
        participant_answers:
            Answers to fields of per-participant steps, one mapping per
            participant index (shorter than participants is allowed)
    """

    guardian: Mapping[str, Any] = field(default_factory=dict)
    participants: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)
    answers: Mapping[str, Any] = field(default_factory=dict)
    participant_answers: Tuple[Mapping[str, Any], ...] = field(default_factory=tuple)

    @property
    def participant_count(self) -> int:
        return len(self.participants)

    def answers_for(self, index: int) -> Mapping[str, Any]:
        if 0 <= index < len(self.participant_answers):
            return self.participant_answers[index]
        return {}

    def global_context(self) -> EvaluationContext:
        return EvaluationContext(guardian=self.guardian, participant=None, answers=self.answers)

    def participant_context(self, index: int) -> EvaluationContext:
        """Context for one participant; their own answers shadow global ones."""
        participant = self.participants[index] if 0 <= index < len(self.participants) else None
        return EvaluationContext.for_participant(
            self.guardian, participant, self.answers, self.answers_for(index)
        )

    def with_answer(self, name: str, value: Any, participant_index: Optional[int] = None) -> "AnswerState":
        """Return a new state with one answer set."""
        if participant_index is None:
            answers = _copy(self.answers)
            answers[name] = value
            return replace(self, answers=answers)

        if participant_index < 0:
            raise IndexError(f"Participant index out of range: {participant_index}")
        per = list(self.participant_answers)
        while len(per) <= participant_index:
            per.append({})
        updated = _copy(per[participant_index])
        updated[name] = value
        per[participant_index] = updated
        return replace(self, participant_answers=tuple(per))

    def without_answer(self, name: str, participant_index: Optional[int] = None) -> "AnswerState":
        if participant_index is None:
            answers = _copy(self.answers)
            answers.pop(name, None)
            return replace(self, answers=answers)
        if not 0 <= participant_index < len(self.participant_answers):
            return self
        per = list(self.participant_answers)
        updated = _copy(per[participant_index])
        updated.pop(name, None)
        per[participant_index] = updated
        return replace(self, participant_answers=tuple(per))

    def with_guardian(self, guardian: Mapping[str, Any]) -> "AnswerState":
        return replace(self, guardian=_copy(guardian))

    def with_participants(self, participants) -> "AnswerState":
        """Replace the participant list, keeping answers aligned by index."""
        participants = tuple(_copy(p) for p in participants)
        per = self.participant_answers[: len(participants)]
        return replace(self, participants=participants, participant_answers=per)
