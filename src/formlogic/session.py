"""
Fill-time session: a step cursor over a read-only schema.

FormSession owns the current AnswerState snapshot and the index of the
displayed step. Every answer mutation replaces the snapshot and then
re-validates the index, so the user is never left on a hidden step.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from formlogic.answers import AnswerState
from formlogic.model import FormField, FormSchema, FormStep
from formlogic.validation import AnswerIssue, validate_answers
from formlogic.visibility import (
    find_next_visible_step,
    find_prev_visible_step,
    is_step_visible,
    revalidate_step_index,
    visible_fields,
    visible_participants,
    visible_step_indices,
)

logger = logging.getLogger(__name__)


class FormSession:
    """
    Navigation state for one person filling in a form.

    Properties:
        schema: FormSchema (never modified)
        state: Current AnswerState snapshot
        current_index: Index into schema.steps of the displayed step
    """

    def __init__(self, schema: FormSchema, state: Optional[AnswerState] = None, start_index: int = 0):
        self.schema = schema
        self.state = state or AnswerState()
        self.current_index = revalidate_step_index(schema, self.state, start_index)

    @property
    def current_step(self) -> Optional[FormStep]:
        if not self.schema.steps:
            return None
        return self.schema.steps[self.current_index]

    def visible_steps(self) -> List[int]:
        return visible_step_indices(self.schema, self.state)

    def current_fields(self, participant_index: Optional[int] = None) -> List[FormField]:
        step = self.current_step
        if step is None:
            return []
        return visible_fields(step, self.state, participant_index)

    def current_participants(self) -> List[int]:
        """Participants whose block is rendered on the current repeating step."""
        step = self.current_step
        if step is None or not step.per_participant:
            return []
        return visible_participants(step, self.state)

    def _replace_state(self, state: AnswerState) -> None:
        self.state = state
        previous = self.current_index
        self.current_index = revalidate_step_index(self.schema, state, previous)
        if self.current_index != previous:
            logger.info("Current step %d became hidden; showing step %d", previous, self.current_index)

    def set_answer(self, name: str, value: Any, participant_index: Optional[int] = None) -> None:
        self._replace_state(self.state.with_answer(name, value, participant_index))

    def clear_answer(self, name: str, participant_index: Optional[int] = None) -> None:
        self._replace_state(self.state.without_answer(name, participant_index))

    def set_guardian(self, guardian: Dict[str, Any]) -> None:
        self._replace_state(self.state.with_guardian(guardian))

    def set_participants(self, participants) -> None:
        self._replace_state(self.state.with_participants(participants))

    def next(self) -> int:
        self.current_index = find_next_visible_step(self.schema, self.state, self.current_index)
        return self.current_index

    def previous(self) -> int:
        self.current_index = find_prev_visible_step(self.schema, self.state, self.current_index)
        return self.current_index

    def has_next(self) -> bool:
        return find_next_visible_step(self.schema, self.state, self.current_index) != self.current_index

    def has_previous(self) -> bool:
        return find_prev_visible_step(self.schema, self.state, self.current_index) != self.current_index

    def is_current_visible(self) -> bool:
        step = self.current_step
        return step is not None and is_step_visible(step, self.state)

    def issues(self) -> List[AnswerIssue]:
        return validate_answers(self.schema, self.state)
