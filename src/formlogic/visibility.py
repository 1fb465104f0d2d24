"""
Visibility cascade and step navigation.

Field level:
    A field is visible when its own conditional logic holds for the
    context it is rendered in: the global context for ordinary steps, or
    one participant's context inside a per-participant step.

Step level:
    An ordinary step is visible when its own logic holds globally and it
    either has no fields or at least one field is visible.
    A per-participant step is visible when, for at least one participant,
    the step logic holds and at least one field is visible for that same
    participant. With no participants a per-participant step has nobody
    to repeat for and is hidden.

Navigation never leaves the bounds of the step list: when there is no
visible step in the requested direction the index is returned unchanged.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from formlogic.answers import AnswerState
from formlogic.context import EvaluationContext
from formlogic.evaluator import evaluate_conditions
from formlogic.model import FormField, FormSchema, FormStep

logger = logging.getLogger(__name__)


def is_field_visible(field: FormField, ctx: EvaluationContext) -> bool:
    return evaluate_conditions(field.conditional_logic, ctx)


def _step_visible_in(step: FormStep, ctx: EvaluationContext) -> bool:
    if not evaluate_conditions(step.conditional_logic, ctx):
        return False
    if not step.fields:
        return True
    return any(is_field_visible(f, ctx) for f in step.fields)


def step_context(step: FormStep, state: AnswerState, participant_index: Optional[int] = None) -> EvaluationContext:
    """Context a step's fields are evaluated in."""
    if step.per_participant and participant_index is not None:
        return state.participant_context(participant_index)
    return state.global_context()


def visible_participants(step: FormStep, state: AnswerState) -> List[int]:
    """Indexes of participants for whom a per-participant step is shown."""
    return [
        i for i in range(state.participant_count)
        if _step_visible_in(step, state.participant_context(i))
    ]


def is_step_visible(step: FormStep, state: AnswerState) -> bool:
    if step.per_participant:
        return any(
            _step_visible_in(step, state.participant_context(i))
            for i in range(state.participant_count)
        )
    return _step_visible_in(step, state.global_context())


def visible_fields(step: FormStep, state: AnswerState, participant_index: Optional[int] = None) -> List[FormField]:
    """
    Fields of a step that should be rendered.

    For a per-participant step pass participant_index; each participant
    can see a different subset of the same step.
    """
    ctx = step_context(step, state, participant_index)
    return [f for f in step.fields if is_field_visible(f, ctx)]


def participant_field_visibility(step: FormStep, state: AnswerState) -> Dict[int, List[str]]:
    """Map of participant index -> names of visible fields, for a repeating step."""
    return {
        i: [f.name for f in visible_fields(step, state, i)]
        for i in range(state.participant_count)
    }


def visible_step_indices(schema: FormSchema, state: AnswerState) -> List[int]:
    """Ordered indexes of the steps a user can currently navigate to."""
    return [i for i, step in enumerate(schema.steps) if is_step_visible(step, state)]


def find_next_visible_step(schema: FormSchema, state: AnswerState, index: int) -> int:
    for candidate in range(max(index + 1, 0), len(schema.steps)):
        if is_step_visible(schema.steps[candidate], state):
            return candidate
    return index


def find_prev_visible_step(schema: FormSchema, state: AnswerState, index: int) -> int:
    for candidate in range(min(index, len(schema.steps)) - 1, -1, -1):
        if is_step_visible(schema.steps[candidate], state):
            return candidate
    return index


def revalidate_step_index(schema: FormSchema, state: AnswerState, index: int) -> int:
    """
    Keep the displayed step valid after answers change.

    A visible current step stays. A hidden one moves forward to the next
    visible step, or backward when nothing follows. When no step is
    visible at all the index is only pulled into range.
    """
    if not schema.steps:
        return 0
    index = min(max(index, 0), len(schema.steps) - 1)
    if is_step_visible(schema.steps[index], state):
        return index

    moved = find_next_visible_step(schema, state, index)
    if moved == index:
        moved = find_prev_visible_step(schema, state, index)
    if moved != index:
        logger.debug("Step %d is hidden; moving to step %d", index, moved)
    return moved
