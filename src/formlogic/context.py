"""
Evaluation context and dotted-path resolution.

A context is three layers of already-known values:

    guardian     - the registering adult
    participant  - the participant currently being evaluated (optional)
    answers      - custom field values entered so far

Paths select a layer with their first segment and walk the rest:

    "participant.age"         -> ctx.participant["age"]
    "answers.school.name"     -> ctx.answers["school"]["name"]
    "school_name"             -> ctx.answers["school_name"]  (bare key)

Resolution never raises. Anything that cannot be reached is None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

GUARDIAN_ROOT = "guardian"
PARTICIPANT_ROOT = "participant"
ANSWERS_ROOT = "answers"

CONTEXT_ROOTS = (GUARDIAN_ROOT, PARTICIPANT_ROOT, ANSWERS_ROOT)


@dataclass(frozen=True)
class EvaluationContext:
    """
    Snapshot of everything a rule may look at.

    Properties:
        guardian: Guardian record
        participant: Record of the participant being evaluated, if any
        answers: Global answers merged with the participant's own answers
    """

    guardian: Mapping[str, Any] = field(default_factory=dict)
    participant: Optional[Mapping[str, Any]] = None
    answers: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def for_participant(
        cls,
        guardian: Mapping[str, Any],
        participant: Optional[Mapping[str, Any]],
        global_answers: Mapping[str, Any],
        participant_answers: Optional[Mapping[str, Any]] = None,
    ) -> "EvaluationContext":
        """Build a context whose answers prefer the participant's own keys."""
        merged = dict(global_answers or {})
        merged.update(participant_answers or {})
        return cls(guardian=guardian or {}, participant=participant, answers=merged)

    def root(self, name: str) -> Any:
        if name == GUARDIAN_ROOT:
            return self.guardian
        if name == PARTICIPANT_ROOT:
            return self.participant
        if name == ANSWERS_ROOT:
            return self.answers
        return None


def _step_into(node: Any, key: str) -> Any:
    if isinstance(node, Mapping):
        return node.get(key)
    if isinstance(node, Sequence) and not isinstance(node, (str, bytes)):
        if key.isdigit():
            index = int(key)
            if index < len(node):
                return node[index]
    return None


def _walk(node: Any, segments: Sequence[str]) -> Any:
    current = node
    for key in segments:
        if current is None:
            return None
        current = _step_into(current, key)
    return current


def resolve(path: str, ctx: EvaluationContext) -> Any:
    """
    Resolve a dotted path against a context.

    Args:
        path: Dotted path such as "participant.age" or "favourite_colour"
        ctx: EvaluationContext to read from

    Returns:
        The value found, or None if any segment is missing
    """
    if not path or not isinstance(path, str):
        return None

    root, *rest = path.split(".")
    if root in CONTEXT_ROOTS:
        return _walk(ctx.root(root), rest)

    # Bare key into answers. Answer names may themselves contain dots,
    # so an exact key match wins over walking.
    answers = ctx.answers or {}
    if path in answers:
        return answers[path]
    return _walk(answers, [root, *rest])


def field_reference(path: str) -> Optional[str]:
    """
    Return the answers key a rule path points at, or None.

    Paths rooted at guardian or participant refer to data collected
    outside the dynamic form and are not field references.
    """
    if not path or not isinstance(path, str):
        return None
    root, *rest = path.strip().split(".")
    if root in (GUARDIAN_ROOT, PARTICIPANT_ROOT):
        return None
    if root == ANSWERS_ROOT:
        return rest[0] if rest and rest[0] else None
    return root or None
