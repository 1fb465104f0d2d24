"""
Condition System for Form Logic

Every visibility condition attached to a step or a field is one flat
group of rules combined under a single all/any mode:

    ConditionGroup(
        mode=ConditionMode.ALL,
        rules=(
            ConditionRule(field="participant.age", op=ConditionOperator.GREATER_THAN, value="12"),
            ConditionRule(field="answers.school", op=ConditionOperator.NOT_EMPTY),
        ),
    )

There is no nesting. A group never contains another group.

ARCHITECTURAL RULE:
    These objects are structure only.
    Resolution lives in formlogic.context, evaluation in formlogic.evaluator,
    and cleaning in formlogic.normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import FrozenSet, Optional, Tuple


class ConditionOperator(Enum):
    """
    Operators a rule may apply to its resolved operand.

    The enum value is the wire spelling, so ConditionOperator("equals")
    and ConditionOperator(">=") both parse straight from persisted JSON.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    IS_EMPTY = "is_empty"
    NOT_EMPTY = "not_empty"
    GREATER_THAN = ">"
    GREATER_EQUAL = ">="
    LESS_THAN = "<"
    LESS_EQUAL = "<="


class ConditionMode(Enum):
    """How rule results are aggregated: ALL is AND, ANY is OR."""

    ALL = "all"
    ANY = "any"


VALUELESS_OPERATORS: FrozenSet[ConditionOperator] = frozenset(
    {ConditionOperator.IS_EMPTY, ConditionOperator.NOT_EMPTY}
)

NUMERIC_OPERATORS: FrozenSet[ConditionOperator] = frozenset(
    {
        ConditionOperator.GREATER_THAN,
        ConditionOperator.GREATER_EQUAL,
        ConditionOperator.LESS_THAN,
        ConditionOperator.LESS_EQUAL,
    }
)

# Field-level logic may use every operator.
FIELD_OPERATORS: FrozenSet[ConditionOperator] = frozenset(ConditionOperator)

# Step-level logic is restricted to the non-numeric operators.
STEP_OPERATORS: FrozenSet[ConditionOperator] = FIELD_OPERATORS - NUMERIC_OPERATORS


def operator_requires_value(op: ConditionOperator) -> bool:
    """Return True when the operator compares against a rule value."""
    return op not in VALUELESS_OPERATORS


def parse_operator(raw: object) -> Optional[ConditionOperator]:
    """
    Parse a wire operator string.

    Returns None for anything outside the closed operator set instead of
    raising, so callers can drop the rule.
    """
    if isinstance(raw, ConditionOperator):
        return raw
    if not isinstance(raw, str):
        return None
    try:
        return ConditionOperator(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class ConditionRule:
    """
    A single comparison of a context value against an operand.

    Properties:
        field:
            Dotted path into the evaluation context.
            Examples: "participant.age", "answers.school_name", "school_name"
            A path whose first segment is not guardian/participant/answers
            is a bare key into answers.

        op:
            ConditionOperator to apply

        value:
            Operand as authored. Ignored by is_empty / not_empty.

    IMPORTANT:
        This object does NOT validate that the referenced field exists.
        A rule pointing at a removed field simply resolves to nothing.
    """

    field: str
    op: ConditionOperator
    value: Optional[str] = None

    @property
    def requires_value(self) -> bool:
        return operator_requires_value(self.op)


@dataclass(frozen=True)
class ConditionGroup:
    """
    A flat set of rules plus an aggregation mode.

    A group with zero rules is always satisfied. The normalizer never
    persists such a group: it becomes None, so "no restriction" and
    "every rule stripped" look the same to every consumer.
    """

    mode: ConditionMode = ConditionMode.ALL
    rules: Tuple[ConditionRule, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return len(self.rules) == 0

    def with_rule(self, rule: ConditionRule) -> "ConditionGroup":
        return replace(self, rules=self.rules + (rule,))

    def without_rule(self, index: int) -> "ConditionGroup":
        return replace(
            self, rules=tuple(r for i, r in enumerate(self.rules) if i != index)
        )

    def with_updated_rule(self, index: int, **changes) -> "ConditionGroup":
        return replace(
            self,
            rules=tuple(
                replace(r, **changes) if i == index else r
                for i, r in enumerate(self.rules)
            ),
        )
