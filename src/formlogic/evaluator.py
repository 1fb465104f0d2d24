"""
Rule interpreter.

Turns a ConditionGroup plus an EvaluationContext into a boolean.
Nothing here raises and nothing here mutates its arguments: a rule that
cannot be evaluated is simply not satisfied.

Coercion:
    - equals / not_equals / contains compare string forms
    - >, >=, <, <= compare numeric forms and fail closed when either
      side is not a number
"""

from __future__ import annotations

import math
from typing import Any, Optional

from formlogic.conditions import ConditionGroup, ConditionMode, ConditionOperator, ConditionRule
from formlogic.context import EvaluationContext, resolve


def stringify(value: Any) -> str:
    """String form of an answer value, as shown to and typed by a user."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(v) for v in value)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric form of an operand, NaN when there is none."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        # Only plain decimal literals: no digit separators, no inf or nan spellings.
        if not text or "_" in text:
            return math.nan
        try:
            number = float(text)
        except ValueError:
            return math.nan
        return number if math.isfinite(number) else math.nan
    return math.nan


def _is_empty(value: Any) -> bool:
    return value is None or stringify(value).strip() == ""


def compare(left: Any, op: ConditionOperator, right: Any = None) -> bool:
    """
    Apply an operator to a resolved value and a rule operand.

    Args:
        left: Value resolved from the context (may be None)
        op: ConditionOperator
        right: Rule operand (ignored by is_empty / not_empty)

    Returns:
        True if the comparison holds
    """
    if op is ConditionOperator.IS_EMPTY:
        return _is_empty(left)
    if op is ConditionOperator.NOT_EMPTY:
        return not _is_empty(left)
    if op is ConditionOperator.EQUALS:
        return stringify(left) == stringify(right)
    if op is ConditionOperator.NOT_EQUALS:
        return stringify(left) != stringify(right)
    if op is ConditionOperator.CONTAINS:
        needle = stringify(right)
        if isinstance(left, (list, tuple, set, frozenset)):
            return needle in {stringify(item) for item in left}
        return needle in stringify(left)

    l_num = to_number(left)
    r_num = to_number(right)
    if math.isnan(l_num) or math.isnan(r_num):
        return False
    if op is ConditionOperator.GREATER_THAN:
        return l_num > r_num
    if op is ConditionOperator.GREATER_EQUAL:
        return l_num >= r_num
    if op is ConditionOperator.LESS_THAN:
        return l_num < r_num
    if op is ConditionOperator.LESS_EQUAL:
        return l_num <= r_num
    return False


def evaluate_rule(rule: ConditionRule, ctx: EvaluationContext) -> bool:
    return compare(resolve(rule.field, ctx), rule.op, rule.value)


def evaluate_conditions(group: Optional[ConditionGroup], ctx: EvaluationContext) -> bool:
    """
    Decide whether a condition group is satisfied.

    An absent group or a group without rules is always satisfied.
    """
    if group is None or not group.rules:
        return True
    results = [evaluate_rule(rule, ctx) for rule in group.rules]
    if group.mode is ConditionMode.ANY:
        return any(results)
    return all(results)
