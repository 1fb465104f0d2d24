"""
Canonical schema normalization.

This is the one place where an authored schema is cleaned before it is
persisted, and where loaded data is brought back into shape:

    - slugify            label -> field name
    - clamp_column_count form/step grid width, 1..4
    - clamp_column_span  field width, 1..step columns
    - clean_conditional_logic
                         drop malformed rules, collapse empty groups to None
    - normalize_schema   apply all of the above to a FormSchema

The schema is normalized immediately before serialization and is never
auto-mutated otherwise. Every function returns new objects.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import replace
from typing import Any, AbstractSet, Iterable, Mapping, Optional, Union

from formlogic.conditions import (
    FIELD_OPERATORS,
    STEP_OPERATORS,
    ConditionGroup,
    ConditionMode,
    ConditionOperator,
    ConditionRule,
    operator_requires_value,
    parse_operator,
)
from formlogic.evaluator import stringify
from formlogic.model import MAX_LAYOUT_COLUMNS, ORDER_BUCKET_SIZE, FormField, FormSchema, FormStep

logger = logging.getLogger(__name__)

GENERATED_NAME_PREFIX = "field"

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACE_RE = re.compile(r"\s+")
_SLUG_DASH_RE = re.compile(r"-+")
_GENERATED_NAME_RE = re.compile(rf"^{GENERATED_NAME_PREFIX}-\d+$")

LogicInput = Union[ConditionGroup, Mapping[str, Any], None]


def slugify(value: str) -> str:
    """
    Convert a label to a field name.

    "First Name!" -> "first-name"
    """
    text = (value or "").lower().strip()
    text = _SLUG_STRIP_RE.sub("", text)
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text)


def _as_number(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def clamp_column_count(value: Any) -> int:
    """Clamp a grid width to 1..4. Missing or non-positive input gives 1."""
    numeric = _as_number(value)
    if not math.isfinite(numeric) or numeric <= 0:
        return 1
    return min(MAX_LAYOUT_COLUMNS, max(1, math.floor(numeric)))


def clamp_column_span(value: Any, columns: int) -> int:
    """Clamp a field span to 1..columns. Missing or non-positive input spans every column."""
    numeric = _as_number(value)
    if not math.isfinite(numeric) or numeric <= 0:
        return max(1, columns)
    return min(columns, max(1, math.floor(numeric)))


# ---------------------------------------------------------------------------
# Field names
# ---------------------------------------------------------------------------

def placeholder_name(number: int) -> str:
    return f"{GENERATED_NAME_PREFIX}-{number}"


def is_auto_name(name: Optional[str], label: Optional[str]) -> bool:
    """
    True when a field name was derived rather than typed by an author.

    A name is derived when it is blank, is a generated placeholder, or is
    (a de-duplicated form of) the slug of the field's label.
    """
    if not name or not name.strip():
        return True
    if _GENERATED_NAME_RE.match(name):
        return True
    slug = slugify(label or "")
    if not slug:
        return False
    return name == slug or re.fullmatch(rf"{re.escape(slug)}-\d+", name) is not None


def unique_name(base: str, taken: Iterable[str]) -> str:
    """Return base, or base-2, base-3, ... whichever is not taken."""
    taken = set(taken)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


# ---------------------------------------------------------------------------
# Conditional logic
# ---------------------------------------------------------------------------

def _rule_value(value: Any) -> str:
    if value is None:
        return ""
    return stringify(value)


def to_conditional_logic(raw: Any) -> Optional[ConditionGroup]:
    """
    Tolerant parse of wire conditional logic into a ConditionGroup.

    Entries that are not objects, lack a field, or carry an unknown
    operator are skipped. Values of value-requiring operators are kept as
    strings (empty when missing) so clean_conditional_logic can decide.
    """
    if isinstance(raw, ConditionGroup):
        return raw
    if not isinstance(raw, Mapping):
        return None
    raw_rules = raw.get("rules")
    if not isinstance(raw_rules, (list, tuple)) or not raw_rules:
        return None

    rules = []
    for entry in raw_rules:
        if not isinstance(entry, Mapping):
            continue
        path = entry.get("field")
        path = path.strip() if isinstance(path, str) else ""
        op = parse_operator(entry.get("op"))
        if not path or op is None:
            continue
        value = _rule_value(entry.get("value")) if operator_requires_value(op) else None
        rules.append(ConditionRule(field=path, op=op, value=value))

    if not rules:
        return None
    mode = ConditionMode.ANY if raw.get("mode") in ("any", ConditionMode.ANY) else ConditionMode.ALL
    return ConditionGroup(mode=mode, rules=tuple(rules))


def clean_conditional_logic(
    logic: LogicInput,
    allowed: AbstractSet[ConditionOperator] = FIELD_OPERATORS,
) -> Optional[ConditionGroup]:
    """
    Drop invalid rules and collapse an empty result to None.

    A rule is dropped when its field path is blank, its operator is not in
    `allowed`, or its operator needs a value and the value is empty.
    The result is never an empty group.
    """
    if logic is None:
        return None
    if not isinstance(logic, ConditionGroup):
        logic = to_conditional_logic(logic)
        if logic is None:
            return None

    cleaned = []
    for rule in logic.rules:
        path = rule.field.strip() if isinstance(rule.field, str) else ""
        op = parse_operator(rule.op)
        if not path or op is None or op not in allowed:
            logger.debug("Dropping rule %r: blank field or disallowed operator", rule)
            continue
        if operator_requires_value(op):
            value = _rule_value(rule.value)
            if value == "":
                logger.debug("Dropping rule %r: operator %s needs a value", rule, op.value)
                continue
        else:
            value = None
        cleaned.append(ConditionRule(field=path, op=op, value=value))

    if not cleaned:
        return None
    mode = ConditionMode.ANY if logic.mode is ConditionMode.ANY else ConditionMode.ALL
    return ConditionGroup(mode=mode, rules=tuple(cleaned))


# ---------------------------------------------------------------------------
# Whole schema
# ---------------------------------------------------------------------------

def normalize_field(field: FormField, columns: int, fallback_number: int) -> FormField:
    name = (field.name or "").strip()
    if not name:
        name = slugify(field.label) or placeholder_name(fallback_number)
    return replace(
        field,
        id=field.id or name,
        name=name,
        options=[o for o in field.options if o],
        allowed_file_types=list(field.allowed_file_types),
        column_span=clamp_column_span(field.column_span, columns),
        conditional_logic=clean_conditional_logic(field.conditional_logic, FIELD_OPERATORS),
    )


def normalize_step(step: FormStep, index: int) -> FormStep:
    key = step.key or step.id or f"step-{index + 1}"
    columns = clamp_column_count(step.layout_columns)
    fields = [
        normalize_field(f, columns, index * ORDER_BUCKET_SIZE + f_index + 1)
        for f_index, f in enumerate(step.fields)
    ]
    return replace(
        step,
        id=step.id or key,
        key=key,
        title=step.title or f"Step {index + 1}",
        fields=fields,
        layout_columns=columns,
        conditional_logic=clean_conditional_logic(step.conditional_logic, STEP_OPERATORS),
    )


def normalize_schema(schema: FormSchema) -> FormSchema:
    """
    Return a cleaned copy of a schema, ready for serialization.

    Clamps every grid width and span, fills blank names and keys, and
    cleans every conditional group (step groups lose numeric operators).
    Duplicate names are left alone; validation reports them.
    """
    steps = [normalize_step(step, index) for index, step in enumerate(schema.steps)]
    return replace(
        schema,
        basic_info=replace(schema.basic_info),
        steps=steps,
        layout_columns=clamp_column_count(schema.layout_columns),
    )
