"""
Validation for save time and fill time.

Save time:
    validate_schema   structural problems that block persisting a schema
    validate_payload  the same checks on an already built wire payload

Fill time:
    validate_answers  required / length / range / option checks on the
                      fields a user can currently see

Nothing here raises. Problems are returned to the caller to display.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from formlogic.analyzer import analyze_schema
from formlogic.answers import AnswerState
from formlogic.evaluator import stringify, to_number
from formlogic.model import FieldType, FormField, FormSchema
from formlogic.normalizer import normalize_schema
from formlogic.payload import program_id_to_payload
from formlogic.visibility import is_step_visible, step_context, visible_fields, visible_participants

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Blocking errors and non-blocking warnings."""

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_schema(schema: FormSchema) -> ValidationResult:
    """
    Check a schema before it is saved.

    Errors are checked on the normalized schema, exactly as it will be
    serialized. Warnings come from analyze_schema on the schema as
    authored (dangling and forward references, step operator misuse,
    dependency cycles), before normalization drops anything.
    """
    authored = schema
    schema = normalize_schema(schema)
    result = ValidationResult()
    basic = schema.basic_info

    if not basic.name or not basic.name.strip():
        result.errors.append("Form title is required")
    if program_id_to_payload(basic.program_id) is None:
        result.errors.append("Valid program ID is required")
    if not schema.steps:
        result.errors.append("At least one step is required")
    if not schema.all_fields():
        result.errors.append("At least one field is required")

    for s_index, step in enumerate(schema.steps):
        if not step.fields:
            result.errors.append(f"Step {s_index + 1} must have at least one field")
        for f_index, f in enumerate(step.fields):
            where = f"Step {s_index + 1}, field {f_index + 1}"
            if not f.label or not f.label.strip():
                result.errors.append(f"{where}: label is required")
            if f.capabilities.has_options and not f.options:
                result.errors.append(f"{where}: '{f.name}' needs at least one option")
            if f.min_value is not None and f.max_value is not None and f.min_value > f.max_value:
                result.errors.append(f"{where}: '{f.name}' has min_value greater than max_value")

    counts = Counter(schema.field_names())
    for name, count in sorted(counts.items()):
        if count > 1:
            result.errors.append(f"Duplicate field name '{name}' used {count} times")

    result.warnings.extend(analyze_schema(authored).warnings)

    if result.errors:
        logger.debug("Schema %r failed validation: %s", basic.name, result.errors)
    return result


def validate_payload(payload: Mapping[str, Any]) -> ValidationResult:
    """Last check on a wire payload before it is handed to persistence."""
    result = ValidationResult()

    title = payload.get("title")
    if not isinstance(title, str) or not title.strip():
        result.errors.append("Form title is required")
    program = payload.get("program")
    if not isinstance(program, int) or isinstance(program, bool):
        result.errors.append("Valid program ID is required")

    fields = payload.get("fields") or []
    steps = payload.get("steps") or []
    if not fields:
        result.errors.append("At least one field is required")
    if not steps:
        result.errors.append("At least one step is required")

    for index, entry in enumerate(fields):
        if not isinstance(entry, Mapping):
            result.errors.append(f"Field {index + 1}: not an object")
            continue
        for key in ("field_name", "label", "field_type"):
            value = entry.get(key)
            if not isinstance(value, str) or not value.strip():
                result.errors.append(f"Field {index + 1}: {key} is required")

    return result


# ---------------------------------------------------------------------------
# Fill time
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnswerIssue:
    """
    One problem with one answer.

    Properties:
        field_name: Name of the field
        code: required | max_length | min_value | max_value | not_a_number | invalid_option
        message: Human-readable explanation
        participant_index: Participant the answer belongs to, None for global steps
    """

    field_name: str
    code: str
    message: str
    participant_index: Optional[int] = None


def _is_blank(value: Any) -> bool:
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return value is None or stringify(value).strip() == ""


def _check_field(f: FormField, value: Any, participant_index: Optional[int]) -> List[AnswerIssue]:
    def issue(code: str, message: str) -> AnswerIssue:
        return AnswerIssue(f.name, code, message, participant_index)

    if _is_blank(value):
        return [issue("required", f"{f.label} is required")] if f.required else []

    caps = f.capabilities
    issues = []
    if caps.has_max_length and f.max_length is not None and len(stringify(value)) > f.max_length:
        issues.append(issue("max_length", f"{f.label} must be at most {f.max_length} characters"))

    if f.type is FieldType.NUMBER:
        number = to_number(value)
        if isinstance(value, bool) or math.isnan(number):
            issues.append(issue("not_a_number", f"{f.label} must be a number"))
        else:
            if f.min_value is not None and number < f.min_value:
                issues.append(issue("min_value", f"{f.label} must be at least {f.min_value}"))
            if f.max_value is not None and number > f.max_value:
                issues.append(issue("max_value", f"{f.label} must be at most {f.max_value}"))

    if caps.has_options and f.options:
        chosen = value if isinstance(value, (list, tuple, set)) else [value]
        unknown = [v for v in chosen if stringify(v) not in f.options]
        if unknown:
            issues.append(issue("invalid_option", f"{f.label} has an invalid choice: {stringify(unknown)}"))
    return issues


def validate_answers(schema: FormSchema, state: AnswerState) -> List[AnswerIssue]:
    """
    Check the answers of every field a user can currently see.

    Hidden steps and hidden fields are skipped. Per-participant steps are
    checked once for every participant the step is shown to.
    """
    issues: List[AnswerIssue] = []
    for step in schema.steps:
        if step.per_participant:
            for index in visible_participants(step, state):
                ctx = step_context(step, state, index)
                for f in visible_fields(step, state, index):
                    issues.extend(_check_field(f, ctx.answers.get(f.name), index))
            continue

        if not is_step_visible(step, state):
            continue
        ctx = state.global_context()
        for f in visible_fields(step, state):
            issues.extend(_check_field(f, ctx.answers.get(f.name), None))
    return issues
