"""
Authoring operations on a FormSchema.

Every operation takes a schema and returns a new one; the input is never
modified. Steps and fields are addressed by position, as the builder UI
addresses them.

Invariants kept by these operations:
    - field names stay unique across the schema
    - a name derived from the label follows the label when it changes;
      a name typed by the author does not
    - changing a step's layout_columns re-clamps every field span in it
    - removing a field does NOT touch rules that reference it
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any, Optional

from formlogic.conditions import ConditionGroup
from formlogic.errors import SchemaEditError
from formlogic.model import BasicInfo, FieldType, FormField, FormSchema, FormStep
from formlogic.normalizer import (
    clamp_column_count,
    clamp_column_span,
    is_auto_name,
    placeholder_name,
    slugify,
    unique_name,
)

logger = logging.getLogger(__name__)

STEP_ATTRIBUTES = {"key", "title", "description", "per_participant", "layout_columns", "conditional_logic"}
FIELD_ATTRIBUTES = {
    "name", "label", "type", "required", "help_text", "options", "max_length",
    "min_value", "max_value", "allowed_file_types", "max_file_size",
    "column_span", "conditional_logic",
}


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def _check_step(schema: FormSchema, step_index: int) -> FormStep:
    if not 0 <= step_index < len(schema.steps):
        raise SchemaEditError(f"No step at index {step_index}")
    return schema.steps[step_index]


def _check_field(step: FormStep, field_index: int) -> FormField:
    if not 0 <= field_index < len(step.fields):
        raise SchemaEditError(f"No field at index {field_index} in step '{step.key}'")
    return step.fields[field_index]


def _check_attributes(changes: dict, allowed: set, kind: str) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise SchemaEditError(f"Unknown {kind} attribute(s): {', '.join(sorted(unknown))}")


def _replace_step(schema: FormSchema, step_index: int, step: FormStep) -> FormSchema:
    steps = list(schema.steps)
    steps[step_index] = step
    return replace(schema, steps=steps)


def _taken_names(schema: FormSchema, exclude: Optional[FormField] = None) -> set:
    return {f.name for f in schema.all_fields() if f is not exclude}


def _derived_name(label: str, schema: FormSchema, exclude: Optional[FormField] = None) -> str:
    taken = _taken_names(schema, exclude)
    base = slugify(label) or placeholder_name(len(schema.all_fields()) + 1)
    return unique_name(base, taken)


# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------

def update_basic_info(schema: FormSchema, **changes: Any) -> FormSchema:
    _check_attributes(changes, {"name", "description", "program_id"}, "form")
    return replace(schema, basic_info=replace(schema.basic_info or BasicInfo(), **changes))


def set_layout_columns(schema: FormSchema, columns: Any) -> FormSchema:
    """Change the form grid width and re-clamp every step and span."""
    form_columns = clamp_column_count(columns)
    steps = []
    for step in schema.steps:
        step_columns = clamp_column_count(step.layout_columns or form_columns)
        steps.append(replace(
            step,
            layout_columns=step_columns,
            fields=[replace(f, column_span=clamp_column_span(f.column_span, step_columns)) for f in step.fields],
        ))
    return replace(schema, layout_columns=form_columns, steps=steps)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def add_step(
    schema: FormSchema,
    title: Optional[str] = None,
    *,
    description: str = "",
    per_participant: bool = True,
    layout_columns: Optional[int] = None,
    conditional_logic: Optional[ConditionGroup] = None,
    index: Optional[int] = None,
) -> FormSchema:
    """Append a new empty step (or insert it at index)."""
    step_id = _new_id("step")
    position = len(schema.steps) if index is None else max(0, min(index, len(schema.steps)))
    step = FormStep(
        id=step_id,
        key=step_id,
        title=title or f"Step {len(schema.steps) + 1}",
        description=description,
        fields=[],
        per_participant=per_participant,
        layout_columns=clamp_column_count(layout_columns or schema.layout_columns),
        conditional_logic=conditional_logic,
    )
    steps = list(schema.steps)
    steps.insert(position, step)
    return replace(schema, steps=steps)


def update_step(schema: FormSchema, step_index: int, **changes: Any) -> FormSchema:
    """
    Change attributes of a step.

    A layout_columns change is clamped to 1..4 and cascades to every field
    span in the step.
    """
    step = _check_step(schema, step_index)
    _check_attributes(changes, STEP_ATTRIBUTES, "step")

    if "layout_columns" in changes:
        columns = clamp_column_count(changes["layout_columns"])
        changes["layout_columns"] = columns
        changes["fields"] = [
            replace(f, column_span=clamp_column_span(f.column_span, columns)) for f in step.fields
        ]
    return _replace_step(schema, step_index, replace(step, **changes))


def remove_step(schema: FormSchema, step_index: int) -> FormSchema:
    step = _check_step(schema, step_index)
    if step.fields:
        logger.debug(
            "Removing step %r with fields %s; rules referencing them are kept",
            step.key, [f.name for f in step.fields],
        )
    steps = [s for i, s in enumerate(schema.steps) if i != step_index]
    return replace(schema, steps=steps)


def move_step(schema: FormSchema, from_index: int, to_index: int) -> FormSchema:
    step = _check_step(schema, from_index)
    steps = [s for i, s in enumerate(schema.steps) if i != from_index]
    steps.insert(max(0, min(to_index, len(steps))), step)
    return replace(schema, steps=steps)


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------

def add_field(
    schema: FormSchema,
    step_index: int,
    label: str = "New Field",
    field_type: FieldType = FieldType.TEXT,
    **attributes: Any,
) -> FormSchema:
    """
    Append a field to a step.

    The name is derived from the label (made unique) unless given as
    name=...; the span defaults to the full step width.
    """
    step = _check_step(schema, step_index)
    _check_attributes(attributes, FIELD_ATTRIBUTES - {"label", "type"}, "field")

    name = attributes.pop("name", None)
    if name and name.strip():
        name = unique_name(slugify(name.strip()) or _derived_name(label, schema), _taken_names(schema))
    else:
        name = _derived_name(label, schema)

    span = attributes.pop("column_span", None)
    new_field = FormField(
        id=_new_id("field"),
        name=name,
        label=label,
        type=FieldType(field_type),
        column_span=clamp_column_span(span, step.layout_columns),
        **attributes,
    )
    return _replace_step(schema, step_index, replace(step, fields=list(step.fields) + [new_field]))


def update_field(schema: FormSchema, step_index: int, field_index: int, **changes: Any) -> FormSchema:
    """
    Change attributes of a field.

    - label: if the current name was derived, the name is re-derived
    - name: slugified; a blank name falls back to the label's slug
    - column_span: always clamped to the step width
    Names are kept unique across the schema.
    """
    step = _check_step(schema, step_index)
    current = _check_field(step, field_index)
    _check_attributes(changes, FIELD_ATTRIBUTES, "field")

    if "type" in changes:
        changes["type"] = FieldType(changes["type"])

    updated = replace(current, **changes)

    if "name" in changes:
        typed = (changes["name"] or "").strip()
        base = slugify(typed) if typed else ""
        if base:
            updated.name = unique_name(base, _taken_names(schema, exclude=current))
        else:
            updated.name = _derived_name(updated.label, schema, exclude=current)
    elif "label" in changes and is_auto_name(current.name, current.label):
        updated.name = _derived_name(updated.label, schema, exclude=current)

    updated.column_span = clamp_column_span(updated.column_span, step.layout_columns)

    fields = list(step.fields)
    fields[field_index] = updated
    return _replace_step(schema, step_index, replace(step, fields=fields))


def remove_field(schema: FormSchema, step_index: int, field_index: int) -> FormSchema:
    """
    Remove a field.

    Rules elsewhere that reference the removed field are left as they are;
    they resolve to nothing at fill time and are reported by validation.
    """
    step = _check_step(schema, step_index)
    removed = _check_field(step, field_index)
    logger.debug("Removing field %r from step %r", removed.name, step.key)
    fields = [f for i, f in enumerate(step.fields) if i != field_index]
    return _replace_step(schema, step_index, replace(step, fields=fields))


def move_field(schema: FormSchema, step_index: int, from_index: int, to_index: int) -> FormSchema:
    step = _check_step(schema, step_index)
    moved = _check_field(step, from_index)
    fields = [f for i, f in enumerate(step.fields) if i != from_index]
    fields.insert(max(0, min(to_index, len(fields))), moved)
    return _replace_step(schema, step_index, replace(step, fields=fields))
