"""
Payload builder: FormSchema -> persisted wire format.

The wire format flattens every field of every step into one ordered list
and describes steps separately:

    {
      "program": 12, "title": ..., "description": ...,
      "layout_config": {"columns": 4},
      "steps":  [{"key", "title", "description", "order", "per_participant",
                  "layout": {"columns"}, "conditional_logic",
                  "fields": [{"field_name", "column_span"}]}],
      "fields": [{"field_name", "label", "field_type", "is_required",
                  "help_text", "order", ..., "conditional_logic",
                  "column_span", "step_key"}]
    }

Field order is step_index * 100 + position_in_step + 1, so a consumer that
ignores step metadata can still regroup fields by order // 100.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from formlogic.conditions import ConditionGroup
from formlogic.model import FIELD_CAPABILITIES, ORDER_BUCKET_SIZE, FieldType, FormField, FormSchema
from formlogic.normalizer import clean_conditional_logic, normalize_schema

logger = logging.getLogger(__name__)

# UI names accepted on input alongside wire names.
_WIRE_TO_UI: Dict[str, FieldType] = {caps.wire_type: t for t, caps in FIELD_CAPABILITIES.items()}
_WIRE_TO_UI.update({t.value: t for t in FieldType})


def to_wire_type(field_type: FieldType) -> str:
    """select -> dropdown, tel -> phone, everything else unchanged."""
    return FIELD_CAPABILITIES[field_type].wire_type


def from_wire_type(wire_type: Any) -> Optional[FieldType]:
    """Inverse of to_wire_type. Returns None for an unknown type."""
    if isinstance(wire_type, FieldType):
        return wire_type
    if not isinstance(wire_type, str):
        return None
    return _WIRE_TO_UI.get(wire_type.strip().lower())


def conditional_logic_to_payload(logic: Optional[ConditionGroup]) -> Optional[Dict[str, Any]]:
    cleaned = clean_conditional_logic(logic)
    if cleaned is None:
        return None
    rules = []
    for rule in cleaned.rules:
        entry: Dict[str, Any] = {"field": rule.field, "op": rule.op.value}
        if rule.value is not None:
            entry["value"] = rule.value
        rules.append(entry)
    return {"mode": cleaned.mode.value, "rules": rules}


def program_id_to_payload(program_id: Any) -> Optional[int]:
    """The wire program is an integer id; anything else becomes None."""
    if isinstance(program_id, bool):
        return None
    if isinstance(program_id, int):
        return program_id
    text = str(program_id or "").strip()
    if text.isdigit():
        return int(text)
    return None


def field_to_payload(field: FormField, order: int, step_key: str) -> Dict[str, Any]:
    caps = field.capabilities
    entry: Dict[str, Any] = {
        "field_name": field.name,
        "label": field.label,
        "field_type": caps.wire_type,
        "is_required": bool(field.required),
        "help_text": field.help_text or None,
        "order": order,
    }
    if caps.has_options:
        entry["options"] = list(field.options) or None
    if caps.has_max_length:
        entry["max_length"] = field.max_length
    if caps.has_min_max:
        entry["min_value"] = field.min_value
        entry["max_value"] = field.max_value
    if caps.has_file_options:
        entry["allowed_file_types"] = list(field.allowed_file_types) or None
        entry["max_file_size"] = field.max_file_size
    entry["conditional_logic"] = conditional_logic_to_payload(field.conditional_logic)
    entry["column_span"] = field.column_span
    entry["step_key"] = step_key
    return entry


def build_payload(schema: FormSchema) -> Dict[str, Any]:
    """
    Normalize a schema and serialize it to the wire format.

    Args:
        schema: FormSchema as edited by the authoring surface

    Returns:
        Wire payload dict (JSON-compatible)
    """
    schema = normalize_schema(schema)

    steps: List[Dict[str, Any]] = []
    fields: List[Dict[str, Any]] = []
    for s_index, step in enumerate(schema.steps):
        step_fields = []
        for f_index, f in enumerate(step.fields):
            order = s_index * ORDER_BUCKET_SIZE + f_index + 1
            entry = field_to_payload(f, order, step.key)
            fields.append(entry)
            step_fields.append({"field_name": entry["field_name"], "column_span": entry["column_span"]})

        steps.append({
            "key": step.key,
            "title": step.title,
            "description": step.description,
            "order": s_index + 1,
            "per_participant": bool(step.per_participant),
            "layout": {"columns": step.layout_columns},
            # Step logic was already restricted to step operators by normalize_schema.
            "conditional_logic": conditional_logic_to_payload(step.conditional_logic),
            "fields": step_fields,
        })

        if len(step.fields) >= ORDER_BUCKET_SIZE:
            logger.warning(
                "Step %r has %d fields; orders overflow into the next step's bucket",
                step.key, len(step.fields),
            )

    logger.debug("Built payload with %d steps and %d fields", len(steps), len(fields))
    return {
        "program": program_id_to_payload(schema.basic_info.program_id),
        "title": schema.basic_info.name,
        "description": schema.basic_info.description,
        "layout_config": {"columns": schema.layout_columns},
        "steps": steps,
        "fields": fields,
    }
