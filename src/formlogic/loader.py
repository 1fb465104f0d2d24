"""
Wire payload -> FormSchema.

Three historical shapes are accepted. Each adapter only translates its
shape into FormSchema objects; all cleaning happens afterwards in
normalize_schema, so there is exactly one normalizer.

    structure   current format: top-level "fields" plus "steps" metadata
                whose "fields" reference top-level fields by field_name
    builder     legacy editor DTO: steps carry full field records and
                camelCase keys (layoutColumns, perParticipant, columnSpan)
    flat        only "fields"; steps are rebuilt from order // 100
"""

from __future__ import annotations

import logging
import math
import warnings
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from formlogic.errors import SchemaLoadError
from formlogic.model import (
    DEFAULT_LAYOUT_COLUMNS,
    ORDER_BUCKET_SIZE,
    BasicInfo,
    FieldType,
    FormField,
    FormSchema,
    FormStep,
)
from formlogic.normalizer import (
    clamp_column_count,
    clamp_column_span,
    normalize_schema,
    placeholder_name,
    slugify,
    to_conditional_logic,
)
from formlogic.payload import from_wire_type

logger = logging.getLogger(__name__)


def _first(source: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return default


def _as_list(source: Mapping[str, Any], key: str) -> List[Any]:
    value = source.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SchemaLoadError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _optional_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def _optional_int(value: Any) -> Optional[int]:
    number = _optional_number(value)
    return None if number is None else int(number)


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v not in (None, "")]


def _program_id(payload: Mapping[str, Any]) -> str:
    program = payload.get("program")
    if isinstance(program, Mapping):
        program = program.get("id")
    return "" if program is None else str(program)


def field_from_payload(raw: Mapping[str, Any], columns: int, fallback: str) -> FormField:
    """
    Build a FormField from a wire field record.

    Unknown field types load as text with a UserWarning.
    """
    label = str(_first(raw, "label", "name", default="Field"))
    raw_type = _first(raw, "field_type", "type", default="text")
    field_type = from_wire_type(raw_type)
    if field_type is None:
        warnings.warn(f"Unknown field type {raw_type!r} for {label!r}; loading as text", UserWarning)
        field_type = FieldType.TEXT

    name = str(raw.get("field_name") or "").strip() or slugify(label) or fallback
    return FormField(
        id=name,
        name=name,
        label=label,
        type=field_type,
        required=bool(_first(raw, "is_required", "required", default=False)),
        help_text=str(_first(raw, "help_text", "helpText", default="")),
        options=_string_list(raw.get("options")),
        max_length=_optional_int(raw.get("max_length")),
        min_value=_optional_number(raw.get("min_value")),
        max_value=_optional_number(raw.get("max_value")),
        allowed_file_types=_string_list(raw.get("allowed_file_types")),
        max_file_size=_optional_int(raw.get("max_file_size")),
        column_span=clamp_column_span(_first(raw, "column_span", "columnSpan"), columns),
        conditional_logic=to_conditional_logic(_first(raw, "conditional_logic", "conditionalLogic")),
    )


def _step_columns(raw_step: Mapping[str, Any], form_columns: int) -> int:
    layout = raw_step.get("layout")
    columns = layout.get("columns") if isinstance(layout, Mapping) else None
    if columns is None:
        columns = _first(raw_step, "layoutColumns", "layout_columns", default=form_columns)
    return clamp_column_count(columns)


def _step_from_payload(raw_step: Mapping[str, Any], index: int, fields: List[FormField], columns: int) -> FormStep:
    key = str(_first(raw_step, "key", "id", default="") or f"step-{index + 1}")
    return FormStep(
        id=str(_first(raw_step, "id", default=key)),
        key=key,
        title=str(_first(raw_step, "title", default=f"Step {index + 1}")),
        description=str(_first(raw_step, "description", default="")),
        fields=fields,
        per_participant=bool(_first(raw_step, "per_participant", "perParticipant", default=True)),
        layout_columns=columns,
        conditional_logic=to_conditional_logic(_first(raw_step, "conditional_logic", "conditionalLogic")),
    )


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

def _is_structure(payload: Mapping[str, Any]) -> bool:
    steps = payload.get("steps")
    return isinstance(steps, list) and isinstance(payload.get("fields"), list) and bool(steps)


def _is_builder(payload: Mapping[str, Any]) -> bool:
    steps = payload.get("steps")
    return isinstance(steps, list) and bool(steps) and "fields" not in payload


def _is_flat(payload: Mapping[str, Any]) -> bool:
    return not payload.get("steps")


def _load_structure(payload: Mapping[str, Any], form_columns: int) -> List[FormStep]:
    top_fields = _as_list(payload, "fields")
    by_name: Dict[str, Mapping[str, Any]] = {}
    for entry in top_fields:
        if isinstance(entry, Mapping) and entry.get("field_name"):
            by_name.setdefault(str(entry["field_name"]), entry)

    placed = set()
    steps: List[FormStep] = []
    step_keys: List[str] = []
    for s_index, raw_step in enumerate(_as_list(payload, "steps")):
        if not isinstance(raw_step, Mapping):
            continue
        columns = _step_columns(raw_step, form_columns)
        fields = []
        for f_index, ref in enumerate(_as_list(raw_step, "fields")):
            if not isinstance(ref, Mapping):
                continue
            name = str(ref.get("field_name") or "")
            source = dict(by_name.get(name, ref))
            # The step reference carries the authoritative span.
            if ref.get("column_span") is not None:
                source["column_span"] = ref["column_span"]
            fallback = placeholder_name(s_index * ORDER_BUCKET_SIZE + f_index + 1)
            fields.append(field_from_payload(source, columns, fallback))
            placed.add(name)
        step = _step_from_payload(raw_step, len(steps), fields, columns)
        steps.append(step)
        step_keys.append(step.key)

    # Fields missing from every step's references: placed by step_key,
    # else by order bucket.
    for entry in top_fields:
        if not isinstance(entry, Mapping):
            continue
        name = str(entry.get("field_name") or "")
        if name in placed:
            continue
        step_key = entry.get("step_key")
        if step_key in step_keys:
            step = steps[step_keys.index(step_key)]
        else:
            order = _optional_int(entry.get("order"))
            bucket = None if order is None else order // ORDER_BUCKET_SIZE
            if bucket is None or not 0 <= bucket < len(steps):
                warnings.warn(
                    f"Field {name or entry.get('label')!r} belongs to no step; skipping it", UserWarning
                )
                continue
            step = steps[bucket]
        step.fields.append(field_from_payload(entry, step.layout_columns, placeholder_name(len(step.fields) + 1)))
        placed.add(name)
    return steps


def _load_builder(payload: Mapping[str, Any], form_columns: int) -> List[FormStep]:
    steps: List[FormStep] = []
    for s_index, raw_step in enumerate(_as_list(payload, "steps")):
        if not isinstance(raw_step, Mapping):
            continue
        columns = _step_columns(raw_step, form_columns)
        fields = [
            field_from_payload(raw, columns, placeholder_name(s_index * ORDER_BUCKET_SIZE + f_index + 1))
            for f_index, raw in enumerate(_as_list(raw_step, "fields"))
            if isinstance(raw, Mapping)
        ]
        steps.append(_step_from_payload(raw_step, len(steps), fields, columns))
    return steps


def _load_flat(payload: Mapping[str, Any], form_columns: int) -> List[FormStep]:
    buckets: "OrderedDict[int, List[Mapping[str, Any]]]" = OrderedDict()
    for entry in _as_list(payload, "fields"):
        if not isinstance(entry, Mapping):
            continue
        order = _optional_int(entry.get("order")) or 0
        buckets.setdefault(order // ORDER_BUCKET_SIZE, []).append(entry)

    steps: List[FormStep] = []
    for position, bucket in enumerate(sorted(buckets)):
        entries = sorted(buckets[bucket], key=lambda e: _optional_int(e.get("order")) or 0)
        fields = [
            field_from_payload(raw, form_columns, placeholder_name(bucket * ORDER_BUCKET_SIZE + i + 1))
            for i, raw in enumerate(entries)
        ]
        key = f"step-{position + 1}"
        steps.append(FormStep(
            id=key,
            key=key,
            title=f"Step {position + 1}",
            fields=fields,
            layout_columns=form_columns,
        ))
    return steps


Adapter = Tuple[str, Callable[[Mapping[str, Any]], bool], Callable[[Mapping[str, Any], int], List[FormStep]]]

ADAPTERS: List[Adapter] = [
    ("structure", _is_structure, _load_structure),
    ("builder", _is_builder, _load_builder),
    ("flat", _is_flat, _load_flat),
]


def detect_format(payload: Mapping[str, Any]) -> str:
    for name, detect, _ in ADAPTERS:
        if detect(payload):
            return name
    raise SchemaLoadError("Unrecognized form payload shape")


def normalize_payload(payload: Any) -> FormSchema:
    """
    Load a wire payload (any supported shape) into a normalized FormSchema.

    Raises:
        SchemaLoadError: payload is not a mapping or a list member is malformed
    """
    if not isinstance(payload, Mapping):
        raise SchemaLoadError(f"Form payload must be an object, got {type(payload).__name__}")

    layout = payload.get("layout_config") or payload.get("layoutConfig") or {}
    if not isinstance(layout, Mapping):
        layout = {}
    form_columns = clamp_column_count(_first(layout, "columns", default=DEFAULT_LAYOUT_COLUMNS))

    fmt = detect_format(payload)
    loader = next(load for name, _, load in ADAPTERS if name == fmt)
    logger.debug("Loading form payload using %s adapter", fmt)
    if fmt != "structure":
        warnings.warn(f"Loading form from legacy '{fmt}' payload shape", UserWarning)

    steps = loader(payload, form_columns)
    schema = FormSchema(
        basic_info=BasicInfo(
            name=str(_first(payload, "title", "name", default="")),
            description=str(_first(payload, "description", default="")),
            program_id=_program_id(payload),
        ),
        steps=steps,
        layout_columns=form_columns,
    )
    return normalize_schema(schema)
