"""
Tests for serialization and deserialization of form schemas.

These tests ensure lossless JSON/YAML round-trip through the wire payload
using the explicit functions in `formlogic.serialization`.
"""

import pytest
from formlogic.conditions import ConditionGroup, ConditionMode, ConditionOperator, ConditionRule
from formlogic.errors import SchemaLoadError
from formlogic.examples import build_example_registration_schema
from formlogic.model import BasicInfo, FieldType, FormField, FormSchema, FormStep
from formlogic.serialization import (
    payload_from_json,
    payload_from_yaml,
    schema_from_dict,
    schema_from_json,
    schema_from_yaml,
    schema_to_dict,
    schema_to_json,
    schema_to_yaml,
)


def build_sample_schema() -> FormSchema:
    uploads = FormField(
        id="doc", name="medical-form", label="Medical form", type=FieldType.FILE,
        allowed_file_types=["pdf", "png"], max_file_size=2048, column_span=3,
    )
    age_rule = ConditionGroup(
        mode=ConditionMode.ANY,
        rules=(
            ConditionRule(field="participant.age", op=ConditionOperator.LESS_THAN, value="8"),
            ConditionRule(field="answers.has-condition", op=ConditionOperator.EQUALS, value="yes"),
        ),
    )
    return FormSchema(
        basic_info=BasicInfo(name="Round trip", description="All the things", program_id="31"),
        layout_columns=3,
        steps=[
            FormStep(id="a", key="about", title="About", per_participant=False, layout_columns=3, fields=[
                FormField(id="email", name="email", label="Email", type=FieldType.EMAIL,
                          required=True, help_text="We reply here", max_length=80, column_span=2),
            ]),
            FormStep(id="b", key="health", title="Health", per_participant=True, layout_columns=3, fields=[
                FormField(id="cond", name="has-condition", label="Has condition", type=FieldType.RADIO,
                          options=["yes", "no"], column_span=1),
                FormField(id="notes", name="notes", label="Notes", type=FieldType.TEXTAREA,
                          conditional_logic=age_rule, column_span=3),
                uploads,
            ]),
        ],
    )


def test_json_roundtrip():
    schema = build_sample_schema()
    before = schema_to_dict(schema)
    restored = schema_from_json(schema_to_json(schema))
    after = schema_to_dict(restored)
    assert before == after


def test_yaml_roundtrip():
    schema = build_sample_schema()
    before = schema_to_dict(schema)
    restored = schema_from_yaml(schema_to_yaml(schema))
    after = schema_to_dict(restored)
    assert before == after


def test_example_schema_roundtrip():
    schema = build_example_registration_schema()
    assert schema_to_dict(schema_from_json(schema_to_json(schema))) == schema_to_dict(schema)


def test_roundtrip_preserves_semantics():
    """Per-participant flags, spans and rule references survive a reload."""
    restored = schema_from_json(schema_to_json(build_sample_schema()))

    assert [s.per_participant for s in restored.steps] == [False, True]
    assert [f.name for f in restored.steps[1].fields] == ["has-condition", "notes", "medical-form"]
    assert restored.get_field_by_name("email").column_span == 2
    assert restored.get_field_by_name("email").help_text == "We reply here"

    logic = restored.get_field_by_name("notes").conditional_logic
    assert logic.mode is ConditionMode.ANY
    assert [r.field for r in logic.rules] == ["participant.age", "answers.has-condition"]
    assert restored.get_field_by_name(logic.rules[1].field.split(".", 1)[1]) is not None

    upload = restored.get_field_by_name("medical-form")
    assert upload.type is FieldType.FILE
    assert upload.allowed_file_types == ["pdf", "png"]
    assert upload.max_file_size == 2048


def test_json_is_stable():
    schema = build_sample_schema()
    assert schema_to_json(schema) == schema_to_json(schema_from_json(schema_to_json(schema)))


def test_from_dict_rejects_non_object():
    with pytest.raises(SchemaLoadError):
        schema_from_dict(["not", "a", "form"])


def test_invalid_json():
    with pytest.raises(SchemaLoadError):
        payload_from_json("{not json")


def test_invalid_yaml():
    with pytest.raises(SchemaLoadError):
        payload_from_yaml("steps: [unclosed")
