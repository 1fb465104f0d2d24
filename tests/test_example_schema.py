"""
Tests for the example registration schema.
"""

import pytest
from formlogic.examples import build_example_registration_schema
from formlogic.model import FieldType
from formlogic.normalizer import normalize_schema


@pytest.fixture
def schema():
    return build_example_registration_schema()


def test_steps(schema):
    assert [s.key for s in schema.steps] == ["guardian", "participant", "transport", "consent"]
    assert [s.per_participant for s in schema.steps] == [False, True, False, False]


def test_field_names_unique(schema):
    names = schema.field_names()
    assert len(names) == len(set(names))


def test_already_normalized(schema):
    assert normalize_schema(schema) == schema


def test_spans_within_step(schema):
    for step in schema.steps:
        for f in step.fields:
            assert 1 <= f.column_span <= step.layout_columns


def test_every_rule_references_something_real(schema):
    names = set(schema.field_names())
    for _, step, f in schema.iter_fields():
        for group in (step.conditional_logic, f.conditional_logic):
            for rule in group.rules if group else ():
                root = rule.field.split(".")[0]
                if root in ("participant", "guardian"):
                    continue
                assert rule.field.split(".")[-1] in names


@pytest.mark.parametrize("columns", [1, 3])
def test_columns_argument(columns):
    schema = build_example_registration_schema(columns=columns)
    assert schema.layout_columns == columns
    assert schema.steps[1].layout_columns == columns
    assert normalize_schema(schema) == schema


def test_types(schema):
    assert schema.get_field_by_name("contact-phone").type is FieldType.TEL
    assert schema.get_field_by_name("tshirt-size").type is FieldType.SELECT
    assert schema.get_field_by_name("consent").type is FieldType.CHECKBOX
