"""
Tests for schema normalization.

These tests verify:
    - slugify
    - Column count and span clamping
    - Auto-name detection and de-duplication
    - Conditional logic cleaning for fields and steps
    - normalize_schema leaving its input untouched
"""

import pytest
from formlogic.conditions import (
    STEP_OPERATORS,
    ConditionGroup,
    ConditionMode,
    ConditionOperator,
    ConditionRule,
)
from formlogic.model import BasicInfo, FormField, FormSchema, FormStep
from formlogic.normalizer import (
    clamp_column_count,
    clamp_column_span,
    clean_conditional_logic,
    is_auto_name,
    normalize_schema,
    slugify,
    to_conditional_logic,
    unique_name,
)

Op = ConditionOperator


class TestSlugify:
    """Test label -> name conversion."""

    @pytest.mark.parametrize("label, expected", [
        ("First Name", "first-name"),
        ("  Email Address!  ", "email-address"),
        ("T-shirt size", "t-shirt-size"),
        ("Allergies / Medical", "allergies-medical"),
        ("a  -- b", "a-b"),
        ("", ""),
        ("???", ""),
    ])
    def test_slugify(self, label, expected):
        assert slugify(label) == expected

    def test_none(self):
        assert slugify(None) == ""


class TestColumnClamping:
    """Grid widths are 1..4 and spans fit their step."""

    @pytest.mark.parametrize("value, expected", [
        (1, 1), (3, 3), (4, 4), (7, 4), (0, 1), (-2, 1),
        (None, 1), ("3", 3), ("abc", 1), (2.7, 2),
    ])
    def test_clamp_column_count(self, value, expected):
        assert clamp_column_count(value) == expected

    @pytest.mark.parametrize("value, columns, expected", [
        (7, 4, 4),
        (0, 4, 4),
        (-1, 3, 3),
        (None, 2, 2),
        (2, 3, 2),
        (3, 1, 1),
        ("x", 3, 3),
    ])
    def test_clamp_column_span(self, value, columns, expected):
        assert clamp_column_span(value, columns) == expected

    @pytest.mark.parametrize("columns", [1, 2, 3, 4])
    @pytest.mark.parametrize("value", [-5, 0, 1, 2, 3, 4, 9, None])
    def test_span_always_in_range(self, value, columns):
        assert 1 <= clamp_column_span(value, columns) <= columns


class TestNames:
    """Auto-name detection and uniqueness."""

    def test_auto_names(self):
        assert is_auto_name("", "Anything")
        assert is_auto_name("field-3", "Anything")
        assert is_auto_name("first-name", "First Name")
        assert is_auto_name("first-name-2", "First Name")

    def test_typed_names(self):
        assert not is_auto_name("given_name", "First Name")
        assert not is_auto_name("custom", "")

    def test_unique_name(self):
        assert unique_name("email", []) == "email"
        assert unique_name("email", ["email"]) == "email-2"
        assert unique_name("email", ["email", "email-2"]) == "email-3"


class TestCleanConditionalLogic:
    """Malformed rules are dropped and empty groups collapse to None."""

    def test_none(self):
        assert clean_conditional_logic(None) is None

    def test_empty_group_collapses(self):
        assert clean_conditional_logic(ConditionGroup()) is None

    def test_blank_field_dropped(self):
        group = ConditionGroup(rules=(
            ConditionRule(field="  ", op=Op.NOT_EMPTY),
            ConditionRule(field="a", op=Op.NOT_EMPTY),
        ))
        cleaned = clean_conditional_logic(group)
        assert [r.field for r in cleaned.rules] == ["a"]

    def test_missing_value_dropped(self):
        group = ConditionGroup(rules=(
            ConditionRule(field="a", op=Op.EQUALS, value=""),
            ConditionRule(field="b", op=Op.EQUALS),
        ))
        assert clean_conditional_logic(group) is None

    def test_valueless_operator_loses_value(self):
        group = ConditionGroup(rules=(ConditionRule(field="a", op=Op.IS_EMPTY, value="ignored"),))
        cleaned = clean_conditional_logic(group)
        assert cleaned.rules[0].value is None

    def test_fields_trimmed_and_mode_kept(self):
        group = ConditionGroup(ConditionMode.ANY, (ConditionRule(field=" a ", op=Op.EQUALS, value="1"),))
        cleaned = clean_conditional_logic(group)
        assert cleaned.mode is ConditionMode.ANY
        assert cleaned.rules[0].field == "a"

    def test_step_scope_drops_numeric(self):
        group = ConditionGroup(rules=(
            ConditionRule(field="participant.age", op=Op.GREATER_THAN, value="12"),
            ConditionRule(field="answers.x", op=Op.EQUALS, value="y"),
        ))
        cleaned = clean_conditional_logic(group, STEP_OPERATORS)
        assert [r.op for r in cleaned.rules] == [Op.EQUALS]

    def test_only_numeric_step_rules_collapse(self):
        group = ConditionGroup(rules=(ConditionRule(field="participant.age", op=Op.LESS_THAN, value="5"),))
        assert clean_conditional_logic(group, STEP_OPERATORS) is None

    def test_accepts_wire_mapping(self):
        cleaned = clean_conditional_logic({
            "mode": "any",
            "rules": [
                {"field": "a", "op": "equals", "value": 3},
                {"field": "b", "op": "bogus", "value": "x"},
                "not a rule",
                {"op": "equals", "value": "x"},
            ],
        })
        assert cleaned.mode is ConditionMode.ANY
        assert cleaned.rules == (ConditionRule(field="a", op=Op.EQUALS, value="3"),)

    def test_result_never_empty(self):
        for group in [ConditionGroup(), {"rules": []}, {"rules": [{"field": "", "op": "equals"}]}]:
            cleaned = clean_conditional_logic(group)
            assert cleaned is None or cleaned.rules


class TestToConditionalLogic:
    """Tolerant parse of wire logic."""

    def test_not_a_mapping(self):
        assert to_conditional_logic("x") is None
        assert to_conditional_logic(None) is None

    def test_unknown_mode_is_all(self):
        group = to_conditional_logic({"mode": "some", "rules": [{"field": "a", "op": "not_empty"}]})
        assert group.mode is ConditionMode.ALL


class TestNormalizeSchema:
    """normalize_schema applies every rule above to a whole schema."""

    @pytest.fixture
    def messy(self):
        numeric_step_logic = ConditionGroup(rules=(
            ConditionRule(field="participant.age", op=Op.GREATER_EQUAL, value="5"),
        ))
        return FormSchema(
            basic_info=BasicInfo(name="Camp", program_id="1"),
            layout_columns=9,
            steps=[
                FormStep(id="", key="", title="", layout_columns=2,
                         conditional_logic=numeric_step_logic,
                         fields=[
                             FormField(id="", name="", label="Full Name", column_span=5),
                             FormField(id="x", name=" kept ", label="Other", column_span=0,
                                       conditional_logic=ConditionGroup()),
                             FormField(id="y", name="", label="!!!", column_span=1),
                         ]),
            ],
        )

    def test_layout_clamped(self, messy):
        schema = normalize_schema(messy)
        assert schema.layout_columns == 4
        assert schema.steps[0].layout_columns == 2
        assert [f.column_span for f in schema.steps[0].fields] == [2, 2, 1]

    def test_names_and_keys_filled(self, messy):
        schema = normalize_schema(messy)
        step = schema.steps[0]
        assert step.key == "step-1"
        assert step.title == "Step 1"
        assert [f.name for f in step.fields] == ["full-name", "kept", "field-3"]
        assert step.fields[0].id == "full-name"

    def test_logic_cleaned(self, messy):
        schema = normalize_schema(messy)
        assert schema.steps[0].conditional_logic is None
        assert schema.steps[0].fields[1].conditional_logic is None

    def test_input_untouched(self, messy):
        normalize_schema(messy)
        assert messy.layout_columns == 9
        assert messy.steps[0].key == ""
        assert messy.steps[0].fields[0].column_span == 5

    def test_idempotent(self, messy):
        once = normalize_schema(messy)
        assert normalize_schema(once) == once
