"""
Tests for the visibility cascade and step navigation.

These tests verify:
    - Field visibility in global and per-participant contexts
    - A step with every field hidden being hidden
    - Per-participant steps shown when any participant sees a field
    - Next / previous / revalidate staying in bounds
"""

import pytest
from formlogic.answers import AnswerState
from formlogic.conditions import ConditionGroup, ConditionOperator, ConditionRule
from formlogic.examples import build_example_registration_schema
from formlogic.model import BasicInfo, FormField, FormSchema, FormStep
from formlogic.visibility import (
    find_next_visible_step,
    find_prev_visible_step,
    is_step_visible,
    participant_field_visibility,
    revalidate_step_index,
    visible_fields,
    visible_participants,
    visible_step_indices,
)

Op = ConditionOperator


def when(field, op, value=None):
    return ConditionGroup(rules=(ConditionRule(field=field, op=op, value=value),))


def plain_field(name, logic=None):
    return FormField(id=name, name=name, label=name.title(), conditional_logic=logic)


def step(key, fields, per_participant=False, logic=None):
    return FormStep(id=key, key=key, title=key.title(), fields=fields,
                    per_participant=per_participant, conditional_logic=logic)


@pytest.fixture
def schema():
    return build_example_registration_schema()


@pytest.fixture
def two_children():
    return AnswerState(
        guardian={"name": "Ada"},
        participants=({"first_name": "Sam", "age": 10}, {"first_name": "Kim", "age": 14}),
    )


class TestFieldVisibility:
    """Fields inside a per-participant step differ per participant."""

    def test_school_name_only_for_older_child(self, schema, two_children):
        participant_step = schema.steps[1]
        assert [f.name for f in visible_fields(participant_step, two_children, 0)] == [
            "tshirt-size", "has-allergies",
        ]
        assert [f.name for f in visible_fields(participant_step, two_children, 1)] == [
            "tshirt-size", "school-name", "has-allergies",
        ]

    def test_step_visible_when_any_participant_qualifies(self, schema, two_children):
        assert is_step_visible(schema.steps[1], two_children)
        assert visible_participants(schema.steps[1], two_children) == [0, 1]

    def test_participant_answers_are_separate(self, schema, two_children):
        state = two_children.with_answer("has-allergies", "yes", participant_index=1)
        visibility = participant_field_visibility(schema.steps[1], state)
        assert "allergy-details" not in visibility[0]
        assert "allergy-details" in visibility[1]

    def test_global_answers_visible_to_participants(self, two_children):
        s = step("kids", [plain_field("bus-stop", when("needs-bus", Op.EQUALS, "yes"))], per_participant=True)
        state = two_children.with_answer("needs-bus", "yes")
        assert visible_participants(s, state) == [0, 1]

    def test_non_numeric_age_hides_numeric_field(self, schema):
        state = AnswerState(participants=({"age": "n/a"},))
        names = [f.name for f in visible_fields(schema.steps[1], state, 0)]
        assert "school-name" not in names


class TestStepVisibility:
    """The step level of the cascade."""

    def test_step_hidden_when_every_field_hidden(self):
        s = step("extra", [
            plain_field("a", when("answers.toggle", Op.EQUALS, "on")),
            plain_field("b", when("answers.toggle", Op.NOT_EMPTY)),
        ])
        assert not is_step_visible(s, AnswerState())
        assert is_step_visible(s, AnswerState(answers={"toggle": "on"}))

    def test_step_without_fields_follows_its_logic(self):
        assert is_step_visible(step("empty", []), AnswerState())
        assert not is_step_visible(step("empty", [], logic=when("x", Op.NOT_EMPTY)), AnswerState())

    def test_step_logic(self, schema):
        transport = schema.steps[2]
        assert not is_step_visible(transport, AnswerState())
        assert is_step_visible(transport, AnswerState(answers={"needs-transport": "yes"}))

    def test_per_participant_without_participants_is_hidden(self, schema):
        assert not is_step_visible(schema.steps[1], AnswerState())
        assert visible_participants(schema.steps[1], AnswerState()) == []

    def test_per_participant_needs_logic_and_field_for_same_participant(self):
        """Step logic true for one child and a field visible only for another hides the step."""
        s = step(
            "kids",
            [plain_field("teen-only", when("participant.age", Op.GREATER_THAN, "12"))],
            per_participant=True,
            logic=when("participant.first_name", Op.EQUALS, "Sam"),
        )
        state = AnswerState(participants=({"first_name": "Sam", "age": 10}, {"first_name": "Kim", "age": 14}))
        assert not is_step_visible(s, state)
        assert visible_participants(s, state) == []

    def test_visible_step_indices(self, schema, two_children):
        assert visible_step_indices(schema, two_children) == [0, 1, 3]
        state = two_children.with_answer("needs-transport", "yes")
        assert visible_step_indices(schema, state) == [0, 1, 2, 3]


class TestNavigation:
    """Moving between visible steps."""

    @pytest.fixture
    def nav_schema(self):
        hidden_unless_on = when("answers.toggle", Op.EQUALS, "on")
        return FormSchema(
            basic_info=BasicInfo(name="Nav"),
            steps=[
                step("one", [plain_field("a")]),
                step("two", [plain_field("b", hidden_unless_on)]),
                step("three", [plain_field("c")]),
                step("four", [plain_field("d", hidden_unless_on)]),
            ],
        )

    def test_next_skips_hidden(self, nav_schema):
        assert find_next_visible_step(nav_schema, AnswerState(), 0) == 2

    def test_prev_skips_hidden(self, nav_schema):
        assert find_prev_visible_step(nav_schema, AnswerState(), 2) == 0

    @pytest.mark.parametrize("index", [-1, -3, -10])
    def test_next_from_negative_index_stays_in_bounds(self, nav_schema, index):
        assert find_next_visible_step(nav_schema, AnswerState(), index) == 0

    def test_no_next_returns_same_index(self, nav_schema):
        assert find_next_visible_step(nav_schema, AnswerState(), 2) == 2

    def test_no_prev_returns_same_index(self, nav_schema):
        assert find_prev_visible_step(nav_schema, AnswerState(), 0) == 0

    def test_next_sees_revealed_step(self, nav_schema):
        assert find_next_visible_step(nav_schema, AnswerState(answers={"toggle": "on"}), 0) == 1

    def test_revalidate_keeps_visible(self, nav_schema):
        assert revalidate_step_index(nav_schema, AnswerState(), 2) == 2

    def test_revalidate_moves_forward(self, nav_schema):
        assert revalidate_step_index(nav_schema, AnswerState(), 1) == 2

    def test_revalidate_moves_back_from_last(self, nav_schema):
        assert revalidate_step_index(nav_schema, AnswerState(), 3) == 2

    def test_revalidate_clamps(self, nav_schema):
        assert revalidate_step_index(nav_schema, AnswerState(), 99) == 2
        assert revalidate_step_index(nav_schema, AnswerState(), -3) == 0

    def test_revalidate_nothing_visible(self):
        schema = FormSchema(steps=[step("only", [plain_field("x", when("x", Op.NOT_EMPTY))])])
        assert revalidate_step_index(schema, AnswerState(), 0) == 0

    def test_revalidate_empty_schema(self):
        assert revalidate_step_index(FormSchema(), AnswerState(), 5) == 0

    def test_result_always_visible_or_unchanged(self, nav_schema):
        state = AnswerState()
        for index in range(len(nav_schema.steps)):
            for moved in (find_next_visible_step(nav_schema, state, index),
                          find_prev_visible_step(nav_schema, state, index)):
                assert moved == index or is_step_visible(nav_schema.steps[moved], state)
