"""
Example registration form used by the demo script and the tests.

A guardian registers one or more children for a program:
    Step 1  Guardian details        (global)
    Step 2  Participant details     (per participant)
              - school-name shown only to participants older than 12
              - allergy-details shown only when has-allergies == yes
    Step 3  Transport               (global, only when needs-transport == yes)
    Step 4  Consent                 (global)
"""
from formlogic.conditions import ConditionGroup, ConditionMode, ConditionOperator, ConditionRule
from formlogic.model import BasicInfo, FieldType, FormField, FormSchema, FormStep


def build_example_registration_schema(program_id: str = "7", columns: int = 2) -> FormSchema:
    schema = FormSchema(
        basic_info=BasicInfo(
            name="Summer Camp Registration",
            description="Register your children for this year's camp",
            program_id=program_id,
        ),
        layout_columns=columns,
    )

    guardian_step = FormStep(
        id="guardian",
        key="guardian",
        title="Guardian details",
        per_participant=False,
        layout_columns=columns,
        fields=[
            FormField(id="f-phone", name="contact-phone", label="Contact phone",
                      type=FieldType.TEL, required=True, max_length=15, column_span=1),
            FormField(id="f-transport", name="needs-transport", label="Needs transport",
                      type=FieldType.RADIO, options=["yes", "no"], required=True, column_span=1),
        ],
    )

    # Older participants are asked for their school.
    older_than_twelve = ConditionGroup(
        mode=ConditionMode.ALL,
        rules=(ConditionRule(field="participant.age", op=ConditionOperator.GREATER_THAN, value="12"),),
    )
    has_allergies = ConditionGroup(
        mode=ConditionMode.ALL,
        rules=(ConditionRule(field="answers.has-allergies", op=ConditionOperator.EQUALS, value="yes"),),
    )
    participant_step = FormStep(
        id="participant",
        key="participant",
        title="Participant details",
        per_participant=True,
        layout_columns=columns,
        fields=[
            FormField(id="f-size", name="tshirt-size", label="T-shirt size",
                      type=FieldType.SELECT, options=["S", "M", "L"], required=True, column_span=1),
            FormField(id="f-school", name="school-name", label="School name",
                      required=True, column_span=columns, conditional_logic=older_than_twelve),
            FormField(id="f-allergies", name="has-allergies", label="Has allergies",
                      type=FieldType.RADIO, options=["yes", "no"], column_span=1),
            FormField(id="f-allergy-details", name="allergy-details", label="Allergy details",
                      type=FieldType.TEXTAREA, required=True, column_span=columns,
                      conditional_logic=has_allergies),
        ],
    )

    transport_step = FormStep(
        id="transport",
        key="transport",
        title="Transport",
        per_participant=False,
        layout_columns=columns,
        conditional_logic=ConditionGroup(
            mode=ConditionMode.ALL,
            rules=(ConditionRule(field="needs-transport", op=ConditionOperator.EQUALS, value="yes"),),
        ),
        fields=[
            FormField(id="f-pickup", name="pickup-point", label="Pickup point",
                      type=FieldType.SELECT, options=["North gate", "Station"], required=True,
                      column_span=columns),
            FormField(id="f-seats", name="seats", label="Seats needed",
                      type=FieldType.NUMBER, min_value=1, max_value=6, column_span=1),
        ],
    )

    consent_step = FormStep(
        id="consent",
        key="consent",
        title="Consent",
        per_participant=False,
        layout_columns=1,
        fields=[
            FormField(id="f-consent", name="consent", label="I agree to the camp rules",
                      type=FieldType.CHECKBOX, options=["agree"], required=True, column_span=1),
        ],
    )

    schema.steps = [guardian_step, participant_step, transport_step, consent_step]
    return schema
