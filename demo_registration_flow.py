#!/usr/bin/env python3
"""
Registration Flow Demo: Schema → Analysis → Payload → Fill-time session

Shows the full workflow:
1. Build the example registration schema
2. Analyze and validate it
3. Serialize to the wire payload and load it back
4. Fill it in for two participants, watching visibility change
"""

import logging

from formlogic.analyzer import analyze_schema
from formlogic.answers import AnswerState
from formlogic.examples import build_example_registration_schema
from formlogic.serialization import schema_from_json, schema_to_json
from formlogic.session import FormSession
from formlogic.validation import validate_schema
from formlogic.visibility import participant_field_visibility


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print("=" * 80)
    print("REGISTRATION FLOW DEMO: Schema → Analysis → Payload → Session")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Build schema
    # =========================================================================
    print("\n1. BUILDING SCHEMA...")
    schema = build_example_registration_schema()
    print(f"   ✓ Form: {schema.basic_info.name}")
    print(f"   ✓ Steps: {len(schema.steps)}")
    print(f"   ✓ Fields: {len(schema.all_fields())}")

    # =========================================================================
    # STEP 2: Analyze and validate
    # =========================================================================
    print("\n2. ANALYZING SCHEMA...")
    report = analyze_schema(schema)
    print(f"   ✓ Conditional steps: {report.conditional_steps}")
    print(f"   ✓ Conditional fields: {report.conditional_fields}")
    print(f"   ✓ Referenced fields: {sorted(report.reference_usage)}")
    print(f"   ✓ Cycles detected: {report.has_cycles}")

    result = validate_schema(schema)
    print(f"   ✓ Valid: {result.valid}")
    for warning in result.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 3: Payload round trip
    # =========================================================================
    print("\n3. SERIALIZING...")
    text = schema_to_json(schema)
    print(f"   ✓ JSON payload: {len(text)} characters")
    loaded = schema_from_json(text)
    print(f"   ✓ Reloaded steps: {[s.key for s in loaded.steps]}")

    # =========================================================================
    # STEP 4: Fill in
    # =========================================================================
    print("\n4. FILLING IN...")
    state = AnswerState(
        guardian={"name": "Ada"},
        participants=({"first_name": "Sam", "age": 10}, {"first_name": "Kim", "age": 14}),
    )
    session = FormSession(loaded, state)
    print(f"   Visible steps: {session.visible_steps()}")

    session.set_answer("needs-transport", "yes")
    print(f"   After needs-transport=yes: {session.visible_steps()}")

    session.next()
    step = session.current_step
    print(f"   Current step: {step.title}")
    for index, names in participant_field_visibility(step, session.state).items():
        print(f"      participant {index}: {names}")

    session.set_answer("has-allergies", "yes", participant_index=0)
    print(f"   After participant 0 reports allergies: "
          f"{[f.name for f in session.current_fields(0)]}")

    print("\n5. OUTSTANDING ANSWERS:")
    print("-" * 80)
    for issue in session.issues():
        who = "global" if issue.participant_index is None else f"participant {issue.participant_index}"
        print(f"   {issue.field_name:<16} {issue.code:<14} ({who})")

    print("\n" + "=" * 80)
    print("DEMO COMPLETE!")
    print("=" * 80)


if __name__ == "__main__":
    main()
