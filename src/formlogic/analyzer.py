"""
Schema Analyzer: read-only diagnostics for authored forms.

This module inventories the conditional logic of a FormSchema:
    - Which fields are referenced by rules, and how often
    - Dangling references (rules pointing at fields that no longer exist)
    - Forward references (rules depending on answers given later)
    - Dependency cycles between field conditions
    - Step-level rules using operators reserved for fields

IMPORTANT: This module does NOT modify the schema.
Removing a field leaves rules that reference it in place; they resolve to
nothing at fill time. This report is where they become visible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set
from collections import defaultdict

from formlogic.conditions import STEP_OPERATORS, ConditionGroup
from formlogic.context import field_reference
from formlogic.model import FormSchema


def _group_references(group: Optional[ConditionGroup]) -> List[str]:
    """Field names referenced by a group's rules, in rule order."""
    if group is None:
        return []
    refs = []
    for rule in group.rules:
        name = field_reference(rule.field)
        if name:
            refs.append(name)
    return refs


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class SchemaReport:
    """Analysis report for a form schema."""

    form_name: str
    total_steps: int = 0
    total_fields: int = 0
    per_participant_steps: int = 0
    conditional_steps: int = 0
    conditional_fields: int = 0
    total_rules: int = 0
    max_rules_per_group: int = 0

    # Reference usage
    reference_usage: Dict[str, int] = field(default_factory=dict)
    dangling_references: Set[str] = field(default_factory=set)
    forward_references: List[str] = field(default_factory=list)
    self_references: Set[str] = field(default_factory=set)

    # Operator scope
    step_operator_violations: List[str] = field(default_factory=list)

    # Dependency graph between fields
    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    duplicate_names: Set[str] = field(default_factory=set)

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_schema(schema: FormSchema) -> SchemaReport:
    """
    Analyze the conditional logic of a schema.

    Returns a SchemaReport with counts, reference diagnostics and warnings.
    """
    report = SchemaReport(form_name=schema.basic_info.name)

    report.total_steps = len(schema.steps)
    report.total_fields = len(schema.all_fields())
    report.per_participant_steps = sum(1 for s in schema.steps if s.per_participant)

    # Where each field lives
    location: Dict[str, int] = {}
    seen: Set[str] = set()
    for step_index, _, f in schema.iter_fields():
        if f.name in seen:
            report.duplicate_names.add(f.name)
        seen.add(f.name)
        location.setdefault(f.name, step_index)

    usage: Dict[str, int] = defaultdict(int)
    dependencies: Dict[str, List[str]] = defaultdict(list)

    # =========================================================================
    # 1. STEP LOGIC
    # =========================================================================

    for step_index, step in enumerate(schema.steps):
        group = step.conditional_logic
        if group is None or not group.rules:
            continue
        report.conditional_steps += 1
        report.total_rules += len(group.rules)
        report.max_rules_per_group = max(report.max_rules_per_group, len(group.rules))

        for rule in group.rules:
            if rule.op not in STEP_OPERATORS:
                report.step_operator_violations.append(
                    f"step '{step.key}' uses '{rule.op.value}' on {rule.field}"
                )

        for name in _group_references(group):
            usage[name] += 1
            if name not in location:
                report.dangling_references.add(name)
            elif location[name] >= step_index:
                report.forward_references.append(
                    f"step '{step.key}' depends on '{name}' (step {location[name] + 1})"
                )

    # =========================================================================
    # 2. FIELD LOGIC
    # =========================================================================

    for step_index, step, f in schema.iter_fields():
        group = f.conditional_logic
        if group is None or not group.rules:
            continue
        report.conditional_fields += 1
        report.total_rules += len(group.rules)
        report.max_rules_per_group = max(report.max_rules_per_group, len(group.rules))

        for name in _group_references(group):
            usage[name] += 1
            if name == f.name:
                report.self_references.add(name)
                continue
            if name not in location:
                report.dangling_references.add(name)
                continue
            dependencies[f.name].append(name)
            if location[name] > step_index:
                report.forward_references.append(
                    f"field '{f.name}' (step {step_index + 1}) depends on '{name}' (step {location[name] + 1})"
                )

    report.reference_usage = dict(usage)

    # =========================================================================
    # 3. DEPENDENCY CYCLES
    # =========================================================================

    visited: Set[str] = set()
    for name in list(dependencies.keys()):
        if name not in visited:
            cycle = _find_cycles_dfs(dependencies, name, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 4. WARNING FLAGS
    # =========================================================================

    if report.dangling_references:
        report.add_warning(
            f"Rules reference missing fields: {', '.join(sorted(report.dangling_references))}"
        )

    for ref in report.forward_references:
        report.add_warning(f"Forward reference: {ref}")

    if report.self_references:
        report.add_warning(
            f"Fields conditioned on their own answer: {', '.join(sorted(report.self_references))}"
        )

    for violation in report.step_operator_violations:
        report.add_warning(f"Numeric operator on step logic will be dropped: {violation}")

    if report.has_cycles:
        report.add_warning(
            f"Conditional dependency cycle: {' -> '.join(report.cycle_example)}"
        )

    return report
