"""
Core Form Schema Objects

Defines the data the authoring surface edits and the fill-time engine
reads:
    - FieldType (closed vocabulary) and its capability table
    - FormField (one input)
    - FormStep (one page of fields)
    - BasicInfo (form title, description, owning program)
    - FormSchema (root container)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering or transport
        - Are never mutated by the engine; editing returns new objects
        - Use UI field types; wire types exist only in formlogic.payload
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from formlogic.conditions import ConditionGroup

MAX_LAYOUT_COLUMNS = 4
DEFAULT_LAYOUT_COLUMNS = 4

# Wire field order is step_index * ORDER_BUCKET_SIZE + position + 1.
ORDER_BUCKET_SIZE = 100


class FieldType(Enum):
    """Field types as the authoring surface knows them."""

    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    DATE = "date"
    URL = "url"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"


@dataclass(frozen=True)
class FieldCapabilities:
    """
    What a field type supports.

    Properties:
        wire_type: Name of the type in the persisted wire format
        has_options: Accepts a list of choices
        has_min_max: Accepts numeric min/max bounds
        has_max_length: Accepts a maximum text length
        has_file_options: Accepts allowed file types and a size limit
        multi_value: Answer is a list of chosen options
    """

    wire_type: str
    has_options: bool = False
    has_min_max: bool = False
    has_max_length: bool = False
    has_file_options: bool = False
    multi_value: bool = False


FIELD_CAPABILITIES: Dict[FieldType, FieldCapabilities] = {
    FieldType.TEXT: FieldCapabilities("text", has_max_length=True),
    FieldType.EMAIL: FieldCapabilities("email", has_max_length=True),
    FieldType.TEL: FieldCapabilities("phone", has_max_length=True),
    FieldType.NUMBER: FieldCapabilities("number", has_min_max=True),
    FieldType.DATE: FieldCapabilities("date"),
    FieldType.URL: FieldCapabilities("url", has_max_length=True),
    FieldType.TEXTAREA: FieldCapabilities("textarea", has_max_length=True),
    FieldType.SELECT: FieldCapabilities("dropdown", has_options=True),
    FieldType.CHECKBOX: FieldCapabilities("checkbox", has_options=True, multi_value=True),
    FieldType.RADIO: FieldCapabilities("radio", has_options=True),
    FieldType.FILE: FieldCapabilities("file", has_file_options=True),
}


def capabilities(field_type: FieldType) -> FieldCapabilities:
    return FIELD_CAPABILITIES[field_type]


@dataclass
class FormField:
    """
    A single input in a step.

    Properties:
        id:
            Opaque identifier, stable while editing, not persisted
        name:
            Answer key (slug). Unique across the whole schema.
            Rules reference fields by this name.
        label:
            Human-readable prompt
        type:
            FieldType
        required:
            Answer must be non-empty when the field is visible
        help_text, options, max_length, min_value, max_value,
        allowed_file_types, max_file_size:
            Type-specific constraints; see FIELD_CAPABILITIES
        column_span:
            Grid columns occupied, always within 1..step.layout_columns
        conditional_logic:
            Optional ConditionGroup; None means always visible
    """

    id: str
    name: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    help_text: str = ""
    options: List[str] = field(default_factory=list)
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    allowed_file_types: List[str] = field(default_factory=list)
    max_file_size: Optional[int] = None
    column_span: int = DEFAULT_LAYOUT_COLUMNS
    conditional_logic: Optional[ConditionGroup] = None

    @property
    def capabilities(self) -> FieldCapabilities:
        return FIELD_CAPABILITIES[self.type]


@dataclass
class FormStep:
    """
    One page of the form.

    Properties:
        id: Opaque identifier
        key: Persisted step key; fields record it as step_key
        title, description: Page heading
        fields: Ordered fields of the page
        per_participant:
            When True the page is repeated once per registered participant,
            each repetition with its own answers and its own visibility
        layout_columns: Grid width, 1..4
        conditional_logic: Optional ConditionGroup for the whole page
    """

    id: str
    key: str
    title: str
    description: str = ""
    fields: List[FormField] = field(default_factory=list)
    per_participant: bool = True
    layout_columns: int = DEFAULT_LAYOUT_COLUMNS
    conditional_logic: Optional[ConditionGroup] = None

    def get_field(self, field_id: str) -> Optional[FormField]:
        for f in self.fields:
            if f.id == field_id:
                return f
        return None


@dataclass
class BasicInfo:
    """Form-level metadata."""

    name: str = ""
    description: str = ""
    program_id: str = ""


@dataclass
class FormSchema:
    """
    Root container for a dynamically authored multi-step form.

    INVARIANTS:
        - Field names are unique across all steps
        - Every field's column_span is within 1..its step's layout_columns
        - conditional_logic is either None or a group with at least one rule
          (after normalization)
    """

    basic_info: BasicInfo = field(default_factory=BasicInfo)
    steps: List[FormStep] = field(default_factory=list)
    layout_columns: int = DEFAULT_LAYOUT_COLUMNS

    def iter_fields(self) -> Iterator[Tuple[int, FormStep, FormField]]:
        """Yield (step_index, step, field) in form order."""
        for index, step in enumerate(self.steps):
            for f in step.fields:
                yield index, step, f

    def all_fields(self) -> List[FormField]:
        return [f for _, _, f in self.iter_fields()]

    def field_names(self) -> List[str]:
        return [f.name for f in self.all_fields()]

    def get_step(self, step_id: str) -> Optional[FormStep]:
        for step in self.steps:
            if step.id == step_id or step.key == step_id:
                return step
        return None

    def get_field_by_name(self, name: str) -> Optional[FormField]:
        for f in self.all_fields():
            if f.name == name:
                return f
        return None

    def step_index_of_field(self, name: str) -> Optional[int]:
        for index, _, f in self.iter_fields():
            if f.name == name:
                return index
        return None
