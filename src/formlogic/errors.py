"""
Exceptions raised by the form logic package.

Evaluation never raises: unresolvable paths and bad operands degrade to
"condition not satisfied". Only loading malformed wire data and editing a
step or field that does not exist raise.
"""


class FormLogicError(Exception):
    """Base class for all form logic errors."""
    pass


class SchemaLoadError(FormLogicError):
    """Raised when a wire payload cannot be turned into a FormSchema."""
    pass


class SchemaEditError(FormLogicError):
    """Raised when an edit addresses a step or field that does not exist."""
    pass
