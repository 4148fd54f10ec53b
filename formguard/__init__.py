"""formguard: form definition validation and schema composition.

formguard checks untrusted form definitions (a tree of typed elements plus a
list of submission events) and provides:
- An element schema registry covering every form element variant
- Structural validation that reports every issue in document order and
  returns a normalized definition with defaults applied
- Reference checks for conditional logic predicates and submission events
- Generators for new form and page elements

Basic usage:
    >>> from formguard import FormValidator
    >>> validator = FormValidator()
    >>> result = validator.validate({"name": "Intake", "elements": []})
    >>> result.is_valid
    True
"""

__version__ = "0.1.0"
__author__ = "formguard developers"

# Version info
VERSION = (0, 1, 0)

# Core exports
from formguard.config import ValidationOptions
from formguard.errors import (
    FormguardError,
    ReferenceValidationError,
    SchemaIssue,
    StructuralValidationError,
    UnknownElementTypeError,
)
from formguard.runtime import (
    FormValidator,
    generate_form_element,
    generate_page_element,
    validate_endpoint_configuration,
    validate_form,
    validate_form_event,
    validate_form_or_raise,
)
from formguard.validation import StructuralResult

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "FormValidator",
    "ValidationOptions",
    "StructuralResult",
    "SchemaIssue",
    "FormguardError",
    "UnknownElementTypeError",
    "StructuralValidationError",
    "ReferenceValidationError",
    "validate_form",
    "validate_form_or_raise",
    "validate_form_event",
    "generate_form_element",
    "generate_page_element",
    "validate_endpoint_configuration",
]
