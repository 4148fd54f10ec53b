"""FormValidator orchestrator for form definitions.

This module provides the FormValidator class that coordinates the schema
composer, structural validator, element index and reference checks, plus the
element generators used by form builders.

Two entry points have different failure contracts:

- ``validate`` (accumulate mode) returns a StructuralResult holding every
  structural issue, or the normalized definition. It never checks references.
- ``validate_or_raise`` raises a StructuralValidationError wrapping the first
  structural issue, then checks element and event references and raises a
  ReferenceValidationError on the first broken one. On success it returns the
  normalized definition.

Usage:
    >>> from formguard.runtime import FormValidator
    >>> validator = FormValidator()
    >>> form = validator.validate_or_raise({"name": "Intake", "elements": []})
    >>> form["postSubmissionAction"]
    'FORMS_LIBRARY'
"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

from formguard.composer import SchemaComposer
from formguard.config import ValidationOptions
from formguard.errors import StructuralValidationError
from formguard.events import validate_event, validate_events
from formguard.index import flatten
from formguard.predicates import validate_predicates
from formguard.registry import ElementSchemaRegistry
from formguard.schema import StructuralSchema
from formguard.types import ElementType
from formguard.validation import StructuralResult, StructuralValidator

logger = logging.getLogger(__name__)

OptionsLike = Union[ValidationOptions, Mapping[str, Any], None]

DEFAULT_PAGE_LABEL = "Page"


def _options(options: OptionsLike) -> ValidationOptions:
    if isinstance(options, ValidationOptions):
        return options
    return ValidationOptions.from_dict(dict(options) if options else None)


class FormValidator:
    """Validate, normalize and generate form definitions.

    Attributes:
        composer: Composes node schemas from the element registry
        structural: Structural validator sharing the same composer

    Examples:
        >>> validator = FormValidator()
        >>> result = validator.validate({"elements": []})
        >>> result.errors[0].message
        '"name" is required'
    """

    def __init__(self, registry: Optional[ElementSchemaRegistry] = None) -> None:
        self.composer = SchemaComposer(registry)
        self.structural = StructuralValidator(self.composer)

    def validate(self, document: Any, options: OptionsLike = None) -> StructuralResult:
        """Structurally validate a form definition, collecting every issue.

        Args:
            document: The untrusted form definition
            options: ValidationOptions or a camelCase dict
                (``{"abortEarly": ..., "stripUnknown": ...}``)

        Returns:
            StructuralResult with ordered issues and the normalized definition
        """
        return self.structural.validate(document, _options(options))

    def validate_or_raise(self, document: Any, options: OptionsLike = None) -> Dict[str, Any]:
        """Validate a form definition structurally, then check every reference.

        Returns:
            The normalized form definition

        Raises:
            StructuralValidationError: Wrapping the first structural issue
            ReferenceValidationError: On the first broken element reference
        """
        result = self.structural.validate(document, _options(options))
        if not result.is_valid:
            raise StructuralValidationError(result.errors[:1])

        form = result.data
        index = flatten(form)
        validate_predicates(form, index)
        validate_events(form, index)
        logger.debug(
            "Form definition %r passed reference checks", form.get("name"), extra={"form_name": form.get("name")}
        )
        return form

    def validate_event(
        self,
        form_elements: List[Mapping[str, Any]],
        event: Any,
        options: OptionsLike = None,
    ) -> Dict[str, Any]:
        """Validate one submission event against an existing element list.

        Structural validation stops at the first issue (nested invocation).

        Returns:
            The normalized submission event

        Raises:
            StructuralValidationError: If the event is malformed
            ReferenceValidationError: On the first broken element reference
        """
        result = self.structural.validate_node(
            event, self.composer.compose_event(event), _options(options).nested()
        )
        if not result.is_valid:
            raise StructuralValidationError(result.errors)
        validate_event(result.data, flatten({"elements": form_elements}), ())
        return result.data

    def generate_form_element(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Build a new form element with an id, defaults and name/label filled in.

        ``type`` defaults to ``text``; ``name`` and ``label`` default to each
        other when only one is given.

        Raises:
            StructuralValidationError: If the resulting element is invalid
        """
        element: Dict[str, Any] = dict(data or {})
        element.setdefault("id", str(uuid.uuid4()))
        element.setdefault("type", ElementType.TEXT.value)
        if not element.get("name") and element.get("label"):
            element["name"] = element["label"]
        if not element.get("label") and element.get("name"):
            element["label"] = element["name"]
        return self._generate(element, self.composer.compose(element))

    def generate_page_element(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Build a new page element; every child goes through generate_form_element.

        Raises:
            StructuralValidationError: If the page or any child is invalid
        """
        page: Dict[str, Any] = dict(data or {})
        page.setdefault("id", str(uuid.uuid4()))
        page["type"] = ElementType.PAGE.value
        page.setdefault("label", DEFAULT_PAGE_LABEL)
        children = page.get("elements")
        if isinstance(children, list):
            page["elements"] = [
                self.generate_form_element(child) if isinstance(child, Mapping) else child
                for child in children
            ]
        return self._generate(page, self.composer.compose(page, [ElementType.PAGE.value]))

    def validate_endpoint_configuration(self, config: Any, options: OptionsLike = None) -> StructuralResult:
        """Structurally validate a server endpoint configuration."""
        return self.structural.validate_node(
            config, self.composer.compose_endpoint_configuration(config), _options(options)
        )

    def _generate(self, element: Dict[str, Any], schema: StructuralSchema) -> Dict[str, Any]:
        result = self.structural.validate_node(element, schema, ValidationOptions().nested())
        if not result.is_valid:
            raise StructuralValidationError(result.errors)
        logger.debug("Generated %s element %s", element.get("type"), element.get("id"))
        return result.data


default_validator = FormValidator()


def validate_form(document: Any, options: OptionsLike = None) -> StructuralResult:
    """Accumulate-mode validation with the default element registry."""
    return default_validator.validate(document, options)


def validate_form_or_raise(document: Any, options: OptionsLike = None) -> Dict[str, Any]:
    """Validate-and-raise with the default element registry."""
    return default_validator.validate_or_raise(document, options)


def validate_form_event(
    form_elements: List[Mapping[str, Any]], event: Any, options: OptionsLike = None
) -> Dict[str, Any]:
    return default_validator.validate_event(form_elements, event, options)


def generate_form_element(data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return default_validator.generate_form_element(data)


def generate_page_element(data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    return default_validator.generate_page_element(data)


def validate_endpoint_configuration(config: Any, options: OptionsLike = None) -> StructuralResult:
    return default_validator.validate_endpoint_configuration(config, options)


__all__ = [
    "FormValidator",
    "default_validator",
    "validate_form",
    "validate_form_or_raise",
    "validate_form_event",
    "generate_form_element",
    "generate_page_element",
    "validate_endpoint_configuration",
]
