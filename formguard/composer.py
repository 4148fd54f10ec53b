"""Schema composition.

Builds the StructuralSchema of a concrete node: the registry template for the
node's type with the schemas of its predicates, nested elements and event
configurations filled in. Composition follows the authored nesting of the
document only; a sub-form reference never pulls in another form's elements.
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from formguard import fields as f
from formguard import rules
from formguard.conditions import NESTED_PREDICATES, address_definition_schema, predicate_schema
from formguard.event_schemas import endpoint_configuration_schema, event_schema
from formguard.index import walk_elements
from formguard.registry import ElementSchemaRegistry, default_registry
from formguard.schema import RuleViolation, StructuralSchema
from formguard.types import ALL_PREDICATE_TYPES, ElementType, IssueCode, PredicateType

logger = logging.getLogger(__name__)

POST_SUBMISSION_ACTIONS = ("FORMS_LIBRARY", "URL", "CLOSE", "BACK")


def unique_ids_across_tree(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
    """Element ids must be unique across the whole tree.

    Duplicates inside one ``elements`` array are reported by that array's own
    uniqueness rule and are skipped here.
    """
    arrays_by_id: Dict[str, List[tuple]] = {}
    for entry in walk_elements(node.get("elements")):
        element_id = entry.element.get("id")
        if not isinstance(element_id, str):
            continue
        array_path = entry.path[:-1]
        seen_in = arrays_by_id.setdefault(element_id, [])
        if seen_in and array_path not in seen_in:
            yield RuleViolation(
                path=entry.path + ("id",),
                code=IssueCode.DUPLICATE,
                detail="contains a duplicate value",
                expected="unique id",
                received=element_id,
            )
        seen_in.append(array_path)


def unique_names_across_tree(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
    """Element names must be unique across the whole tree, containers included.

    Elements without a name are ignored. Sibling duplicates are skipped as above.
    """
    arrays_by_name: Dict[str, List[tuple]] = {}
    for entry in walk_elements(node.get("elements")):
        name = entry.element.get("name")
        if not isinstance(name, str) or not name:
            continue
        array_path = entry.path[:-1]
        seen_in = arrays_by_name.setdefault(name, [])
        if seen_in and array_path not in seen_in:
            yield RuleViolation(
                path=entry.path + ("name",),
                code=IssueCode.DUPLICATE,
                detail="contains a duplicate value",
                expected="unique name",
                received=name,
            )
        seen_in.append(array_path)


def form_fields() -> f.Fields:
    return {
        "id": f.integer(minimum=1),
        "name": f.string(minLength=1),
        "description": f.string(),
        "organisationId": f.string(),
        "formsAppEnvironmentId": f.integer(minimum=1),
        "formsAppIds": f.array(f.integer(minimum=1), default=[]),
        "isAuthenticated": f.boolean(default=False),
        "isMultiPage": f.boolean(default=False),
        "postSubmissionAction": f.enum(POST_SUBMISSION_ACTIONS, default="FORMS_LIBRARY"),
        "redirectUrl": f.string(pattern=f.URL_PATTERN),
        "tags": f.string_array(default=[]),
        "elements": f.array(default=[]),
        "submissionEvents": f.array(default=[]),
        "serverValidation": f.obj(),
    }


FORM_RULES = (
    rules.required_when("redirectUrl", "postSubmissionAction", "URL"),
    rules.unique_items("elements", "name"),
    rules.unique_items("elements", "id"),
    unique_ids_across_tree,
    unique_names_across_tree,
)


class SchemaComposer:
    """Compose node schemas from registry templates.

    Attributes:
        registry: Element schema registry used to resolve type tags

    Examples:
        >>> composer = SchemaComposer()
        >>> schema = composer.compose({"id": "x", "type": "section", "elements": [{"type": "text"}]})
        >>> len(schema.arrays["elements"])
        1
    """

    def __init__(self, registry: Optional[ElementSchemaRegistry] = None) -> None:
        self.registry = registry or default_registry

    def nested_element_types(self) -> List[str]:
        """Element types accepted below the top level (pages are top level only)."""
        return [t for t in self.registry.types() if t != ElementType.PAGE.value]

    def compose(self, element: Any, allowed_types: Optional[Sequence[str]] = None) -> StructuralSchema:
        """Compose the schema of one element and everything nested in it.

        Args:
            element: The raw element node
            allowed_types: Type tags accepted at this position (default: any
                type except ``page``)
        """
        if allowed_types is None:
            allowed_types = self.nested_element_types()
        if not isinstance(element, Mapping):
            return self.registry.fallback_schema(allowed_types)

        type_tag = element.get("type")
        if not isinstance(type_tag, str) or type_tag not in allowed_types or type_tag not in self.registry:
            logger.debug("No schema for element type %r, using fallback", type_tag)
            template = self.registry.fallback_schema(allowed_types)
        else:
            template = self.registry.schema_for(type_tag)

        arrays: Dict[str, List[StructuralSchema]] = {}
        predicates = element.get("conditionallyShowPredicates")
        if template.declares("conditionallyShowPredicates") and isinstance(predicates, list):
            arrays["conditionallyShowPredicates"] = [
                self.compose_predicate(predicate, ALL_PREDICATE_TYPES) for predicate in predicates
            ]
        children = element.get("elements")
        if template.declares("elements") and isinstance(children, list):
            arrays["elements"] = [self.compose(child) for child in children]
        return replace(template, arrays=arrays)

    def compose_predicate(self, predicate: Any, allowed: Sequence[str]) -> StructuralSchema:
        """Compose the schema of one predicate, including any nested predicate."""
        if not isinstance(predicate, Mapping):
            return predicate_schema({}, allowed)
        template = predicate_schema(predicate, allowed)
        type_tag = predicate.get("type")
        if not isinstance(type_tag, str) or type_tag not in allowed:
            return template

        objects: Dict[str, StructuralSchema] = {}
        if type_tag in NESTED_PREDICATES:
            field_name, nested_allowed = NESTED_PREDICATES[type_tag]
            nested = predicate.get(field_name)
            if isinstance(nested, Mapping):
                objects[field_name] = self.compose_predicate(nested, nested_allowed)
        elif type_tag == PredicateType.ADDRESS_PROPERTY.value:
            definition = predicate.get("definition")
            if isinstance(definition, Mapping):
                objects["definition"] = address_definition_schema(definition)
        return replace(template, objects=objects)

    def compose_event(self, event: Any) -> StructuralSchema:
        """Compose the schema of one submission event."""
        template = event_schema(event if isinstance(event, Mapping) else {})
        predicates = event.get("conditionallyExecutePredicates") if isinstance(event, Mapping) else None
        if not isinstance(predicates, list):
            return template
        return replace(
            template,
            arrays={
                "conditionallyExecutePredicates": [
                    self.compose_predicate(predicate, ALL_PREDICATE_TYPES) for predicate in predicates
                ]
            },
        )

    def compose_form(self, document: Any) -> StructuralSchema:
        """Compose the schema of a whole form definition."""
        if not isinstance(document, Mapping):
            return StructuralSchema(fields=form_fields(), required=("name",))

        if document.get("isMultiPage") is True:
            top_level_types: Sequence[str] = [ElementType.PAGE.value]
        else:
            top_level_types = self.nested_element_types()

        arrays: Dict[str, List[StructuralSchema]] = {}
        elements = document.get("elements")
        if isinstance(elements, list):
            arrays["elements"] = [self.compose(element, top_level_types) for element in elements]
        events = document.get("submissionEvents")
        if isinstance(events, list):
            arrays["submissionEvents"] = [self.compose_event(event) for event in events]

        objects: Dict[str, StructuralSchema] = {}
        server_validation = document.get("serverValidation")
        if isinstance(server_validation, Mapping):
            objects["serverValidation"] = endpoint_configuration_schema(server_validation)

        return StructuralSchema(
            fields=form_fields(),
            required=("name",),
            rules=FORM_RULES,
            objects=objects,
            arrays=arrays,
        )

    def compose_endpoint_configuration(self, config: Any) -> StructuralSchema:
        return endpoint_configuration_schema(config if isinstance(config, Mapping) else {})


__all__ = [
    "POST_SUBMISSION_ACTIONS",
    "FORM_RULES",
    "SchemaComposer",
    "form_fields",
    "unique_ids_across_tree",
    "unique_names_across_tree",
]
