"""Structural schemas for conditional logic predicates.

A predicate's shape depends on its ``type`` tag (and, for NUMERIC predicates, on
``compareWith``). Fields that belong to a different predicate kind are removed
during normalization. A predicate whose tag is not one of the allowed kinds
only reports the ``type`` error.
"""

from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from formguard import fields as f
from formguard import rules
from formguard.fields import Fields
from formguard.schema import StructuralSchema
from formguard.types import (
    ALL_PREDICATE_TYPES,
    REPEATABLE_SET_PREDICATE_TYPES,
    AddressProperty,
    CompareWith,
    PredicateType,
)

NUMERIC_OPERATORS = ("===", "!==", ">", ">=", "<", "<=")

# Every field a predicate kind can declare beyond elementId and type.
KIND_FIELDS = frozenset(
    {
        "optionIds",
        "operator",
        "compareWith",
        "value",
        "hasValue",
        "min",
        "max",
        "repeatableSetPredicate",
        "predicate",
        "definition",
    }
)

# Predicate kinds that wrap another predicate: field name and allowed nested tags.
NESTED_PREDICATES: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    PredicateType.REPEATABLESET.value: ("repeatableSetPredicate", REPEATABLE_SET_PREDICATE_TYPES),
    PredicateType.FORM.value: ("predicate", ALL_PREDICATE_TYPES),
}

ADDRESS_PROPERTY_VALUES: Dict[str, Dict[str, Any]] = {
    AddressProperty.IS_PO_BOX_ADDRESS.value: f.boolean(),
    AddressProperty.STATE_EQUALITY.value: f.string(),
}


def _options(node: Mapping[str, Any]) -> Fields:
    return {"optionIds": f.string_array(min_items=1)}


def _numeric(node: Mapping[str, Any]) -> Fields:
    compares_element = node.get("compareWith") == CompareWith.ELEMENT.value
    return {
        "operator": f.enum(NUMERIC_OPERATORS),
        "compareWith": f.enum([c.value for c in CompareWith]),
        "value": f.guid() if compares_element else f.number(),
    }


def _value(node: Mapping[str, Any]) -> Fields:
    return {"hasValue": f.boolean()}


def _between(node: Mapping[str, Any]) -> Fields:
    return {"min": f.number(), "max": f.number()}


def _repeatable_set(node: Mapping[str, Any]) -> Fields:
    return {"repeatableSetPredicate": f.obj()}


def _form(node: Mapping[str, Any]) -> Fields:
    return {"predicate": f.obj()}


def _address_property(node: Mapping[str, Any]) -> Fields:
    return {"definition": f.obj()}


PREDICATE_FIELD_BUILDERS: Dict[PredicateType, Callable[[Mapping[str, Any]], Fields]] = {
    PredicateType.OPTIONS: _options,
    PredicateType.NUMERIC: _numeric,
    PredicateType.VALUE: _value,
    PredicateType.BETWEEN: _between,
    PredicateType.REPEATABLESET: _repeatable_set,
    PredicateType.FORM: _form,
    PredicateType.ADDRESS_PROPERTY: _address_property,
}

missing = set(PredicateType) - set(PREDICATE_FIELD_BUILDERS)
if missing:
    raise RuntimeError(f"No schema builder for predicate types: {sorted(t.value for t in missing)}")
del missing

# Optional kind fields; every other declared kind field is required.
OPTIONAL_KIND_FIELDS = frozenset({"compareWith"})


def predicate_schema(node: Mapping[str, Any], allowed: Sequence[str]) -> StructuralSchema:
    """Build the schema template of one predicate node.

    Args:
        node: The raw predicate (only ``type`` and ``compareWith`` are read)
        allowed: Predicate tags accepted at this position

    Returns:
        Template without nested predicate schemas; see SchemaComposer
    """
    base: Fields = {"elementId": f.guid(), "type": f.enum(allowed)}
    type_tag = node.get("type")
    if not isinstance(type_tag, str) or type_tag not in allowed:
        return StructuralSchema(fields=base, required=("elementId", "type"), stripped=KIND_FIELDS)

    kind_fields = PREDICATE_FIELD_BUILDERS[PredicateType(type_tag)](node)
    schema_rules = ()
    if type_tag == PredicateType.BETWEEN.value:
        schema_rules = (rules.at_least("max", "min"),)
    return StructuralSchema(
        fields=f.merge(base, kind_fields),
        required=("elementId", "type") + tuple(n for n in kind_fields if n not in OPTIONAL_KIND_FIELDS),
        stripped=KIND_FIELDS - set(kind_fields),
        rules=schema_rules,
    )


def address_definition_schema(definition: Mapping[str, Any]) -> StructuralSchema:
    """Schema of an ADDRESS_PROPERTY ``definition``; ``value`` is typed by ``property``."""
    prop = definition.get("property")
    value = ADDRESS_PROPERTY_VALUES.get(prop, {}) if isinstance(prop, str) else {}
    return StructuralSchema(
        fields={
            "property": f.enum([p.value for p in AddressProperty]),
            "value": dict(value),
        },
        required=("property", "value"),
    )


__all__ = [
    "NUMERIC_OPERATORS",
    "KIND_FIELDS",
    "NESTED_PREDICATES",
    "ADDRESS_PROPERTY_VALUES",
    "PREDICATE_FIELD_BUILDERS",
    "predicate_schema",
    "address_definition_schema",
]
