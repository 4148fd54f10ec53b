"""Reference checks for conditional logic predicates.

Runs after structural validation, against a FlattenedElementIndex of the
normalized form definition. Every predicate's ``elementId`` must resolve, and
the referenced element's type must be compatible with the predicate kind. The
first broken reference raises a ReferenceValidationError.

Predicates are only checked while their owner's ``conditionallyShow`` (or
``conditionallyExecute``) flag is on; a switched-off predicate list is never
evaluated, so its references cannot break anything.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Sequence, Tuple

from formguard.errors import ReferenceValidationError
from formguard.index import FlattenedElementIndex, IndexedElement, walk_elements
from formguard.schema import Path, format_path
from formguard.types import (
    ADDRESS_ELEMENT_TYPES,
    NUMERIC_ELEMENT_TYPES,
    OPTION_ELEMENT_TYPES,
    CompareWith,
    ElementType,
    PredicateType,
)

logger = logging.getLogger(__name__)

# Element types each predicate kind may reference; empty means any type.
REFERENCE_TYPES: Dict[PredicateType, Tuple[str, ...]] = {
    PredicateType.OPTIONS: OPTION_ELEMENT_TYPES,
    PredicateType.NUMERIC: NUMERIC_ELEMENT_TYPES,
    PredicateType.VALUE: (),
    PredicateType.BETWEEN: NUMERIC_ELEMENT_TYPES,
    PredicateType.REPEATABLESET: (ElementType.REPEATABLE_SET.value,),
    PredicateType.FORM: (ElementType.FORM.value,),
    PredicateType.ADDRESS_PROPERTY: ADDRESS_ELEMENT_TYPES,
}

missing = set(PredicateType) - set(REFERENCE_TYPES)
if missing:
    raise RuntimeError(f"No reference types for predicate types: {sorted(t.value for t in missing)}")
del missing


def describe_allowed(allowed: Sequence[str]) -> str:
    """Describe an allowed type set the way reference errors do.

    Examples:
        >>> describe_allowed(["number", "calculation"])
        'not one of number,calculation'
        >>> describe_allowed(["repeatableSet"])
        'not a repeatableSet'
    """
    if len(allowed) == 1:
        return f"not a {allowed[0]}"
    return f"not one of {','.join(allowed)}"


def resolve_reference(
    index: FlattenedElementIndex,
    element_id: Any,
    path: Path,
    allowed: Sequence[str] = (),
    role: str = "",
) -> IndexedElement:
    """Look up a referenced element and check its type.

    Args:
        index: Index the reference must resolve in
        element_id: The referenced id
        path: Path of the field holding the reference
        allowed: Element types the reference may point at (empty: any)
        role: Optional qualifier for messages (e.g. "compareWith")

    Raises:
        ReferenceValidationError: If the id does not resolve or has the wrong type
    """
    label = format_path(path)
    qualifier = f"{role} " if role else ""
    found = index.get(element_id)
    if found is None:
        raise ReferenceValidationError(
            f'Referenced {qualifier}elementId not found: "{label}" ({element_id}) does not exist in "elements"',
            path=label,
            element_id=element_id if isinstance(element_id, str) else None,
            allowed_types=tuple(allowed),
        )
    if allowed and found.type not in allowed:
        element_word = "element " if role else ""
        raise ReferenceValidationError(
            f'Referenced {qualifier}{element_word}{found.type} type {describe_allowed(allowed)}: "{label}" ({element_id})',
            path=label,
            element_id=found.id,
            found_type=found.type,
            allowed_types=tuple(allowed),
        )
    return found


def _check_numeric(predicate: Mapping[str, Any], found: IndexedElement, index: FlattenedElementIndex, path: Path) -> None:
    if predicate.get("compareWith") == CompareWith.ELEMENT.value:
        resolve_reference(index, predicate.get("value"), path + ("value",), NUMERIC_ELEMENT_TYPES, role="compareWith")


def _check_repeatable_set(
    predicate: Mapping[str, Any], found: IndexedElement, index: FlattenedElementIndex, path: Path
) -> None:
    nested = predicate.get("repeatableSetPredicate")
    if isinstance(nested, Mapping):
        validate_predicate(nested, index.scoped_to(found.id), path + ("repeatableSetPredicate",))


def _check_form(predicate: Mapping[str, Any], found: IndexedElement, index: FlattenedElementIndex, path: Path) -> None:
    nested = predicate.get("predicate")
    if not isinstance(nested, Mapping):
        return
    if not isinstance(found.element.get("elements"), list):
        # The sub-form's elements live in another form definition.
        logger.debug(
            "Skipping nested predicate at %s: form %s is not inlined",
            format_path(path),
            found.id,
            extra={"path": format_path(path), "element_id": found.id},
        )
        return
    validate_predicate(nested, index.scoped_to(found.id), path + ("predicate",))


def _no_extra_checks(predicate: Mapping[str, Any], found: IndexedElement, index: FlattenedElementIndex, path: Path) -> None:
    return None


PREDICATE_CHECKS: Dict[PredicateType, Callable[[Mapping[str, Any], IndexedElement, FlattenedElementIndex, Path], None]] = {
    PredicateType.OPTIONS: _no_extra_checks,
    PredicateType.NUMERIC: _check_numeric,
    PredicateType.VALUE: _no_extra_checks,
    PredicateType.BETWEEN: _no_extra_checks,
    PredicateType.REPEATABLESET: _check_repeatable_set,
    PredicateType.FORM: _check_form,
    PredicateType.ADDRESS_PROPERTY: _no_extra_checks,
}

missing = set(PredicateType) - set(PREDICATE_CHECKS)
if missing:
    raise RuntimeError(f"No reference checks for predicate types: {sorted(t.value for t in missing)}")
del missing


def validate_predicate(predicate: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    """Check the references of one predicate (and any predicate nested in it)."""
    type_tag = predicate.get("type")
    try:
        predicate_type = PredicateType(type_tag)
    except ValueError:
        logger.debug("Skipping predicate with unknown type %r at %s", type_tag, format_path(path))
        return
    found = resolve_reference(index, predicate.get("elementId"), path + ("elementId",), REFERENCE_TYPES[predicate_type])
    PREDICATE_CHECKS[predicate_type](predicate, found, index, path)


def validate_predicate_list(predicates: Any, index: FlattenedElementIndex, path: Path) -> None:
    """Check every predicate of one conditional specification, in order."""
    if not isinstance(predicates, list):
        return
    for position, predicate in enumerate(predicates):
        if isinstance(predicate, Mapping):
            validate_predicate(predicate, index, path + (position,))


def validate_predicates(document: Mapping[str, Any], index: FlattenedElementIndex) -> None:
    """Check the conditional-show predicates of every element in the tree.

    Raises:
        ReferenceValidationError: On the first broken reference, in document order
    """
    checked = 0
    for entry in walk_elements(document.get("elements")):
        element = entry.element
        if element.get("conditionallyShow") is not True:
            continue
        validate_predicate_list(
            element.get("conditionallyShowPredicates"),
            index,
            entry.path + ("conditionallyShowPredicates",),
        )
        checked += 1
    logger.debug("Checked conditional predicates of %d element(s)", checked)


__all__ = [
    "REFERENCE_TYPES",
    "PREDICATE_CHECKS",
    "describe_allowed",
    "resolve_reference",
    "validate_predicate",
    "validate_predicate_list",
    "validate_predicates",
]
