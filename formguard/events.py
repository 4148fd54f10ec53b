"""Reference checks for submission events.

Each submission event kind may reference form elements from its
``configuration`` (payment amount elements, CRM mappings, encrypted elements,
template mappings, PDF exclusions). After structural validation, every such
reference must resolve in the FlattenedElementIndex and, where the kind
restricts it, point at an element of a compatible type.

Event kinds without references (and unrecognized kinds) only have their
conditional-execute predicates checked.
"""

import logging
from typing import Any, Callable, Dict, Mapping, Tuple

from formguard.errors import ReferenceValidationError
from formguard.index import FlattenedElementIndex
from formguard.predicates import resolve_reference, validate_predicate_list
from formguard.schema import Path, format_path
from formguard.types import (
    ENCRYPTABLE_ELEMENT_TYPES,
    NUMERIC_ELEMENT_TYPES,
    ElementType,
    MappingType,
    SubmissionEventType,
)

logger = logging.getLogger(__name__)

EventCheck = Callable[[Mapping[str, Any], FlattenedElementIndex, Path], None]


def _check_id_list(ids: Any, index: FlattenedElementIndex, path: Path, allowed: Tuple[str, ...] = ()) -> None:
    if not isinstance(ids, list):
        return
    for position, element_id in enumerate(ids):
        resolve_reference(index, element_id, path + (position,), allowed)


def _check_form_element_mappings(mapping: Any, index: FlattenedElementIndex, path: Path) -> None:
    """Resolve ``formElementId`` of every FORM_ELEMENT entry of a mapping list."""
    if not isinstance(mapping, list):
        return
    for position, entry in enumerate(mapping):
        if isinstance(entry, Mapping) and entry.get("type") == MappingType.FORM_ELEMENT.value:
            resolve_reference(index, entry.get("formElementId"), path + (position, "formElementId"))


def _check_email_template(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    template = configuration.get("emailTemplate")
    if isinstance(template, Mapping):
        _check_form_element_mappings(template.get("mapping"), index, path + ("emailTemplate", "mapping"))


def _check_payment(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    resolve_reference(index, configuration.get("elementId"), path + ("elementId",), NUMERIC_ELEMENT_TYPES)


def _check_scheduling(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    if configuration.get("nameElementId"):
        resolve_reference(
            index, configuration["nameElementId"], path + ("nameElementId",), (ElementType.TEXT.value,)
        )
    if configuration.get("emailElementId"):
        resolve_reference(
            index, configuration["emailElementId"], path + ("emailElementId",), (ElementType.EMAIL.value,)
        )


def _check_civica_crm(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    mapping = configuration.get("mapping")
    if not isinstance(mapping, list):
        return
    for position, entry in enumerate(mapping):
        if isinstance(entry, Mapping):
            resolve_reference(index, entry.get("formElementId"), path + ("mapping", position, "formElementId"))


def _check_cp_hcms(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    ids = configuration.get("encryptedElementIds")
    if not isinstance(ids, list):
        return
    for position, element_id in enumerate(ids):
        id_path = path + ("encryptedElementIds", position)
        found = resolve_reference(index, element_id, id_path, ENCRYPTABLE_ELEMENT_TYPES)
        if found.type == ElementType.SELECT.value and found.multi:
            label = format_path(id_path)
            raise ReferenceValidationError(
                f'Referenced select type must not allow multiple selections: "{label}" ({element_id})',
                path=label,
                element_id=found.id,
                found_type=found.type,
                allowed_types=ENCRYPTABLE_ELEMENT_TYPES,
            )


def _check_pdf(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    _check_email_template(configuration, index, path)
    _check_id_list(configuration.get("excludedElementIds"), index, path + ("excludedElementIds",))


def _check_freshdesk_create_ticket(configuration: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    _check_form_element_mappings(configuration.get("mapping"), index, path + ("mapping",))


EVENT_CHECKS: Dict[SubmissionEventType, EventCheck] = {
    SubmissionEventType.PDF: _check_pdf,
    SubmissionEventType.EMAIL: _check_email_template,
    SubmissionEventType.CIVICA_CRM: _check_civica_crm,
    SubmissionEventType.CP_PAY: _check_payment,
    SubmissionEventType.WESTPAC_QUICK_WEB: _check_payment,
    SubmissionEventType.BPOINT: _check_payment,
    SubmissionEventType.SCHEDULING: _check_scheduling,
    SubmissionEventType.CP_HCMS: _check_cp_hcms,
    SubmissionEventType.FRESHDESK_CREATE_TICKET: _check_freshdesk_create_ticket,
}

missing = set(SubmissionEventType) - set(EVENT_CHECKS)
if missing:
    raise RuntimeError(f"No reference checks for event types: {sorted(t.value for t in missing)}")
del missing


def validate_event(event: Mapping[str, Any], index: FlattenedElementIndex, path: Path) -> None:
    """Check the references of one submission event.

    Conditional-execute predicates are checked first, then the configuration.

    Raises:
        ReferenceValidationError: On the first broken reference
    """
    if event.get("conditionallyExecute") is True:
        validate_predicate_list(
            event.get("conditionallyExecutePredicates"),
            index,
            path + ("conditionallyExecutePredicates",),
        )

    type_tag = event.get("type")
    try:
        event_type = SubmissionEventType(type_tag)
    except ValueError:
        logger.debug("No reference checks for event type %r at %s", type_tag, format_path(path))
        return
    configuration = event.get("configuration")
    if isinstance(configuration, Mapping):
        EVENT_CHECKS[event_type](configuration, index, path + ("configuration",))


def validate_events(
    document: Mapping[str, Any],
    index: FlattenedElementIndex,
    key: str = "submissionEvents",
) -> None:
    """Check every submission event of a form definition, in order.

    Raises:
        ReferenceValidationError: On the first broken reference
    """
    events = document.get(key)
    if not isinstance(events, list):
        return
    for position, event in enumerate(events):
        if isinstance(event, Mapping):
            validate_event(event, index, (key, position))
    logger.debug("Checked references of %d submission event(s)", len(events))


__all__ = [
    "EVENT_CHECKS",
    "validate_event",
    "validate_events",
]
