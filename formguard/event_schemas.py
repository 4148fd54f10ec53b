"""Structural schemas for submission events and endpoint configurations.

Every event shares the conditional-execute fields. Recognized event kinds also
declare a ``configuration`` schema; the configuration of an unrecognized kind
passes through untouched.
"""

from typing import Any, Callable, Dict, List, Mapping, Tuple

from formguard import fields as f
from formguard import rules
from formguard.fields import Fields
from formguard.schema import StructuralSchema
from formguard.types import MappingType, SubmissionEventType

ENDPOINT_TYPES = ("CALLBACK", "POWER_AUTOMATE_FLOW")
EVENT_TYPES = frozenset(t.value for t in SubmissionEventType)


def event_fields() -> Fields:
    return {
        "type": f.string(),
        "label": f.string(),
        "conditionallyExecute": f.boolean(default=False),
        "requiresAllConditionallyExecutePredicates": f.boolean(default=False),
        "conditionallyExecutePredicates": f.array(),
        "configuration": f.obj(),
    }


def event_schema(event: Mapping[str, Any]) -> StructuralSchema:
    """Template of one submission event, with its configuration schema composed.

    Predicate schemas are composed separately (see SchemaComposer).
    """
    type_tag = event.get("type")
    execute_rules = (rules.non_empty_when("conditionallyExecutePredicates", "conditionallyExecute"),)
    if not isinstance(type_tag, str) or type_tag not in EVENT_TYPES:
        return StructuralSchema(fields=event_fields(), required=("type",), rules=execute_rules)

    configuration = event.get("configuration")
    if not isinstance(configuration, Mapping):
        configuration = {}
    build = CONFIGURATION_BUILDERS[SubmissionEventType(type_tag)]
    return StructuralSchema(
        fields=event_fields(),
        required=("type", "configuration"),
        rules=execute_rules,
        objects={"configuration": build(configuration)},
    )


# ---------------------------------------------------------------------------
# Mappings
# ---------------------------------------------------------------------------

def _items(items: Any, build: Callable[[], StructuralSchema]) -> List[StructuralSchema]:
    if not isinstance(items, list):
        return []
    return [build() for _ in items]


def template_mapping_schema() -> StructuralSchema:
    """One ``emailTemplate.mapping`` entry."""
    return StructuralSchema(
        fields={
            "type": f.enum([MappingType.FORM_ELEMENT.value, MappingType.TEXT.value]),
            "mustacheTag": f.string(minLength=1),
            "formElementId": f.guid(),
            "text": f.string(),
        },
        required=("type", "mustacheTag"),
        rules=(
            rules.required_when("formElementId", "type", MappingType.FORM_ELEMENT.value),
            rules.required_when("text", "type", MappingType.TEXT.value),
        ),
    )


def email_template_schema(template: Any) -> StructuralSchema:
    mapping = template.get("mapping") if isinstance(template, Mapping) else None
    return StructuralSchema(
        fields={"id": f.integer(minimum=1), "mapping": f.array()},
        required=("id", "mapping"),
        arrays={"mapping": _items(mapping, template_mapping_schema)},
    )


def _with_email_template(
    schema_fields: Fields, required: Tuple[str, ...], configuration: Mapping[str, Any]
) -> StructuralSchema:
    objects: Dict[str, StructuralSchema] = {}
    if "emailTemplate" in configuration:
        objects["emailTemplate"] = email_template_schema(configuration["emailTemplate"])
    return StructuralSchema(fields=schema_fields, required=required, objects=objects)


def civica_mapping_schema() -> StructuralSchema:
    return StructuralSchema(
        fields={
            "formElementId": f.guid(),
            "civicaCategoryItemNumber": f.integer(),
        },
        required=("formElementId", "civicaCategoryItemNumber"),
    )


def freshdesk_mapping_schema() -> StructuralSchema:
    return StructuralSchema(
        fields={
            "type": f.enum([MappingType.FORM_ELEMENT.value, MappingType.VALUE.value]),
            "formElementId": f.guid(),
            "value": {},
            "freshdeskFieldName": f.string(minLength=1),
        },
        required=("type", "freshdeskFieldName"),
        rules=(
            rules.required_when("formElementId", "type", MappingType.FORM_ELEMENT.value),
            rules.required_when("value", "type", MappingType.VALUE.value),
        ),
    )


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

def _pdf(configuration: Mapping[str, Any]) -> StructuralSchema:
    return _with_email_template(
        {
            "email": f.string(),
            "emailSubjectLine": f.string(),
            "pdfFileName": f.string(),
            "includeSubmissionIdInPdf": f.boolean(),
            "includePaymentInPdf": f.boolean(),
            "usePagesAsBreaks": f.boolean(),
            "excludedElementIds": f.array(f.guid(), default=[]),
            "excludedAttachmentElementIds": f.array(f.guid(), default=[]),
            "excludedCSSClasses": f.string_array(default=[]),
            "emailTemplate": f.obj(),
        },
        (),
        configuration,
    )


def _email(configuration: Mapping[str, Any]) -> StructuralSchema:
    return _with_email_template(
        {
            "email": f.string(minLength=1),
            "emailSubjectLine": f.string(),
            "emailTemplate": f.obj(),
        },
        ("email",),
        configuration,
    )


def _payment(*gateway_fields: str) -> Callable[[Mapping[str, Any]], StructuralSchema]:
    def build(configuration: Mapping[str, Any]) -> StructuralSchema:
        schema_fields: Fields = {"elementId": f.guid()}
        for name in gateway_fields:
            schema_fields[name] = f.string()
        return StructuralSchema(fields=schema_fields, required=("elementId",) + gateway_fields)

    return build


def _scheduling(configuration: Mapping[str, Any]) -> StructuralSchema:
    return StructuralSchema(
        fields={
            "nylasAccountId": f.string(),
            "nylasSchedulingPageId": f.integer(),
            "nameElementId": f.guid(),
            "emailElementId": f.guid(),
        },
        required=("nylasAccountId", "nylasSchedulingPageId"),
    )


def _civica_crm(configuration: Mapping[str, Any]) -> StructuralSchema:
    return StructuralSchema(
        fields={"environmentId": f.string(), "mapping": f.array()},
        required=("environmentId", "mapping"),
        arrays={"mapping": _items(configuration.get("mapping"), civica_mapping_schema)},
    )


def _cp_hcms(configuration: Mapping[str, Any]) -> StructuralSchema:
    return StructuralSchema(
        fields={
            "contentTypeName": f.string(minLength=1),
            "encryptedElementIds": f.array(f.guid()),
            "encryptPdf": f.boolean(),
        },
        required=("contentTypeName",),
    )


def _freshdesk_create_ticket(configuration: Mapping[str, Any]) -> StructuralSchema:
    return StructuralSchema(
        fields={"mapping": f.array()},
        required=("mapping",),
        arrays={"mapping": _items(configuration.get("mapping"), freshdesk_mapping_schema)},
    )


CONFIGURATION_BUILDERS: Dict[SubmissionEventType, Callable[[Mapping[str, Any]], StructuralSchema]] = {
    SubmissionEventType.PDF: _pdf,
    SubmissionEventType.EMAIL: _email,
    SubmissionEventType.CIVICA_CRM: _civica_crm,
    SubmissionEventType.CP_PAY: _payment("gatewayId"),
    SubmissionEventType.WESTPAC_QUICK_WEB: _payment("environmentId", "customerReferenceNumber"),
    SubmissionEventType.BPOINT: _payment("environmentId", "crn2", "crn3"),
    SubmissionEventType.SCHEDULING: _scheduling,
    SubmissionEventType.CP_HCMS: _cp_hcms,
    SubmissionEventType.FRESHDESK_CREATE_TICKET: _freshdesk_create_ticket,
}

missing = set(SubmissionEventType) - set(CONFIGURATION_BUILDERS)
if missing:
    raise RuntimeError(f"No configuration schema for event types: {sorted(t.value for t in missing)}")
del missing


def endpoint_configuration_schema(config: Mapping[str, Any]) -> StructuralSchema:
    """Schema of a server endpoint configuration (``serverValidation`` and friends)."""
    required = ("url", "secret") if config.get("type") == "CALLBACK" else ("url",)
    return StructuralSchema(
        fields={"type": f.enum(ENDPOINT_TYPES), "configuration": f.obj()},
        required=("type", "configuration"),
        objects={
            "configuration": StructuralSchema(
                fields={"url": f.string(pattern=f.URL_PATTERN), "secret": f.string(minLength=1)},
                required=required,
            )
        },
    )


__all__ = [
    "ENDPOINT_TYPES",
    "CONFIGURATION_BUILDERS",
    "event_fields",
    "event_schema",
    "template_mapping_schema",
    "email_template_schema",
    "civica_mapping_schema",
    "freshdesk_mapping_schema",
    "endpoint_configuration_schema",
]
