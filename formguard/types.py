"""Core type definitions for formguard form definitions.

This module defines the tag vocabularies that a form definition is dispatched on:
- ElementType: Every registered form element variant
- PredicateType: Conditional logic predicate kinds
- SubmissionEventType: Post-submission action kinds with reference checks
- IssueCode: Machine-readable codes for structural validation issues
- CompareWith, AddressProperty, MappingType: Enumerated predicate/event fields

It also defines the allowed-type groupings used by the reference checks and the
wire shapes (TypedDicts) of the serialized issue list. The string values are part
of the wire contract and must match the form builder exactly.
"""

from enum import Enum
from typing import Tuple

from typing_extensions import NotRequired, TypedDict


class ElementType(str, Enum):
    """Form element type tags.

    Container types (section, repeatableSet, page) own a nested ``elements``
    sequence. Sub-form references (form, infoPage) only record a ``formId``.
    """
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    EMAIL = "email"
    TELEPHONE = "telephone"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    BOOLEAN = "boolean"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOXES = "checkboxes"
    AUTOCOMPLETE = "autocomplete"
    CAMERA = "camera"
    DRAW = "draw"
    FILE = "file"
    FILES = "files"
    BARCODE_SCANNER = "barcodeScanner"
    CALCULATION = "calculation"
    HEADING = "heading"
    HTML = "html"
    IMAGE = "image"
    LOCATION = "location"
    GEOSCAPE_ADDRESS = "geoscapeAddress"
    POINT_ADDRESS = "pointAddress"
    GOOGLE_ADDRESS = "googleAddress"
    POINT_CADASTRAL_PARCEL = "pointCadastralParcel"
    CIVICA_STREET_NAME = "civicaStreetName"
    CIVICA_NAME_RECORD = "civicaNameRecord"
    ABN = "abn"
    BSB = "bsb"
    CAPTCHA = "captcha"
    SUMMARY = "summary"
    COMPLIANCE = "compliance"
    LOOKUP_BUTTON = "lookupButton"
    ARCGIS_WEB_MAP = "arcGISWebMap"
    API_NSW_LIQUOR_LICENCE = "apiNSWLiquorLicence"
    FRESHDESK_DEPENDENT_FIELD = "freshdeskDependentField"
    REPEATABLE_SET = "repeatableSet"
    SECTION = "section"
    PAGE = "page"
    FORM = "form"
    INFO_PAGE = "infoPage"


class PredicateType(str, Enum):
    """Conditional logic predicate kinds."""
    OPTIONS = "OPTIONS"
    NUMERIC = "NUMERIC"
    VALUE = "VALUE"
    BETWEEN = "BETWEEN"
    REPEATABLESET = "REPEATABLESET"
    FORM = "FORM"
    ADDRESS_PROPERTY = "ADDRESS_PROPERTY"


class SubmissionEventType(str, Enum):
    """Submission event kinds that carry element references.

    Event kinds not listed here are accepted as-is (forward compatible) and
    only have their common fields checked.
    """
    PDF = "PDF"
    EMAIL = "EMAIL"
    CIVICA_CRM = "CIVICA_CRM"
    CP_PAY = "CP_PAY"
    WESTPAC_QUICK_WEB = "WESTPAC_QUICK_WEB"
    BPOINT = "BPOINT"
    SCHEDULING = "SCHEDULING"
    CP_HCMS = "CP_HCMS"
    FRESHDESK_CREATE_TICKET = "FRESHDESK_CREATE_TICKET"


class IssueCode(str, Enum):
    """Codes for individual structural validation issues."""
    REQUIRED = "required"
    INVALID_TYPE = "invalid_type"
    INVALID_VALUE = "invalid_value"
    INVALID_FORMAT = "invalid_format"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"
    TOO_SMALL = "too_small"
    TOO_LARGE = "too_large"
    DUPLICATE = "duplicate"
    NOT_ALLOWED = "not_allowed"
    CUSTOM = "custom"


class CompareWith(str, Enum):
    """What a NUMERIC predicate's ``value`` is compared against."""
    VALUE = "VALUE"
    ELEMENT = "ELEMENT"


class AddressProperty(str, Enum):
    """Address properties an ADDRESS_PROPERTY predicate can test."""
    IS_PO_BOX_ADDRESS = "IS_PO_BOX_ADDRESS"
    STATE_EQUALITY = "STATE_EQUALITY"


class MappingType(str, Enum):
    """Source of a value in an email template or ticket field mapping."""
    FORM_ELEMENT = "FORM_ELEMENT"
    TEXT = "TEXT"
    VALUE = "VALUE"


# Allowed referenced-element types, ordered as they appear in error messages.
NUMERIC_ELEMENT_TYPES: Tuple[str, ...] = (
    ElementType.NUMBER.value,
    ElementType.CALCULATION.value,
)

OPTION_ELEMENT_TYPES: Tuple[str, ...] = (
    ElementType.SELECT.value,
    ElementType.RADIO.value,
    ElementType.CHECKBOXES.value,
    ElementType.AUTOCOMPLETE.value,
    ElementType.COMPLIANCE.value,
)

ADDRESS_ELEMENT_TYPES: Tuple[str, ...] = (
    ElementType.POINT_ADDRESS.value,
    ElementType.GEOSCAPE_ADDRESS.value,
)

CONTAINER_ELEMENT_TYPES: Tuple[str, ...] = (
    ElementType.SECTION.value,
    ElementType.REPEATABLE_SET.value,
    ElementType.PAGE.value,
    ElementType.FORM.value,
    ElementType.INFO_PAGE.value,
)

ENCRYPTABLE_ELEMENT_TYPES: Tuple[str, ...] = (
    ElementType.TEXT.value,
    ElementType.EMAIL.value,
    ElementType.TELEPHONE.value,
    ElementType.BARCODE_SCANNER.value,
    ElementType.RADIO.value,
    ElementType.AUTOCOMPLETE.value,
    ElementType.CAMERA.value,
    ElementType.DRAW.value,
    ElementType.FILES.value,
    ElementType.FILE.value,
    ElementType.SELECT.value,
)

# Predicate kinds in the order the form builder lists them.
ALL_PREDICATE_TYPES: Tuple[str, ...] = (
    PredicateType.REPEATABLESET.value,
    PredicateType.OPTIONS.value,
    PredicateType.NUMERIC.value,
    PredicateType.VALUE.value,
    PredicateType.BETWEEN.value,
    PredicateType.FORM.value,
    PredicateType.ADDRESS_PROPERTY.value,
)

# A repeatable set predicate cannot nest another repeatable set predicate.
REPEATABLE_SET_PREDICATE_TYPES: Tuple[str, ...] = tuple(
    t for t in ALL_PREDICATE_TYPES if t != PredicateType.REPEATABLESET.value
)


class IssueDict(TypedDict):
    """Serialized form of a structural issue."""
    path: str
    code: str
    message: str
    expected: NotRequired[object]
    received: NotRequired[object]


__all__ = [
    "ElementType",
    "PredicateType",
    "SubmissionEventType",
    "IssueCode",
    "CompareWith",
    "AddressProperty",
    "MappingType",
    "NUMERIC_ELEMENT_TYPES",
    "OPTION_ELEMENT_TYPES",
    "ADDRESS_ELEMENT_TYPES",
    "CONTAINER_ELEMENT_TYPES",
    "ENCRYPTABLE_ELEMENT_TYPES",
    "ALL_PREDICATE_TYPES",
    "REPEATABLE_SET_PREDICATE_TYPES",
    "IssueDict",
]
