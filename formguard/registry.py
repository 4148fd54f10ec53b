"""Element schema registry.

Maps every element type tag to the StructuralSchema template of that variant.
Templates declare fields, defaults, required fields and sibling-field rules; they
never contain composed children (see formguard.composer).

Usage:
    >>> from formguard.registry import default_registry
    >>> schema = default_registry.schema_for("text")
    >>> "maxLength" in schema.fields
    True
    >>> default_registry.schema_for("hologram")
    Traceback (most recent call last):
        ...
    formguard.errors.UnknownElementTypeError: Unknown element type: 'hologram'
"""

from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from formguard import fields as f
from formguard import rules
from formguard.errors import UnknownElementTypeError
from formguard.fields import Fields
from formguard.schema import Rule, RuleViolation, StructuralSchema
from formguard.types import ElementType, IssueCode

# Fields that only some variants declare. On every other variant they are
# removed during normalization instead of being reported.
VARIANT_ONLY_FIELDS: Dict[str, Tuple[str, ...]] = {
    "includeTimestampWatermark": (ElementType.CAMERA.value, ElementType.DRAW.value),
    "multi": (ElementType.SELECT.value,),
    "canToggleAll": (ElementType.CHECKBOXES.value,),
    "isCollapsed": (ElementType.SECTION.value,),
}

NAMED = ("id", "type", "name")
UNNAMED = ("id", "type")

COMPLIANCE_OPTIONS = [
    {"id": "COMPLIANT", "value": "COMPLIANT", "label": "Compliant"},
    {"id": "NOT_COMPLIANT", "value": "NOT_COMPLIANT", "label": "Not Compliant"},
    {"id": "PARTIALLY_COMPLIANT", "value": "PARTIALLY_COMPLIANT", "label": "Partially Compliant"},
    {"id": "NOT_APPLICABLE", "value": "NOT_APPLICABLE", "label": "Not Applicable"},
]

CONDITIONAL_RULES: Tuple[Rule, ...] = (
    rules.non_empty_when("conditionallyShowPredicates", "conditionallyShow"),
)

LOOKUP_RULES: Tuple[Rule, ...] = (
    rules.required_when("dataLookupId", "isDataLookup"),
    rules.required_when("elementLookupId", "isElementLookup"),
)

OPTION_RULES: Tuple[Rule, ...] = (
    rules.non_empty_when("options", "optionsType", "CUSTOM"),
    rules.unique_items("options", "id"),
    rules.unique_items("options", "value"),
    rules.required_when("dynamicOptionSetId", "optionsType", "DYNAMIC"),
)

CONTAINER_RULES: Tuple[Rule, ...] = (
    rules.unique_items("elements", "name"),
    rules.unique_items("elements", "id"),
)

LENGTH_RULES: Tuple[Rule, ...] = (
    rules.at_least("maxLength", "minLength"),
    rules.length_within("defaultValue", "minLength", "maxLength"),
)

REGEX_RULES: Tuple[Rule, ...] = (
    rules.forbidden_when("regexFlags", "regexPattern", None),
)

DATE_RULES: Tuple[Rule, ...] = (
    rules.iso_date("fromDate", allow_now=True),
    rules.iso_date("toDate", allow_now=True),
    rules.iso_date("defaultValue", allow_now=True),
    rules.date_not_before("toDate", "fromDate"),
)

FILE_RULES: Tuple[Rule, ...] = (
    rules.required_when("restrictedFileTypes", "restrictFileTypes"),
)


def default_value_matches_multi(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
    """A multi-select default is a list of values; a single-select default is one value."""
    value = node.get("defaultValue")
    if node.get("multi") is True and isinstance(value, str):
        yield RuleViolation(
            path=("defaultValue",),
            code=IssueCode.INVALID_TYPE,
            detail="must be an array",
            expected="array",
            received="string",
        )
    elif node.get("multi") is not True and isinstance(value, list):
        yield RuleViolation(
            path=("defaultValue",),
            code=IssueCode.INVALID_TYPE,
            detail="must be a string",
            expected="string",
            received="array",
        )


def _template(
    type_tag: ElementType,
    fields: Fields,
    required: Tuple[str, ...] = NAMED,
    extra_rules: Tuple[Rule, ...] = (),
) -> StructuralSchema:
    stripped = frozenset(
        name for name, owners in VARIANT_ONLY_FIELDS.items() if type_tag.value not in owners
    )
    schema_rules = CONDITIONAL_RULES + extra_rules
    if "isDataLookup" in fields:
        schema_rules += LOOKUP_RULES
    return StructuralSchema(
        fields=fields,
        required=required,
        stripped=stripped,
        rules=schema_rules,
    )


def _input_fields(*groups: Fields) -> Fields:
    """Fields shared by elements that capture a value."""
    return f.merge(
        f.base_fields(),
        f.display_fields(),
        f.input_fields(),
        f.conditionally_show_fields(),
        f.lookup_fields(),
        *groups,
        f.css_fields(),
    )


def _plain_fields(*groups: Fields, with_name: bool = True) -> Fields:
    """Fields shared by elements without lookups or a required flag."""
    return f.merge(
        f.base_fields(),
        f.display_fields(with_name=with_name),
        f.conditionally_show_fields(),
        *groups,
        f.css_fields(),
    )


def _nested_elements(required: bool = True) -> Fields:
    return {"elements": f.array(min_items=1) if required else f.array()}


# ---------------------------------------------------------------------------
# Variant builders
# ---------------------------------------------------------------------------

def _text_like(type_tag: ElementType) -> StructuralSchema:
    return _template(
        type_tag,
        _input_fields(
            f.placeholder_fields(),
            {
                "defaultValue": f.string(),
                "minLength": f.integer(minimum=0),
                "maxLength": f.integer(minimum=0),
            },
            f.regex_fields(),
        ),
        extra_rules=LENGTH_RULES + REGEX_RULES,
    )


def _number() -> StructuralSchema:
    return _template(
        ElementType.NUMBER,
        _input_fields(
            f.placeholder_fields(),
            {
                "defaultValue": f.number(),
                "minNumber": f.number(),
                "maxNumber": f.number(),
                "isInteger": f.boolean(default=False),
                "isSlider": f.boolean(default=False),
                "sliderIncrement": f.number(exclusiveMinimum=0),
                "unit": f.string(),
            },
        ),
        extra_rules=(
            rules.at_least("maxNumber", "minNumber"),
            rules.number_within("defaultValue", "minNumber", "maxNumber"),
            rules.integer_when("defaultValue", "isInteger"),
            rules.integer_when("minNumber", "isInteger"),
            rules.integer_when("maxNumber", "isInteger"),
            rules.required_when("minNumber", "isSlider"),
            rules.required_when("maxNumber", "isSlider"),
        ),
    )


def _simple_input(type_tag: ElementType, *groups: Fields, extra_rules: Tuple[Rule, ...] = ()) -> StructuralSchema:
    return _template(type_tag, _input_fields(*groups), extra_rules=extra_rules)


def _date_like(type_tag: ElementType) -> StructuralSchema:
    return _template(
        type_tag,
        _input_fields(f.placeholder_fields(), f.date_fields()),
        extra_rules=DATE_RULES,
    )


def _select() -> StructuralSchema:
    return _template(
        ElementType.SELECT,
        _input_fields(
            f.option_fields(),
            {
                "multi": f.boolean(default=False),
                "defaultValue": {"type": ["string", "array"], "items": f.string()},
            },
        ),
        extra_rules=OPTION_RULES + (default_value_matches_multi,),
    )


def _radio() -> StructuralSchema:
    return _template(
        ElementType.RADIO,
        _input_fields(
            f.option_fields(),
            {"buttons": f.boolean(default=False), "defaultValue": f.string()},
        ),
        extra_rules=OPTION_RULES,
    )


def _checkboxes() -> StructuralSchema:
    return _template(
        ElementType.CHECKBOXES,
        _input_fields(
            f.option_fields(),
            {
                "buttons": f.boolean(default=False),
                "canToggleAll": f.boolean(default=False),
                "defaultValue": f.string_array(),
            },
        ),
        extra_rules=OPTION_RULES,
    )


def _autocomplete() -> StructuralSchema:
    return _template(
        ElementType.AUTOCOMPLETE,
        _input_fields(
            f.option_fields(),
            f.placeholder_fields(),
            {
                "searchUrl": f.string(pattern=f.URL_PATTERN),
                "defaultValue": f.string(),
            },
        ),
        extra_rules=OPTION_RULES + (rules.required_when("searchUrl", "optionsType", "SEARCH"),),
    )


def _compliance() -> StructuralSchema:
    return _template(
        ElementType.COMPLIANCE,
        _input_fields(
            f.option_fields(default_options=COMPLIANCE_OPTIONS),
            {"defaultValue": f.string(), "notesLabel": f.string()},
        ),
        extra_rules=OPTION_RULES,
    )


def _camera() -> StructuralSchema:
    return _template(
        ElementType.CAMERA,
        _input_fields({"includeTimestampWatermark": f.boolean(default=False)}),
    )


def _draw() -> StructuralSchema:
    return _template(
        ElementType.DRAW,
        _input_fields({"includeTimestampWatermark": f.boolean()}),
    )


def _file() -> StructuralSchema:
    return _template(ElementType.FILE, _input_fields(f.file_fields()), extra_rules=FILE_RULES)


def _files() -> StructuralSchema:
    return _template(
        ElementType.FILES,
        _input_fields(
            f.file_fields(),
            {"minEntries": f.integer(minimum=0), "maxEntries": f.integer(minimum=0)},
        ),
        extra_rules=FILE_RULES + (rules.at_least("maxEntries", "minEntries"),),
    )


def _barcode_scanner() -> StructuralSchema:
    return _template(
        ElementType.BARCODE_SCANNER,
        _input_fields(
            {
                "defaultValue": f.string(),
                "restrictBarcodeTypes": f.boolean(default=False),
                "restrictedBarcodeTypes": f.string_array(min_items=1),
            },
        ),
        extra_rules=(rules.required_when("restrictedBarcodeTypes", "restrictBarcodeTypes"),),
    )


def _calculation() -> StructuralSchema:
    return _template(
        ElementType.CALCULATION,
        _plain_fields(
            {
                "calculation": f.string(minLength=1),
                "defaultValue": f.string(),
                "preCalculationDisplay": f.string(),
                "displayAsCurrency": f.boolean(default=False),
            },
        ),
        required=NAMED + ("calculation",),
    )


def _heading() -> StructuralSchema:
    return _template(
        ElementType.HEADING,
        _plain_fields({"headingType": f.integer(minimum=1, maximum=5), "defaultValue": f.string()}),
        required=UNNAMED + ("headingType", "defaultValue"),
    )


def _html() -> StructuralSchema:
    return _template(
        ElementType.HTML,
        _plain_fields({"defaultValue": f.string()}),
        required=UNNAMED + ("defaultValue",),
    )


def _image() -> StructuralSchema:
    return _template(
        ElementType.IMAGE,
        _plain_fields(
            {"defaultValue": f.string(), "displayAsFullWidth": f.boolean(default=False)},
        ),
        required=UNNAMED + ("defaultValue",),
    )


def _address(type_tag: ElementType) -> StructuralSchema:
    return _simple_input(
        type_tag,
        f.placeholder_fields(),
        {"addressTypeFilter": f.string_array(), "stateTerritoryFilter": f.string_array()},
    )


def _civica_name_record() -> StructuralSchema:
    trio: Fields = {"useGeoscapeAddressing": f.boolean(default=False)}
    trio["titleLabel"] = f.string()
    trio["familyNameLabel"] = f.string()
    for part in (
        "givenName1",
        "emailAddress",
        "homePhone",
        "businessPhone",
        "mobilePhone",
        "faxPhone",
    ):
        trio[f"{part}Label"] = f.string()
        trio[f"{part}IsRequired"] = f.boolean(default=False)
        trio[f"{part}IsHidden"] = f.boolean(default=False)
    for label in ("streetAddressesLabel", "address1Label", "address2Label", "postcodeLabel"):
        trio[label] = f.string()
    return _template(
        ElementType.CIVICA_NAME_RECORD,
        f.merge(
            f.base_fields(),
            f.display_fields(),
            f.input_fields(),
            f.conditionally_show_fields(),
            trio,
            f.css_fields(),
        ),
    )


def _bsb() -> StructuralSchema:
    return _simple_input(
        ElementType.BSB,
        f.placeholder_fields(),
        {"defaultValue": f.string(pattern=r"^\d{3}-\d{3}$")},
    )


def _captcha() -> StructuralSchema:
    return _template(ElementType.CAPTCHA, _plain_fields(f.input_fields()))


def _summary() -> StructuralSchema:
    return _template(
        ElementType.SUMMARY,
        _plain_fields({"elementIds": f.array(f.guid(), min_items=1)}),
        required=NAMED + ("elementIds",),
    )


def _lookup_button() -> StructuralSchema:
    return _template(
        ElementType.LOOKUP_BUTTON,
        _plain_fields(f.lookup_fields(), {"elementDependencies": f.array()}),
    )


def _arcgis_web_map() -> StructuralSchema:
    return _template(
        ElementType.ARCGIS_WEB_MAP,
        _input_fields({"webMapId": f.string(minLength=1), "showLayerPanel": f.boolean(default=False)}),
        required=NAMED + ("webMapId",),
    )


def _freshdesk_dependent_field() -> StructuralSchema:
    return _template(
        ElementType.FRESHDESK_DEPENDENT_FIELD,
        _input_fields({"freshdeskFieldName": f.string(minLength=1)}),
        required=NAMED + ("freshdeskFieldName",),
    )


def _repeatable_set() -> StructuralSchema:
    return _template(
        ElementType.REPEATABLE_SET,
        _plain_fields(
            {"readOnly": f.boolean(default=False)},
            {
                "minSetEntries": f.integer(minimum=0),
                "maxSetEntries": f.integer(minimum=0),
                "addSetEntryLabel": f.string(),
                "removeSetEntryLabel": f.string(),
            },
            _nested_elements(),
        ),
        required=NAMED + ("elements",),
        extra_rules=CONTAINER_RULES + (rules.at_least("maxSetEntries", "minSetEntries"),),
    )


def _section() -> StructuralSchema:
    return _template(
        ElementType.SECTION,
        _plain_fields(
            {"isCollapsed": f.boolean(default=False)},
            _nested_elements(),
            with_name=False,
        ),
        required=UNNAMED + ("elements",),
        extra_rules=CONTAINER_RULES,
    )


def _page() -> StructuralSchema:
    return _template(
        ElementType.PAGE,
        _plain_fields(_nested_elements(), with_name=False),
        required=UNNAMED + ("elements",),
        extra_rules=CONTAINER_RULES,
    )


def _form_reference(type_tag: ElementType) -> StructuralSchema:
    # ``elements`` is only present when the referenced form was injected by
    # the caller; it is never fetched here.
    return _template(
        type_tag,
        _plain_fields({"formId": f.integer(minimum=1)}, _nested_elements(required=False)),
        required=NAMED + ("formId",),
        extra_rules=CONTAINER_RULES,
    )


ELEMENT_SCHEMA_BUILDERS: Dict[ElementType, Callable[[], StructuralSchema]] = {
    ElementType.TEXT: lambda: _text_like(ElementType.TEXT),
    ElementType.TEXTAREA: lambda: _text_like(ElementType.TEXTAREA),
    ElementType.NUMBER: _number,
    ElementType.EMAIL: lambda: _simple_input(
        ElementType.EMAIL, f.placeholder_fields(), {"defaultValue": f.string()}
    ),
    ElementType.TELEPHONE: lambda: _simple_input(
        ElementType.TELEPHONE,
        f.placeholder_fields(),
        {"defaultValue": f.string()},
        f.regex_fields(),
        extra_rules=REGEX_RULES,
    ),
    ElementType.DATE: lambda: _date_like(ElementType.DATE),
    ElementType.DATETIME: lambda: _date_like(ElementType.DATETIME),
    ElementType.TIME: lambda: _date_like(ElementType.TIME),
    ElementType.BOOLEAN: lambda: _simple_input(
        ElementType.BOOLEAN, {"defaultValue": f.boolean(default=False)}
    ),
    ElementType.SELECT: _select,
    ElementType.RADIO: _radio,
    ElementType.CHECKBOXES: _checkboxes,
    ElementType.AUTOCOMPLETE: _autocomplete,
    ElementType.CAMERA: _camera,
    ElementType.DRAW: _draw,
    ElementType.FILE: _file,
    ElementType.FILES: _files,
    ElementType.BARCODE_SCANNER: _barcode_scanner,
    ElementType.CALCULATION: _calculation,
    ElementType.HEADING: _heading,
    ElementType.HTML: _html,
    ElementType.IMAGE: _image,
    ElementType.LOCATION: lambda: _simple_input(ElementType.LOCATION),
    ElementType.GEOSCAPE_ADDRESS: lambda: _address(ElementType.GEOSCAPE_ADDRESS),
    ElementType.POINT_ADDRESS: lambda: _address(ElementType.POINT_ADDRESS),
    ElementType.GOOGLE_ADDRESS: lambda: _simple_input(
        ElementType.GOOGLE_ADDRESS, f.placeholder_fields()
    ),
    ElementType.POINT_CADASTRAL_PARCEL: lambda: _simple_input(ElementType.POINT_CADASTRAL_PARCEL),
    ElementType.CIVICA_STREET_NAME: lambda: _simple_input(
        ElementType.CIVICA_STREET_NAME, f.placeholder_fields()
    ),
    ElementType.CIVICA_NAME_RECORD: _civica_name_record,
    ElementType.ABN: lambda: _simple_input(
        ElementType.ABN, f.placeholder_fields(), {"defaultValue": f.string()}
    ),
    ElementType.BSB: _bsb,
    ElementType.CAPTCHA: _captcha,
    ElementType.SUMMARY: _summary,
    ElementType.COMPLIANCE: _compliance,
    ElementType.LOOKUP_BUTTON: _lookup_button,
    ElementType.ARCGIS_WEB_MAP: _arcgis_web_map,
    ElementType.API_NSW_LIQUOR_LICENCE: lambda: _simple_input(
        ElementType.API_NSW_LIQUOR_LICENCE, f.placeholder_fields()
    ),
    ElementType.FRESHDESK_DEPENDENT_FIELD: _freshdesk_dependent_field,
    ElementType.REPEATABLE_SET: _repeatable_set,
    ElementType.SECTION: _section,
    ElementType.PAGE: _page,
    ElementType.FORM: lambda: _form_reference(ElementType.FORM),
    ElementType.INFO_PAGE: lambda: _form_reference(ElementType.INFO_PAGE),
}

missing = set(ElementType) - set(ELEMENT_SCHEMA_BUILDERS)
if missing:
    raise RuntimeError(f"No schema builder for element types: {sorted(t.value for t in missing)}")
del missing


class ElementSchemaRegistry:
    """Lookup table from element type tag to StructuralSchema template.

    Attributes:
        schemas: Registered templates keyed by type tag, in registration order

    Examples:
        >>> registry = ElementSchemaRegistry()
        >>> registry.register("text", ELEMENT_SCHEMA_BUILDERS[ElementType.TEXT]())
        >>> "text" in registry
        True
        >>> registry.is_container("text")
        False
    """

    def __init__(self, schemas: Optional[Mapping[str, StructuralSchema]] = None) -> None:
        self._schemas: Dict[str, StructuralSchema] = dict(schemas or {})

    def register(self, type_tag: str, schema: StructuralSchema) -> None:
        """Register (or replace) the template for a type tag."""
        self._schemas[type_tag] = schema

    def schema_for(self, type_tag: Any) -> StructuralSchema:
        """Return the template for ``type_tag``.

        Raises:
            UnknownElementTypeError: If the tag is not registered
        """
        try:
            return self._schemas[type_tag]
        except (KeyError, TypeError):
            raise UnknownElementTypeError(type_tag) from None

    def fallback_schema(self, allowed: Optional[Sequence[str]] = None) -> StructuralSchema:
        """Template for a node whose type tag is missing, unregistered or not allowed.

        Only the identifying fields are checked, with ``type`` restricted to
        ``allowed`` (default: every registered tag) so the node reports which
        tags are accepted.
        """
        fields = f.merge(f.base_fields(), f.display_fields(), f.conditionally_show_fields())
        fields["type"] = f.enum(self.types() if allowed is None else allowed)
        return StructuralSchema(fields=fields, required=UNNAMED)

    def is_container(self, type_tag: Any) -> bool:
        """Whether elements of this type own a nested ``elements`` sequence."""
        try:
            return "elements" in self.schema_for(type_tag).fields
        except UnknownElementTypeError:
            return False

    def types(self) -> List[str]:
        return list(self._schemas)

    def __contains__(self, type_tag: Any) -> bool:
        try:
            return type_tag in self._schemas
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._schemas)


def build_default_registry() -> ElementSchemaRegistry:
    """Build a registry holding every built-in element variant."""
    return ElementSchemaRegistry(
        {type_tag.value: build() for type_tag, build in ELEMENT_SCHEMA_BUILDERS.items()}
    )


default_registry = build_default_registry()


__all__ = [
    "VARIANT_ONLY_FIELDS",
    "COMPLIANCE_OPTIONS",
    "ELEMENT_SCHEMA_BUILDERS",
    "ElementSchemaRegistry",
    "build_default_registry",
    "default_registry",
]
