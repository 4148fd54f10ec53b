"""Shared field schemas for form elements, predicates and events.

Every field is described by a JSON Schema (Draft 7) fragment. A ``default`` key
in a fragment is applied by normalization when the field is absent. Field groups
are returned as fresh ordered dicts so element schemas can merge them without
sharing state; the declaration order is the order issues are reported in.
"""

from typing import Any, Dict, Iterable, Optional

Fragment = Dict[str, Any]
Fields = Dict[str, Fragment]

GUID_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
URL_PATTERN = r"^https?://\S+$"


def string(**constraints: Any) -> Fragment:
    return {"type": "string", **constraints}


def guid() -> Fragment:
    return {"type": "string", "pattern": GUID_PATTERN}


def boolean(default: Optional[bool] = None) -> Fragment:
    fragment: Fragment = {"type": "boolean"}
    if default is not None:
        fragment["default"] = default
    return fragment


def integer(minimum: Optional[int] = None, maximum: Optional[int] = None) -> Fragment:
    fragment: Fragment = {"type": "integer"}
    if minimum is not None:
        fragment["minimum"] = minimum
    if maximum is not None:
        fragment["maximum"] = maximum
    return fragment


def number(**constraints: Any) -> Fragment:
    return {"type": "number", **constraints}


def enum(values: Iterable[str], default: Optional[str] = None) -> Fragment:
    fragment: Fragment = {"type": "string", "enum": list(values)}
    if default is not None:
        fragment["default"] = default
    return fragment


def array(items: Optional[Fragment] = None, min_items: Optional[int] = None, **extra: Any) -> Fragment:
    fragment: Fragment = {"type": "array"}
    if items is not None:
        fragment["items"] = items
    if min_items is not None:
        fragment["minItems"] = min_items
    fragment.update(extra)
    return fragment


def string_array(min_items: Optional[int] = None, default: Optional[list] = None) -> Fragment:
    fragment = array(string(), min_items=min_items)
    if default is not None:
        fragment["default"] = default
    return fragment


def obj(properties: Optional[Fields] = None, required: Iterable[str] = ()) -> Fragment:
    fragment: Fragment = {"type": "object"}
    if properties:
        fragment["properties"] = properties
    required = list(required)
    if required:
        fragment["required"] = required
    return fragment


# ---------------------------------------------------------------------------
# Element field groups
# ---------------------------------------------------------------------------

def base_fields() -> Fields:
    return {"id": guid(), "type": string()}


def display_fields(with_name: bool = True) -> Fields:
    fields: Fields = {}
    if with_name:
        fields["name"] = string(minLength=1)
    fields["label"] = string()
    fields["hint"] = string()
    fields["hintPosition"] = enum(["TOOLTIP", "BELOW_LABEL"])
    return fields


def conditionally_show_fields() -> Fields:
    return {
        "conditionallyShow": boolean(default=False),
        "requiresAllConditionallyShowPredicates": boolean(default=False),
        "conditionallyShowPredicates": array(),
    }


def input_fields() -> Fields:
    return {
        "required": boolean(default=False),
        "requiredMessage": string(),
        "readOnly": boolean(default=False),
    }


def lookup_fields() -> Fields:
    return {
        "isDataLookup": boolean(default=False),
        "dataLookupId": integer(minimum=1),
        "isElementLookup": boolean(default=False),
        "elementLookupId": integer(minimum=1),
    }


def placeholder_fields() -> Fields:
    return {"placeholderValue": string()}


def regex_fields() -> Fields:
    return {
        "regexPattern": string(),
        "regexFlags": string(pattern=r"^[dgimsuvy]*$"),
        "regexMessage": string(),
    }


def option_item() -> Fragment:
    return obj(
        {
            "id": string(minLength=1),
            "value": string(),
            "label": string(),
            "colour": string(),
        },
        required=("id", "value", "label"),
    )


def option_fields(default_options: Optional[list] = None) -> Fields:
    options = array(option_item())
    if default_options is not None:
        options["default"] = default_options
    return {
        "optionsType": enum(["CUSTOM", "DYNAMIC", "SEARCH"], default="CUSTOM"),
        "options": options,
        "dynamicOptionSetId": integer(minimum=1),
        "conditionallyShowOptions": boolean(default=False),
    }


def date_fields() -> Fields:
    return {
        "fromDate": string(),
        "fromDateDaysOffset": integer(),
        "toDate": string(),
        "toDateDaysOffset": integer(),
        "defaultValue": string(),
    }


def file_fields() -> Fields:
    return {
        "restrictFileTypes": boolean(default=False),
        "restrictedFileTypes": string_array(min_items=1),
        "maxFileSize": number(exclusiveMinimum=0),
    }


def css_fields() -> Fields:
    return {"customCssClasses": string_array()}


def merge(*groups: Fields) -> Fields:
    """Merge field groups left to right, keeping first-seen order."""
    merged: Fields = {}
    for group in groups:
        merged.update(group)
    return merged


__all__ = [
    "Fragment",
    "Fields",
    "GUID_PATTERN",
    "URL_PATTERN",
    "string",
    "guid",
    "boolean",
    "integer",
    "number",
    "enum",
    "array",
    "string_array",
    "obj",
    "base_fields",
    "display_fields",
    "conditionally_show_fields",
    "input_fields",
    "lookup_fields",
    "placeholder_fields",
    "regex_fields",
    "option_item",
    "option_fields",
    "date_fields",
    "file_fields",
    "css_fields",
    "merge",
]
