"""Structural validation of form definitions.

This module provides a StructuralValidator that checks a form definition (or any
single node of one) against its composed StructuralSchema and produces a
normalized copy plus every structural issue, in document order.

Validation runs in two steps:

1. normalize: strip fields the node's variant never declares (and, with
   ``strip_unknown``, every undeclared field) and apply declared defaults.
   Normalization never fails.
2. validate: run jsonschema's Draft7Validator over the normalized value and the
   schema's sibling-field rules over each normalized node, then translate every
   failure into a SchemaIssue with a form-builder style message.

Issues are ordered by element index, then by the order fields are declared in
the node's schema.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import jsonschema
from jsonschema import Draft7Validator

from formguard.composer import SchemaComposer
from formguard.config import ValidationOptions
from formguard.errors import SchemaIssue
from formguard.fields import GUID_PATTERN, URL_PATTERN
from formguard.schema import Path, RuleViolation, StructuralSchema, format_number, format_path
from formguard.types import IssueCode

logger = logging.getLogger(__name__)

# Sort position of fields a schema does not declare.
UNDECLARED = 10 ** 6

TYPE_NOUNS = {
    "string": "a string",
    "number": "a number",
    "integer": "an integer",
    "boolean": "a boolean",
    "array": "an array",
    "null": "null",
}


@dataclass(frozen=True)
class StructuralResult:
    """Result of structurally validating a form definition or node.

    Attributes:
        is_valid: Whether the value passed every structural check
        errors: Structural issues in document order (empty if valid)
        data: The normalized value (defaults applied, stripped fields removed)
        missing_fields: Paths of required fields that are missing
        invalid_fields: Paths of fields that failed any other check

    Examples:
        >>> result = StructuralValidator().validate({"name": "Intake"})
        >>> result.is_valid
        True
        >>> result.data["isMultiPage"]
        False
    """
    is_valid: bool
    errors: List[SchemaIssue]
    data: Any = None
    missing_fields: Optional[List[str]] = None
    invalid_fields: Optional[List[str]] = None

    @property
    def message(self) -> Optional[str]:
        """Every issue message joined with ". ", or None when valid."""
        if not self.errors:
            return None
        return ". ".join(issue.message for issue in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
        }
        if self.data is not None:
            result["data"] = self.data
        if self.missing_fields is not None:
            result["missingFields"] = self.missing_fields
        if self.invalid_fields is not None:
            result["invalidFields"] = self.invalid_fields
        return result


def normalize(node: Any, schema: StructuralSchema, options: ValidationOptions) -> Any:
    """Return a normalized copy of ``node``; non-object values are returned as-is."""
    if not isinstance(node, Mapping):
        return node

    result: Dict[str, Any] = {}
    for key, value in node.items():
        if key in schema.stripped:
            continue
        if options.strip_unknown and not schema.declares(key):
            continue
        result[key] = value

    for name, fragment in schema.fields.items():
        if name not in result and "default" in fragment:
            result[name] = copy.deepcopy(fragment["default"])

    for name, nested in schema.objects.items():
        if name in result:
            result[name] = normalize(result[name], nested, options)

    for name, items in schema.arrays.items():
        value = result.get(name)
        if isinstance(value, list) and items:
            result[name] = [normalize(item, item_schema, options) for item, item_schema in zip(value, items)]

    return result


def iter_rule_violations(
    node: Any, schema: StructuralSchema, path: Path = ()
) -> Iterator[Tuple[Path, RuleViolation]]:
    """Run every sibling-field rule in the composed tree, depth-first."""
    if not isinstance(node, Mapping):
        return
    for rule in schema.rules:
        for violation in rule(node):
            yield path + violation.path, violation
    for name, nested in schema.objects.items():
        yield from iter_rule_violations(node.get(name), nested, path + (name,))
    for name, items in schema.arrays.items():
        value = node.get(name)
        if not isinstance(value, list):
            continue
        for index, (item, item_schema) in enumerate(zip(value, items)):
            yield from iter_rule_violations(item, item_schema, path + (name, index))


def document_order_key(path: Path, schema: StructuralSchema) -> Tuple[Tuple[int, str], ...]:
    """Sort key placing ``path`` in document order.

    Indexes sort numerically; field names sort by their declaration order in the
    schema of the node that holds them.
    """
    key: List[Tuple[int, str]] = []
    node_schema: Optional[StructuralSchema] = schema
    items: Optional[List[StructuralSchema]] = None
    for part in path:
        if isinstance(part, int):
            key.append((part, ""))
            node_schema = items[part] if items is not None and part < len(items) else None
            items = None
            continue
        order = node_schema.field_order() if node_schema is not None else []
        key.append((order.index(part), part) if part in order else (UNDECLARED, part))
        if node_schema is None:
            items = None
        else:
            items = node_schema.arrays.get(part)
            node_schema = node_schema.objects.get(part)
    return tuple(key)


class StructuralValidator:
    """Structural validator for form definitions.

    Composes the schema of the input with a SchemaComposer, normalizes the
    input, validates it with jsonschema plus the schema's sibling-field rules,
    and translates every failure into a SchemaIssue.

    Attributes:
        composer: Composer used to build schemas for whole form definitions

    Examples:
        >>> validator = StructuralValidator()
        >>> result = validator.validate({
        ...     "name": "Intake",
        ...     "elements": [{
        ...         "id": "8e4d819b-97fa-438d-b613-a092d38c3b23",
        ...         "name": "Text",
        ...         "type": "text",
        ...         "minLength": 4,
        ...         "maxLength": 3,
        ...     }],
        ... })
        >>> result.errors[0].message
        '"elements[0].maxLength" must be greater than or equal to 4'
    """

    def __init__(self, composer: Optional[SchemaComposer] = None) -> None:
        self.composer = composer or SchemaComposer()

    def validate(self, document: Any, options: Optional[ValidationOptions] = None) -> StructuralResult:
        """Validate a whole form definition.

        Args:
            document: The untrusted form definition
            options: Validation options (default: collect every issue, keep
                undeclared fields)

        Returns:
            StructuralResult with the normalized document and ordered issues
        """
        schema = self.composer.compose_form(document)
        return self.validate_node(document, schema, options)

    def validate_node(
        self,
        node: Any,
        schema: StructuralSchema,
        options: Optional[ValidationOptions] = None,
    ) -> StructuralResult:
        """Validate any node against an already composed schema."""
        options = options or ValidationOptions()
        data = normalize(node, schema, options)

        found: List[Tuple[Path, SchemaIssue]] = []
        seen_paths = set()
        for error in Draft7Validator(schema.to_json_schema()).iter_errors(data):
            path, issue = self._translate_error(error)
            # One jsonschema issue per field, like a per-key type check.
            if path in seen_paths:
                continue
            seen_paths.add(path)
            found.append((path, issue))

        for path, violation in iter_rule_violations(data, schema):
            found.append((path, self._translate_violation(path, violation)))

        found.sort(key=lambda item: document_order_key(item[0], schema))
        issues = [issue for _, issue in found]
        if options.abort_early:
            issues = issues[:1]

        logger.debug("Structural validation finished with %d issue(s)", len(issues))
        if not issues:
            return StructuralResult(
                is_valid=True,
                errors=[],
                data=data,
                missing_fields=[],
                invalid_fields=[],
            )
        first = issues[0]
        logger.debug(
            "First structural issue: %s",
            first.message,
            extra={"path": first.path, "issue_code": first.code.value},
        )
        return StructuralResult(
            is_valid=False,
            errors=issues,
            data=data,
            missing_fields=[i.path for i in issues if i.code == IssueCode.REQUIRED],
            invalid_fields=[i.path for i in issues if i.code != IssueCode.REQUIRED],
        )

    def _translate_violation(self, path: Path, violation: RuleViolation) -> SchemaIssue:
        label = format_path(path)
        return SchemaIssue(
            path=label,
            code=violation.code,
            message=f'"{label}" {violation.detail}',
            expected=violation.expected,
            received=violation.received,
        )

    def _translate_error(self, error: jsonschema.ValidationError) -> Tuple[Path, SchemaIssue]:
        """Translate a jsonschema ValidationError to a SchemaIssue.

        Error mapping:
            - 'required' property errors -> REQUIRED
            - 'type' errors -> INVALID_TYPE
            - 'enum' or 'const' errors -> INVALID_VALUE
            - 'pattern' and 'format' errors -> INVALID_FORMAT
            - 'minLength' / 'minItems' errors -> TOO_SHORT
            - 'maxLength' / 'maxItems' errors -> TOO_LONG
            - 'minimum' / 'exclusiveMinimum' errors -> TOO_SMALL
            - 'maximum' / 'exclusiveMaximum' errors -> TOO_LARGE
            - Anything else -> CUSTOM
        """
        path: Path = tuple(error.absolute_path)

        if error.validator == "required":
            # The missing property is in error.message, extract it
            missing_prop = error.message.split("'")[1] if "'" in error.message else "field"
            path = path + (missing_prop,)
            return path, self._issue(path, IssueCode.REQUIRED, "is required", expected="required field")

        value = error.validator_value
        instance = error.instance

        if error.validator == "type":
            return path, self._issue(
                path,
                IssueCode.INVALID_TYPE,
                self._type_detail(value),
                expected=value,
                received=type(instance).__name__,
            )

        if error.validator in ("enum", "const"):
            allowed = value if isinstance(value, list) else [value]
            return path, self._issue(
                path,
                IssueCode.INVALID_VALUE,
                f"must be one of [{', '.join(str(v) for v in allowed)}]",
                expected=allowed,
                received=instance,
            )

        if error.validator == "pattern":
            if value == GUID_PATTERN:
                detail = "must be a valid GUID"
            elif value == URL_PATTERN:
                detail = "must be a valid uri"
            else:
                detail = f'with value "{instance}" fails to match the required pattern: /{value}/'
            return path, self._issue(path, IssueCode.INVALID_FORMAT, detail, expected=value, received=instance)

        if error.validator == "format":
            return path, self._issue(
                path, IssueCode.INVALID_FORMAT, f"must be a valid {value}", expected=value, received=instance
            )

        if error.validator == "minLength":
            return path, self._issue(
                path,
                IssueCode.TOO_SHORT,
                f"length must be at least {value} characters long",
                expected=value,
                received=len(instance),
            )

        if error.validator == "maxLength":
            return path, self._issue(
                path,
                IssueCode.TOO_LONG,
                f"length must be less than or equal to {value} characters long",
                expected=value,
                received=len(instance),
            )

        if error.validator == "minItems":
            return path, self._issue(
                path, IssueCode.TOO_SHORT, f"must contain at least {value} items", expected=value, received=len(instance)
            )

        if error.validator == "maxItems":
            return path, self._issue(
                path,
                IssueCode.TOO_LONG,
                f"must contain less than or equal to {value} items",
                expected=value,
                received=len(instance),
            )

        numeric_details = {
            "minimum": (IssueCode.TOO_SMALL, "must be greater than or equal to"),
            "exclusiveMinimum": (IssueCode.TOO_SMALL, "must be greater than"),
            "maximum": (IssueCode.TOO_LARGE, "must be less than or equal to"),
            "exclusiveMaximum": (IssueCode.TOO_LARGE, "must be less than"),
        }
        if error.validator in numeric_details:
            code, phrase = numeric_details[error.validator]
            return path, self._issue(
                path, code, f"{phrase} {format_number(value)}", expected=value, received=instance
            )

        # Generic fallback for other validation errors
        return path, self._issue(path, IssueCode.CUSTOM, error.message, expected=value, received=instance)

    @staticmethod
    def _type_detail(expected: Any) -> str:
        if expected == "object":
            return "must be of type object"
        names = expected if isinstance(expected, list) else [expected]
        return "must be " + " or ".join(TYPE_NOUNS.get(name, f"of type {name}") for name in names)

    @staticmethod
    def _issue(
        path: Path,
        code: IssueCode,
        detail: str,
        expected: Optional[Any] = None,
        received: Optional[Any] = None,
    ) -> SchemaIssue:
        label = format_path(path)
        return SchemaIssue(
            path=label,
            code=code,
            message=f'"{label}" {detail}',
            expected=expected,
            received=received,
        )


__all__ = [
    "StructuralResult",
    "StructuralValidator",
    "normalize",
    "iter_rule_violations",
    "document_order_key",
]
