"""Structural schema representation.

A StructuralSchema describes one node of a form definition: the JSON Schema
fragment of every field it declares, which fields are required, which fields are
always removed for this variant, the sibling-field rules that JSON Schema cannot
express, and the composed schemas of nested nodes (predicates, configurations,
child elements).

Registry entries are templates with no nested schemas; the composer fills in
``objects`` and ``arrays`` for a concrete node. ``to_json_schema`` renders the
composed tree as a single Draft 7 document.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from formguard.fields import Fields
from formguard.types import IssueCode

PathPart = Union[str, int]
Path = Tuple[PathPart, ...]


@dataclass(frozen=True)
class RuleViolation:
    """A failed sibling-field rule, relative to the node the rule ran on.

    Attributes:
        path: Path of the offending field, relative to the node
        code: Issue code
        detail: Message text that follows the quoted path
        expected: Optional bound or value that was expected
        received: Optional value that was received
    """
    path: Path
    code: IssueCode
    detail: str
    expected: Optional[Any] = None
    received: Optional[Any] = None


Rule = Callable[[Mapping[str, Any]], Iterable[RuleViolation]]


@dataclass(frozen=True)
class StructuralSchema:
    """Schema of one node in a form definition.

    Attributes:
        fields: JSON Schema fragment per declared field, in report order
        required: Fields that must be present
        stripped: Fields removed from the node regardless of options
        rules: Sibling-field rules run against the normalized node
        objects: Composed schemas of nested object fields
        arrays: Composed schemas of nested array items, by position
    """
    fields: Fields = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    stripped: FrozenSet[str] = frozenset()
    rules: Tuple[Rule, ...] = ()
    objects: Dict[str, "StructuralSchema"] = field(default_factory=dict)
    arrays: Dict[str, List["StructuralSchema"]] = field(default_factory=dict)

    def declares(self, name: str) -> bool:
        return name in self.fields or name in self.objects or name in self.arrays

    def field_order(self) -> List[str]:
        order = list(self.fields)
        order.extend(name for name in self.objects if name not in self.fields)
        order.extend(name for name in self.arrays if name not in self.fields)
        return order

    def to_json_schema(self) -> Dict[str, Any]:
        """Render this schema and every composed child as a Draft 7 schema."""
        properties: Dict[str, Any] = {name: dict(fragment) for name, fragment in self.fields.items()}
        for name, nested in self.objects.items():
            properties[name] = nested.to_json_schema()
        for name, items in self.arrays.items():
            if not items:
                continue
            fragment = dict(properties.get(name, {"type": "array"}))
            fragment["items"] = [item.to_json_schema() for item in items]
            properties[name] = fragment
        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if self.required:
            schema["required"] = list(self.required)
        return schema


def format_path(path: Iterable[PathPart]) -> str:
    """Format a path tuple as a bracket/dot string.

    Examples:
        >>> format_path(("elements", 1, "conditionallyShowPredicates", 0, "max"))
        'elements[1].conditionallyShowPredicates[0].max'
        >>> format_path(())
        'value'
    """
    text = ""
    for part in path:
        if isinstance(part, int):
            text += f"[{part}]"
        elif text:
            text += f".{part}"
        else:
            text = str(part)
    return text or "value"


def format_number(value: Any) -> str:
    """Render a bound the way it was written (8.0 renders as 8)."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "PathPart",
    "Path",
    "RuleViolation",
    "Rule",
    "StructuralSchema",
    "format_path",
    "format_number",
]
