"""Sibling-field rules for structural schemas.

Rules check constraints between fields of the same node, which JSON Schema
cannot express (a bound that depends on another field, an integer requirement
toggled by a flag). Each factory returns a Rule: a callable taking the
normalized node and yielding RuleViolation records.

A rule only fires when the fields it reads already have the right type; type
mismatches are reported by the JSON Schema pass.
"""

from datetime import datetime
from typing import Any, Iterator, Mapping, Optional

from dateutil import parser as date_parser

from formguard.schema import Rule, RuleViolation, format_number
from formguard.types import IssueCode

NOW = "NOW"


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_date(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 date or datetime string; None if it is not one."""
    if not isinstance(value, str):
        return None
    try:
        return date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None


def at_least(name: str, lower: str) -> Rule:
    """``name`` must be greater than or equal to ``lower``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value, bound = node.get(name), node.get(lower)
        if is_number(value) and is_number(bound) and value < bound:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_SMALL,
                detail=f"must be greater than or equal to {format_number(bound)}",
                expected=bound,
                received=value,
            )

    return rule


def length_within(name: str, min_name: str, max_name: str) -> Rule:
    """String ``name`` must have a length in ``[min_name, max_name]``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value = node.get(name)
        if not isinstance(value, str):
            return
        low, high = node.get(min_name), node.get(max_name)
        if is_number(low) and len(value) < low:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_SHORT,
                detail=f"length must be at least {format_number(low)} characters long",
                expected=low,
                received=len(value),
            )
        elif is_number(high) and len(value) > high:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_LONG,
                detail=f"length must be less than or equal to {format_number(high)} characters long",
                expected=high,
                received=len(value),
            )

    return rule


def number_within(name: str, min_name: str, max_name: str) -> Rule:
    """Number ``name`` must lie in ``[min_name, max_name]``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value = node.get(name)
        if not is_number(value):
            return
        low, high = node.get(min_name), node.get(max_name)
        if is_number(low) and value < low:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_SMALL,
                detail=f"must be greater than or equal to {format_number(low)}",
                expected=low,
                received=value,
            )
        elif is_number(high) and value > high:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_LARGE,
                detail=f"must be less than or equal to {format_number(high)}",
                expected=high,
                received=value,
            )

    return rule


def integer_when(name: str, flag: str) -> Rule:
    """Number ``name`` must be whole when ``flag`` is true."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value = node.get(name)
        if node.get(flag) is True and is_number(value) and not float(value).is_integer():
            yield RuleViolation(
                path=(name,),
                code=IssueCode.INVALID_TYPE,
                detail="must be an integer",
                expected="integer",
                received=value,
            )

    return rule


def required_when(name: str, flag: str, equals: Any = True) -> Rule:
    """``name`` must be present when ``flag`` equals ``equals``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        if node.get(flag) == equals and node.get(name) is None:
            yield RuleViolation(path=(name,), code=IssueCode.REQUIRED, detail="is required")

    return rule


def non_empty_when(name: str, flag: str, equals: Any = True) -> Rule:
    """Array ``name`` must be present and non-empty when ``flag`` equals ``equals``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        if node.get(flag) != equals:
            return
        value = node.get(name)
        if value is None:
            yield RuleViolation(path=(name,), code=IssueCode.REQUIRED, detail="is required")
        elif isinstance(value, list) and not value:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_SHORT,
                detail="must contain at least 1 items",
                expected=1,
                received=0,
            )

    return rule


def forbidden_when(name: str, flag: str, equals: Any = True) -> Rule:
    """``name`` must be absent when ``flag`` equals ``equals``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        if node.get(flag) == equals and name in node:
            yield RuleViolation(path=(name,), code=IssueCode.NOT_ALLOWED, detail="is not allowed")

    return rule


def unique_items(name: str, key: str) -> Rule:
    """Items of array ``name`` must not share a value for ``key``.

    Items without the key are ignored. The second and later occurrences are
    reported.
    """

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        items = node.get(name)
        if not isinstance(items, list):
            return
        seen = set()
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                continue
            value = item.get(key)
            if value is None or isinstance(value, (dict, list)):
                continue
            if value in seen:
                yield RuleViolation(
                    path=(name, index),
                    code=IssueCode.DUPLICATE,
                    detail="contains a duplicate value",
                    expected=f"unique {key}",
                    received=value,
                )
            seen.add(value)

    return rule


def iso_date(name: str, allow_now: bool = False) -> Rule:
    """String ``name`` must be an ISO 8601 date (or ``NOW`` when allowed)."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value = node.get(name)
        if not isinstance(value, str) or (allow_now and value == NOW):
            return
        if parse_date(value) is None:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.INVALID_FORMAT,
                detail="must be a valid ISO 8601 date",
                expected="ISO 8601 date",
                received=value,
            )

    return rule


def date_not_before(name: str, lower: str) -> Rule:
    """Date ``name`` must not precede date ``lower``."""

    def rule(node: Mapping[str, Any]) -> Iterator[RuleViolation]:
        value, bound = parse_date(node.get(name)), parse_date(node.get(lower))
        if value is None or bound is None:
            return
        # naive and aware datetimes do not compare
        if (value.tzinfo is None) != (bound.tzinfo is None):
            return
        if value < bound:
            yield RuleViolation(
                path=(name,),
                code=IssueCode.TOO_SMALL,
                detail=f'must be greater than or equal to "{node[lower]}"',
                expected=node[lower],
                received=node[name],
            )

    return rule


__all__ = [
    "NOW",
    "is_number",
    "parse_date",
    "at_least",
    "length_within",
    "number_within",
    "integer_when",
    "required_when",
    "non_empty_when",
    "forbidden_when",
    "unique_items",
    "iso_date",
    "date_not_before",
]
