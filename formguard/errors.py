"""Structured error types for formguard validation.

Validation failures travel through two channels:

- Structural issues (shape, field types, sibling-field constraints) are collected
  into a list of SchemaIssue records so a form author sees every problem at once.
  When a caller asks for an exception instead of a result, the list is wrapped in
  a StructuralValidationError.
- Semantic failures (element references that do not resolve, or resolve to an
  element of the wrong type) raise a ReferenceValidationError on the first
  broken reference.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from formguard.types import IssueCode, IssueDict


@dataclass(frozen=True)
class SchemaIssue:
    """A single structural validation failure.

    Attributes:
        path: Bracket/dot path to the offending field (e.g. "elements[1].max")
        code: Specific issue code
        message: Human-readable description, always starting with the quoted path
        expected: Optional - what was expected (bound, type, allowed values)
        received: Optional - what was actually received

    Examples:
        >>> issue = SchemaIssue(
        ...     path="elements[0].maxLength",
        ...     code=IssueCode.TOO_SMALL,
        ...     message='"elements[0].maxLength" must be greater than or equal to 4',
        ...     expected=4,
        ...     received=3,
        ... )
        >>> issue.path
        'elements[0].maxLength'
    """
    path: str
    code: IssueCode
    message: str
    expected: Optional[Any] = None
    received: Optional[Any] = None

    def to_dict(self) -> IssueDict:
        """Convert to dict for serialization."""
        result: IssueDict = {
            "path": self.path,
            "code": self.code.value if isinstance(self.code, IssueCode) else self.code,
            "message": self.message,
        }
        if self.expected is not None:
            result["expected"] = self.expected
        if self.received is not None:
            result["received"] = self.received
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchemaIssue":
        """Create SchemaIssue from dict."""
        code = data["code"]
        if isinstance(code, str):
            code = IssueCode(code)
        return cls(
            path=data["path"],
            code=code,
            message=data["message"],
            expected=data.get("expected"),
            received=data.get("received"),
        )


class FormguardError(Exception):
    """Base class for all formguard errors."""


class UnknownElementTypeError(FormguardError, KeyError):
    """Raised when a schema is requested for an element type that is not registered.

    Attributes:
        type_tag: The unregistered type tag
    """

    def __init__(self, type_tag: Any):
        self.type_tag = type_tag
        super().__init__(f"Unknown element type: {type_tag!r}")

    def __str__(self) -> str:
        return str(self.args[0])


class StructuralValidationError(FormguardError):
    """Raised when a document fails structural validation.

    Attributes:
        issues: Ordered structural issues (document order)

    The exception message is every issue message joined with ". ".
    """

    def __init__(self, issues: Sequence[SchemaIssue]):
        if not issues:
            raise ValueError("StructuralValidationError requires at least one issue")
        self.issues: List[SchemaIssue] = list(issues)
        super().__init__(". ".join(issue.message for issue in self.issues))

    @property
    def first(self) -> SchemaIssue:
        """The first issue in document order."""
        return self.issues[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "message": str(self),
            "issues": [issue.to_dict() for issue in self.issues],
        }


class ReferenceValidationError(FormguardError):
    """Raised on the first element reference that does not resolve or has the wrong type.

    Attributes:
        path: Path of the field holding the reference
        element_id: The referenced element id
        found_type: Type of the referenced element, if it was found
        allowed_types: Element types the reference may point at, if restricted
    """

    def __init__(
        self,
        message: str,
        path: str,
        element_id: Optional[str] = None,
        found_type: Optional[str] = None,
        allowed_types: Tuple[str, ...] = (),
    ):
        self.path = path
        self.element_id = element_id
        self.found_type = found_type
        self.allowed_types = tuple(allowed_types)
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "message": str(self),
            "path": self.path,
        }
        if self.element_id is not None:
            result["elementId"] = self.element_id
        if self.found_type is not None:
            result["foundType"] = self.found_type
        if self.allowed_types:
            result["allowedTypes"] = list(self.allowed_types)
        return result


__all__ = [
    "SchemaIssue",
    "FormguardError",
    "UnknownElementTypeError",
    "StructuralValidationError",
    "ReferenceValidationError",
]
