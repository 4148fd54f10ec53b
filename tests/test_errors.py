"""Unit tests for error types, options and path formatting."""

import pytest

from formguard.config import ValidationOptions
from formguard.errors import (
    FormguardError,
    ReferenceValidationError,
    SchemaIssue,
    StructuralValidationError,
    UnknownElementTypeError,
)
from formguard.schema import format_number, format_path
from formguard.types import IssueCode


def issue(path="elements[0].name", message='"elements[0].name" is required'):
    return SchemaIssue(path=path, code=IssueCode.REQUIRED, message=message, expected="required field")


class TestSchemaIssue:
    """Test SchemaIssue serialization."""

    def test_to_dict_skips_empty_fields(self):
        """Should leave out expected and received when unset."""
        data = SchemaIssue(path="name", code=IssueCode.REQUIRED, message='"name" is required').to_dict()

        assert data == {"path": "name", "code": "required", "message": '"name" is required'}

    def test_round_trip(self):
        """Should rebuild an issue from its dict form."""
        original = SchemaIssue(
            path="elements[0].maxLength",
            code=IssueCode.TOO_SMALL,
            message='"elements[0].maxLength" must be greater than or equal to 4',
            expected=4,
            received=3,
        )

        assert SchemaIssue.from_dict(original.to_dict()) == original


class TestStructuralValidationError:
    """Test StructuralValidationError."""

    def test_message_joins_issues(self):
        """Should join issue messages with '. '."""
        error = StructuralValidationError(
            [issue(), issue("elements[1].name", '"elements[1].name" is required')]
        )

        assert str(error) == '"elements[0].name" is required. "elements[1].name" is required'
        assert error.first.path == "elements[0].name"
        assert isinstance(error, FormguardError)

    def test_requires_an_issue(self):
        """Should refuse to be built without issues."""
        with pytest.raises(ValueError):
            StructuralValidationError([])

    def test_to_dict(self):
        """Should serialize the message and every issue."""
        data = StructuralValidationError([issue()]).to_dict()

        assert data["message"] == '"elements[0].name" is required'
        assert data["issues"][0]["expected"] == "required field"


class TestReferenceValidationError:
    """Test ReferenceValidationError."""

    def test_to_dict(self):
        """Should serialize the reference details in camelCase."""
        error = ReferenceValidationError(
            "Referenced number type not a repeatableSet: \"value\" (x)",
            path="value",
            element_id="x",
            found_type="number",
            allowed_types=("repeatableSet",),
        )

        assert error.to_dict() == {
            "message": 'Referenced number type not a repeatableSet: "value" (x)',
            "path": "value",
            "elementId": "x",
            "foundType": "number",
            "allowedTypes": ["repeatableSet"],
        }

    def test_to_dict_minimal(self):
        """Should leave out missing reference details."""
        assert ReferenceValidationError("broken", path="value").to_dict() == {"message": "broken", "path": "value"}


class TestUnknownElementTypeError:
    """Test UnknownElementTypeError."""

    def test_message(self):
        """Should quote the tag without KeyError's extra quoting."""
        error = UnknownElementTypeError("hologram")

        assert str(error) == "Unknown element type: 'hologram'"
        assert isinstance(error, KeyError)


class TestValidationOptions:
    """Test ValidationOptions."""

    def test_defaults(self):
        """Should collect every issue and keep unknown fields by default."""
        options = ValidationOptions()

        assert options.abort_early is False
        assert options.strip_unknown is False

    def test_nested(self):
        """Should abort early in nested invocations and keep other options."""
        options = ValidationOptions(strip_unknown=True).nested()

        assert options == ValidationOptions(abort_early=True, strip_unknown=True)

    def test_dict_round_trip(self):
        """Should convert to and from camelCase dicts."""
        options = ValidationOptions(abort_early=True)

        assert options.to_dict() == {"abortEarly": True, "stripUnknown": False}
        assert ValidationOptions.from_dict(options.to_dict()) == options
        assert ValidationOptions.from_dict(None) == ValidationOptions()


class TestPaths:
    """Test path and number formatting."""

    def test_format_path(self):
        """Should use brackets for indexes and dots for fields."""
        path = ("submissionEvents", 0, "configuration", "emailTemplate", "mapping", 2, "formElementId")

        assert format_path(path) == "submissionEvents[0].configuration.emailTemplate.mapping[2].formElementId"

    def test_format_root_path(self):
        """Should name the root 'value'."""
        assert format_path(()) == "value"
        assert format_path((0, "id")) == "[0].id"

    def test_format_number(self):
        """Should render whole floats without a fraction."""
        assert format_number(8.0) == "8"
        assert format_number(2.5) == "2.5"
        assert format_number(3) == "3"
