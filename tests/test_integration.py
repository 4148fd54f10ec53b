"""Integration tests for the FormValidator entry points.

Exercises complete flows through the public API:
validate (accumulate mode), validate_or_raise (first structural issue, then
reference checks), single-event validation, element generators and endpoint
configuration validation.
"""

import uuid

import pytest

import formguard
from formguard import (
    FormValidator,
    ReferenceValidationError,
    StructuralValidationError,
    ValidationOptions,
    generate_form_element,
    generate_page_element,
    validate_endpoint_configuration,
    validate_form,
    validate_form_event,
    validate_form_or_raise,
)
from formguard.registry import build_default_registry
from tests.builders import (
    MISSING_ID,
    NUMBER_ID,
    SET_ID,
    TEXT_ID,
    element,
    executed_when,
    form,
    messages,
    number_element,
    pdf_event,
    select_element,
    shown_when,
    text_element,
    uid,
)


def between(element_id=NUMBER_ID, low=1, high=5):
    return {"elementId": element_id, "type": "BETWEEN", "min": low, "max": high}


@pytest.fixture
def validator():
    return FormValidator()


class TestValidateOrRaise:
    """Test the validate-and-raise entry point."""

    def test_valid_form_returns_normalized_definition(self, validator):
        """Should return the definition with defaults applied."""
        document = form(number_element(), shown_when(text_element(), between()))

        result = validator.validate_or_raise(document)

        assert result["elements"][1]["conditionallyShowPredicates"] == [between()]
        assert result["elements"][0]["isInteger"] is False
        assert result["submissionEvents"] == []

    def test_structural_failure_raises_first_issue(self, validator):
        """Should wrap only the first structural issue."""
        document = form(number_element(), shown_when(text_element(), between(low=5, high=2)))
        document["elements"][0]["minNumber"] = "one"

        with pytest.raises(StructuralValidationError) as exc_info:
            validator.validate_or_raise(document)

        error = exc_info.value
        assert len(error.issues) == 1
        assert str(error) == '"elements[0].minNumber" must be a number'
        assert error.first.path == "elements[0].minNumber"

    def test_between_bounds(self, validator):
        """Should report min above max as a structural issue."""
        document = form(number_element(), shown_when(text_element(), between(low=5, high=2)))

        with pytest.raises(StructuralValidationError) as exc_info:
            validator.validate_or_raise(document)

        assert str(exc_info.value) == (
            '"elements[1].conditionallyShowPredicates[0].max" must be greater than or equal to 5'
        )

    def test_reference_failure(self, validator):
        """Should check references after a structurally valid pass."""
        document = form(number_element(), shown_when(text_element(), between(MISSING_ID)))

        with pytest.raises(ReferenceValidationError) as exc_info:
            validator.validate_or_raise(document)

        assert exc_info.value.path == "elements[1].conditionallyShowPredicates[0].elementId"

    def test_structural_issues_win_over_references(self, validator):
        """Should never check references of a structurally invalid form."""
        document = form(number_element(), shown_when(text_element(), between(MISSING_ID)), name=5)

        with pytest.raises(StructuralValidationError):
            validator.validate_or_raise(document)

    def test_event_references(self, validator):
        """Should check submission event references after element predicates."""
        document = form(
            number_element(),
            text_element(),
            submissionEvents=[{"type": "CP_PAY", "configuration": {"elementId": TEXT_ID, "gatewayId": "g"}}],
        )

        with pytest.raises(ReferenceValidationError) as exc_info:
            validator.validate_or_raise(document)

        assert exc_info.value.path == "submissionEvents[0].configuration.elementId"

    def test_references_resolve_against_normalized_tree(self, validator):
        """Should resolve references to elements nested in pages."""
        page = element(
            "page",
            uid(1),
            elements=[number_element(), shown_when(text_element(), between())],
        )

        result = validator.validate_or_raise(form(page, isMultiPage=True))

        assert result["elements"][0]["elements"][1]["conditionallyShow"] is True

    def test_options_dict(self, validator):
        """Should accept camelCase option dicts."""
        result = validator.validate_or_raise(form(text_element(colourScheme="teal")), {"stripUnknown": True})

        assert "colourScheme" not in result["elements"][0]

    def test_module_function(self):
        """Should validate with the default validator."""
        assert validate_form_or_raise(form())["isMultiPage"] is False


class TestValidate:
    """Test accumulate-mode validation."""

    def test_collects_every_issue(self, validator):
        """Should collect issues from every element."""
        document = form(
            number_element(defaultValue=10),
            text_element(minLength=4, maxLength=3),
        )

        result = validator.validate(document)

        assert result.is_valid is False
        assert len(result.errors) == 3
        assert [issue.path for issue in result.errors][0] == "elements[0].defaultValue"

    def test_does_not_check_references(self, validator):
        """Should leave reference checks to validate_or_raise."""
        result = validator.validate(form(shown_when(text_element(), between(MISSING_ID))))

        assert result.is_valid is True

    def test_abort_early_option(self, validator):
        """Should stop at the first issue when asked."""
        document = form(number_element(defaultValue=10), text_element(minLength=4, maxLength=3))

        result = validator.validate(document, {"abortEarly": True})

        assert messages(result) == ['"elements[0].defaultValue" must be less than or equal to 6']

    def test_missing_name(self, validator):
        """Should report a missing form name."""
        assert messages(validator.validate({"elements": []})) == ['"name" is required']

    def test_module_function(self):
        """Should validate with the default validator."""
        assert validate_form(form()).is_valid is True

    def test_custom_registry(self):
        """Should use the registry given to the validator."""
        registry = build_default_registry()
        registry.register("signature", registry.schema_for("draw"))

        result = FormValidator(registry).validate(form(element("signature", uid(1), "sig")))

        assert result.is_valid is True
        assert result.data["elements"][0]["required"] is False


class TestValidateEvent:
    """Test validating one submission event against an element list."""

    def test_valid_event(self, validator):
        """Should return the normalized event."""
        result = validator.validate_event([number_element()], pdf_event(excludedElementIds=[NUMBER_ID]))

        assert result["configuration"]["excludedCSSClasses"] == []
        assert result["conditionallyExecute"] is False

    def test_structural_failure_stops_early(self, validator):
        """Should raise with only the first issue."""
        event = {"type": "BPOINT", "configuration": {}}

        with pytest.raises(StructuralValidationError) as exc_info:
            validator.validate_event([number_element()], event)

        assert str(exc_info.value) == '"configuration.elementId" is required'

    def test_reference_failure(self, validator):
        """Should check references against the given elements."""
        event = {"type": "CP_PAY", "configuration": {"elementId": MISSING_ID, "gatewayId": "g"}}

        with pytest.raises(ReferenceValidationError) as exc_info:
            validator.validate_event([number_element()], event)

        assert str(exc_info.value) == (
            f'Referenced elementId not found: "configuration.elementId" ({MISSING_ID}) does not exist in "elements"'
        )

    def test_predicates_against_nested_elements(self):
        """Should resolve predicates among elements nested in containers."""
        repeatable = element("repeatableSet", SET_ID, "items", elements=[number_element()])
        event = executed_when(
            pdf_event(),
            {"elementId": SET_ID, "type": "REPEATABLESET", "repeatableSetPredicate": between()},
        )

        result = validate_form_event([repeatable], event)

        assert result["conditionallyExecute"] is True

    def test_strip_unknown(self, validator):
        """Should strip unknown configuration fields when asked."""
        result = validator.validate_event([], pdf_event(colour="red"), ValidationOptions(strip_unknown=True))

        assert "colour" not in result["configuration"]


class TestGenerateFormElement:
    """Test the form element generator."""

    def test_defaults(self):
        """Should fill in an id, the text type and flag defaults."""
        generated = generate_form_element({"name": "given_name"})

        assert str(uuid.UUID(generated["id"])) == generated["id"]
        assert generated["type"] == "text"
        assert generated["label"] == "given_name"
        assert generated["required"] is False
        assert generated["conditionallyShow"] is False

    def test_name_from_label(self):
        """Should use the label as the name when no name is given."""
        generated = generate_form_element({"type": "number", "label": "Age"})

        assert generated["name"] == "Age"
        assert generated["isInteger"] is False

    def test_keeps_given_id(self):
        """Should not replace an id that is provided."""
        assert generate_form_element({"id": TEXT_ID, "name": "t"})["id"] == TEXT_ID

    def test_fresh_ids(self):
        """Should generate a new id per element."""
        assert generate_form_element({"name": "a"})["id"] != generate_form_element({"name": "a"})["id"]

    def test_missing_name(self):
        """Should fail without a name or label."""
        with pytest.raises(StructuralValidationError) as exc_info:
            generate_form_element()

        assert str(exc_info.value) == '"name" is required'

    def test_unknown_type(self):
        """Should reject an unknown type tag."""
        with pytest.raises(StructuralValidationError) as exc_info:
            generate_form_element({"type": "hologram", "name": "h"})

        assert exc_info.value.first.path == "type"

    def test_sibling_rules(self):
        """Should apply sibling-field rules to generated elements."""
        with pytest.raises(StructuralValidationError) as exc_info:
            generate_form_element({"type": "number", "name": "n", "minNumber": 5, "maxNumber": 1})

        assert str(exc_info.value) == '"maxNumber" must be greater than or equal to 5'

    def test_input_is_not_mutated(self):
        """Should not write generated fields into the input."""
        data = {"name": "n"}

        generate_form_element(data)

        assert data == {"name": "n"}


class TestGeneratePageElement:
    """Test the page element generator."""

    def test_defaults(self):
        """Should build a page with a default label and generated children."""
        page = generate_page_element({"elements": [{"label": "First name"}]})

        assert page["type"] == "page"
        assert page["label"] == "Page"
        child = page["elements"][0]
        assert child["name"] == "First name"
        assert child["type"] == "text"
        assert uuid.UUID(child["id"])

    def test_requires_elements(self):
        """Should require at least the nested element list."""
        with pytest.raises(StructuralValidationError) as exc_info:
            generate_page_element()

        assert str(exc_info.value) == '"elements" is required'

    def test_invalid_child(self):
        """Should fail when a child cannot be generated."""
        with pytest.raises(StructuralValidationError):
            generate_page_element({"elements": [{"type": "number"}]})

    def test_type_is_forced(self):
        """Should always build a page, whatever type is given."""
        page = generate_page_element({"type": "section", "elements": [{"name": "n"}]})

        assert page["type"] == "page"


class TestEndpointConfiguration:
    """Test server endpoint configuration validation."""

    def test_callback_requires_secret(self):
        """Should require a secret for CALLBACK endpoints."""
        result = validate_endpoint_configuration(
            {"type": "CALLBACK", "configuration": {"url": "https://example.com/validate"}}
        )

        assert messages(result) == ['"configuration.secret" is required']

    def test_power_automate_flow_without_secret(self):
        """Should not require a secret for Power Automate flows."""
        result = validate_endpoint_configuration(
            {"type": "POWER_AUTOMATE_FLOW", "configuration": {"url": "https://example.com/flow"}}
        )

        assert result.is_valid is True

    def test_url_must_be_uri(self):
        """Should reject urls that are not http(s)."""
        result = validate_endpoint_configuration(
            {"type": "CALLBACK", "configuration": {"url": "ftp://example.com", "secret": "s"}}
        )

        assert messages(result) == ['"configuration.url" must be a valid uri']

    def test_unknown_endpoint_type(self):
        """Should list the endpoint types."""
        result = validate_endpoint_configuration({"type": "SOAP", "configuration": {"url": "https://a.b"}})

        assert messages(result) == ['"type" must be one of [CALLBACK, POWER_AUTOMATE_FLOW]']


class TestPackage:
    """Test the package surface."""

    def test_version(self):
        """Should expose the version."""
        assert formguard.__version__ == "0.1.0"
        assert formguard.VERSION == (0, 1, 0)

    def test_exports(self):
        """Should export every public entry point."""
        for name in formguard.__all__:
            assert hasattr(formguard, name)


class TestScenarios:
    """End-to-end scenarios over small form definitions."""

    def test_event_predicate_reference_not_found(self, validator):
        """Should fail when a PDF event predicate references a missing element."""
        event = executed_when(
            pdf_event(),
            {"elementId": MISSING_ID, "type": "NUMERIC", "operator": ">", "value": 2},
        )
        document = form(number_element(), submissionEvents=[event])

        with pytest.raises(ReferenceValidationError) as exc_info:
            validator.validate_or_raise(document)

        assert str(exc_info.value).startswith("Referenced elementId not found:")
        assert exc_info.value.path == "submissionEvents[0].conditionallyExecutePredicates[0].elementId"

    def test_between_predicate_on_number(self, validator):
        """Should accept a BETWEEN predicate inside the number bounds."""
        document = form(number_element(), shown_when(text_element(), between(low=2, high=5)))

        assert validator.validate(document).errors == []
        validator.validate_or_raise(document)

    def test_max_length_below_min_length(self, validator):
        """Should report maxLength below minLength."""
        document = form(element("text", TEXT_ID, "Text", minLength=4, maxLength=3))

        result = validator.validate(document)

        assert messages(result) == ['"elements[0].maxLength" must be greater than or equal to 4']

    def test_between_max_below_min(self, validator):
        """Should state that max must be at least min."""
        document = form(number_element(), shown_when(text_element(), between(low=8, high=6)))

        assert messages(validator.validate(document)) == [
            '"elements[1].conditionallyShowPredicates[0].max" must be greater than or equal to 8'
        ]

    def test_timestamp_watermark(self, validator):
        """Should keep the watermark flag on camera and strip it from text."""
        document = form(
            element("camera", uid(1), "photo", includeTimestampWatermark=True),
            text_element(includeTimestampWatermark=True),
        )

        result = validator.validate_or_raise(document)

        assert result["elements"][0]["includeTimestampWatermark"] is True
        assert "includeTimestampWatermark" not in result["elements"][1]

    def test_repeatable_set_predicate(self, validator):
        """Should accept a nested BETWEEN and reject a nested REPEATABLESET."""
        repeatable = element("repeatableSet", SET_ID, "items", elements=[number_element()])
        predicate = {"elementId": SET_ID, "type": "REPEATABLESET", "repeatableSetPredicate": between()}

        validator.validate_or_raise(form(repeatable, shown_when(text_element(), predicate)))

        predicate["repeatableSetPredicate"] = dict(between(), type="REPEATABLESET")
        with pytest.raises(StructuralValidationError) as exc_info:
            validator.validate_or_raise(form(repeatable, shown_when(text_element(), predicate)))

        assert str(exc_info.value) == (
            '"elements[1].conditionallyShowPredicates[0].repeatableSetPredicate.type" must be one of '
            "[OPTIONS, NUMERIC, VALUE, BETWEEN, FORM, ADDRESS_PROPERTY]"
        )

    def test_normalization_is_idempotent(self, validator):
        """Should return an equal document when validating normalized output again."""
        document = form(
            number_element(),
            select_element(),
            shown_when(text_element(), between()),
            element("section", uid(1), elements=[element("camera", uid(2), "photo")]),
            submissionEvents=[pdf_event()],
        )
        options = ValidationOptions(strip_unknown=True)

        first = validator.validate(document, options).data
        second = validator.validate(first, options).data

        assert second == first
