"""
Unit tests for submission validation against data schemas.
"""

import pytest

from services.form_validation_service import FormValidationService, coerce_form_data, normalize_field_path
from shared_types.validation import ValidationResult


@pytest.fixture
def complete_data():
    return {
        "firstName": "Anna",
        "lastName": "Müller",
        "birthDate": "1985-03-15",
        "insuranceType": "SELF_INSURED",
        "dataConsent": "true",
    }


class TestValidate:
    """Test validation of submitted values."""

    def test_valid_data(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate(complete_data, anamnesis_schema)

        assert result.valid
        assert result.all_errors == []
        assert result.first_error is None

    def test_short_name_and_invalid_email(self, anamnesis_schema, complete_data):
        """Test that each failing field gets its own error."""
        data = {**complete_data, "firstName": "J", "email": "not-an-email"}

        result = FormValidationService.validate(data, anamnesis_schema)

        assert not result.valid
        assert result.field_errors["firstName"] == ["Must be at least 2 characters"]
        assert result.field_errors["email"] == ["Invalid email format"]
        assert result.global_errors == []

    def test_missing_required_fields_are_keyed_by_field(self, anamnesis_schema, complete_data):
        data = {k: v for k, v in complete_data.items() if k not in ("lastName", "birthDate")}

        result = FormValidationService.validate(data, anamnesis_schema)

        assert result.field_errors == {
            "lastName": ["This field is required"],
            "birthDate": ["This field is required"],
        }

    def test_blank_values_count_as_missing(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate({**complete_data, "lastName": "   "}, anamnesis_schema)
        assert result.field_errors == {"lastName": ["This field is required"]}

    def test_invalid_date_format(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate({**complete_data, "birthDate": "15.03.1985"}, anamnesis_schema)
        assert result.field_errors == {"birthDate": ["Invalid date format"]}

    def test_enum_violation(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate({**complete_data, "favoriteColor": "blue"}, anamnesis_schema)
        assert result.field_errors == {"favoriteColor": ["Must be one of: red, green"]}

    def test_numbers_are_coerced_before_range_checks(self, anamnesis_schema, complete_data):
        assert FormValidationService.validate({**complete_data, "painLevel": "7"}, anamnesis_schema).valid

        result = FormValidationService.validate({**complete_data, "painLevel": "11"}, anamnesis_schema)
        assert result.field_errors == {"painLevel": ["Must be at most 10"]}

    def test_non_numeric_number_is_type_error(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate({**complete_data, "painLevel": "a lot"}, anamnesis_schema)
        assert result.field_errors == {"painLevel": ["Must be of type integer"]}

    def test_root_level_problems_are_global_errors(self, anamnesis_schema, complete_data):
        schema = {**anamnesis_schema, "additionalProperties": False}

        result = FormValidationService.validate({**complete_data, "shoeSize": "42"}, schema)

        assert result.field_errors == {}
        assert len(result.global_errors) == 1
        assert "shoeSize" in result.global_errors[0]
        assert result.first_error == result.global_errors[0]

    def test_message_overrides(self, anamnesis_schema, complete_data):
        data = {k: v for k, v in complete_data.items() if k != "lastName"}

        result = FormValidationService.validate(data, anamnesis_schema, {"required": "Pflichtfeld"})

        assert result.field_errors == {"lastName": ["Pflichtfeld"]}

    def test_unexpected_errors_become_global_errors(self):
        """Test that a broken schema produces an error result instead of raising."""
        schema = {"type": "object", "properties": {"size": {"type": "shoe"}}}

        result = FormValidationService.validate({"size": "42"}, schema)

        assert not result.valid
        assert result.global_errors[0].startswith("Validation error:")

    def test_validate_submission_uses_bundle_messages(self, create_definition, complete_data):
        definition = create_definition()
        data = {**complete_data, "firstName": "J"}
        bundle = {"validation": {"minLength": "Zu kurz"}}

        result = FormValidationService.validate_submission(definition, data, bundle)

        assert result.field_errors == {"firstName": ["Zu kurz"]}

    def test_to_dict(self, anamnesis_schema, complete_data):
        result = FormValidationService.validate({**complete_data, "firstName": "J"}, anamnesis_schema)

        payload = result.to_dict()

        assert payload["valid"] is False
        assert payload["all_errors"] == ["firstName: Must be at least 2 characters"]
        assert payload["first_error"] == "firstName: Must be at least 2 characters"


class TestCoercion:
    """Test conversion of posted strings into typed values."""

    def test_coerce_form_data(self, anamnesis_schema):
        document = coerce_form_data(
            {" firstName ": "Anna", "painLevel": " 3 ", "smoker": "on", "dataConsent": "No", "email": ""},
            anamnesis_schema,
        )

        assert document == {"firstName": "Anna", "painLevel": 3, "smoker": True, "dataConsent": False}

    def test_unknown_fields_pass_through(self, anamnesis_schema):
        assert coerce_form_data({"extra": "1"}, anamnesis_schema) == {"extra": "1"}

    def test_number_coercion(self):
        schema = {"properties": {"weight": {"type": ["number", "null"]}}}
        assert coerce_form_data({"weight": "72.5"}, schema) == {"weight": 72.5}
        assert coerce_form_data({"weight": "72"}, schema) == {"weight": 72}

    @pytest.mark.parametrize("path,expected", [
        (None, None),
        ("$", None),
        ("/", None),
        ("$.firstName", "firstName"),
        ("$.address.street", "address.street"),
        ("/address/street", "address.street"),
    ])
    def test_normalize_field_path(self, path, expected):
        assert normalize_field_path(path) == expected


class TestValidationResult:

    def test_first_error_names_the_field(self):
        result = ValidationResult()
        result.add_field_error("email", "Invalid email format")
        result.add_field_error("email", "Must be at most 100 characters")

        assert result.first_error == "email: Invalid email format"

    def test_global_error_comes_first(self):
        result = ValidationResult()
        result.add_field_error("email", "Invalid email format")
        result.add_global_error("Unexpected field: shoeSize")

        assert result.first_error == "Unexpected field: shoeSize"
