"""
Unit tests for the field type registry service.
"""

import pytest

from core.constants import FieldCategory
from core.exceptions import FieldTypeValidationError, FormStateError, NotFoundError
from services.field_type_seed import SYSTEM_FIELD_TYPES
from services.field_type_service import FieldTypeService


class TestSeeding:
    """Test seeding of the system field types."""

    def test_seed_inserts_all_system_entries(self, db_session):
        """Test that seeding an empty registry inserts every system entry."""
        inserted = FieldTypeService.seed_system_field_types(db_session)

        assert inserted == len(SYSTEM_FIELD_TYPES)
        assert all(entry.is_system for entry in FieldTypeService.list_all(db_session))

    def test_seed_is_idempotent(self, db_session):
        """Test that seeding twice does not duplicate entries."""
        FieldTypeService.seed_system_field_types(db_session)
        assert FieldTypeService.seed_system_field_types(db_session) == 0
        assert len(FieldTypeService.list_all(db_session)) == len(SYSTEM_FIELD_TYPES)

    def test_required_field_types(self, field_types, db_session):
        """Test that identity, insurance type and data consent are required."""
        required = {entry.field_type for entry in FieldTypeService.list_required(db_session)}

        assert required == {"FIRST_NAME", "LAST_NAME", "BIRTH_DATE", "INSURANCE_TYPE", "CONSENT_DATA_PROCESSING"}


class TestLookup:
    """Test lookup by key, canonical name and alias."""

    def test_get_by_key(self, field_types, db_session):
        entry = FieldTypeService.get_by_key(db_session, "FIRST_NAME")
        assert entry.canonical_name == "firstName"
        assert entry.category == FieldCategory.PERSONAL.value

    def test_get_by_unknown_key_raises(self, field_types, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            FieldTypeService.get_by_key(db_session, "SHOE_SIZE")
        assert "SHOE_SIZE" in exc_info.value.message

    def test_get_by_canonical_name(self, field_types, db_session):
        assert FieldTypeService.get_by_canonical_name(db_session, "zipCode").field_type == "ZIP_CODE"

    def test_find_by_alias_is_case_insensitive(self, field_types, db_session):
        """Test that aliases match regardless of case and surrounding whitespace."""
        entry = FieldTypeService.find_by_alias(db_session, "  VORNAME ")
        assert entry is not None
        assert entry.field_type == "FIRST_NAME"

    def test_find_by_alias_returns_none_for_unknown_or_blank(self, field_types, db_session):
        assert FieldTypeService.find_by_alias(db_session, "lieblingsfarbe") is None
        assert FieldTypeService.find_by_alias(db_session, "   ") is None

    def test_list_by_category(self, field_types, db_session):
        keys = [entry.field_type for entry in FieldTypeService.list_by_category(db_session, "INSURANCE")]
        assert keys == ["INSURANCE_COMPANY", "INSURANCE_NUMBER", "INSURANCE_TYPE"]


class TestCustomFieldTypes:
    """Test creation and deletion of custom field types."""

    def test_create_custom_field_type(self, field_types, db_session):
        entry = FieldTypeService.create_custom(
            db_session,
            field_type="SHOE_SIZE",
            canonical_name="shoeSize",
            accepted_aliases=["schuhgroesse"],
        )

        assert entry.id is not None
        assert entry.is_system is False
        assert entry.category == FieldCategory.CUSTOM.value
        assert entry.display_name_key == "field.shoeSize"
        assert FieldTypeService.find_by_alias(db_session, "Schuhgroesse").id == entry.id

    def test_duplicate_key_is_rejected(self, field_types, db_session):
        """Test that a duplicate key fails and the error names the key."""
        with pytest.raises(FieldTypeValidationError) as exc_info:
            FieldTypeService.create_custom(db_session, field_type="FIRST_NAME", canonical_name="givenName")

        assert "FIRST_NAME" in exc_info.value.message
        assert exc_info.value.field == "field_type"

    def test_duplicate_canonical_name_is_rejected(self, field_types, db_session):
        with pytest.raises(FieldTypeValidationError) as exc_info:
            FieldTypeService.create_custom(db_session, field_type="GIVEN_NAME", canonical_name="firstName")

        assert exc_info.value.field == "canonical_name"

    def test_delete_custom_field_type(self, field_types, db_session):
        FieldTypeService.create_custom(db_session, field_type="SHOE_SIZE", canonical_name="shoeSize")

        FieldTypeService.delete(db_session, "SHOE_SIZE")

        assert FieldTypeService.find_by_key(db_session, "SHOE_SIZE") is None

    def test_system_field_type_cannot_be_deleted(self, field_types, db_session):
        """Test that deleting a system entry fails and leaves it in place."""
        with pytest.raises(FormStateError):
            FieldTypeService.delete(db_session, "EMAIL")

        assert FieldTypeService.find_by_key(db_session, "EMAIL") is not None


class TestMappingValidation:
    """Test the required field mapping check."""

    def test_complete_mapping_has_no_errors(self, field_types, db_session, anamnesis_mappings):
        assert FieldTypeService.validate_required_field_mappings(db_session, anamnesis_mappings) == []

    def test_empty_mapping(self, field_types, db_session):
        assert FieldTypeService.validate_required_field_mappings(db_session, {}) == ["Form has no field mappings defined"]
        assert FieldTypeService.validate_required_field_mappings(db_session, None) == ["Form has no field mappings defined"]

    def test_missing_required_types_are_all_reported(self, field_types, db_session):
        """Test that every unmapped required field type gets its own message."""
        errors = FieldTypeService.validate_required_field_mappings(db_session, {"vorname": "FIRST_NAME"})

        assert len(errors) == 4
        assert any(
            error.startswith("Required field type 'LAST_NAME' (lastName) is not mapped.")
            and error.endswith("Please add a field for: field.lastName")
            for error in errors
        )
        assert not any("'FIRST_NAME'" in error for error in errors)

    def test_get_mapped_fields_skips_unknown_keys(self, field_types, db_session):
        resolved = FieldTypeService.get_mapped_fields(
            db_session, {"vorname": "FIRST_NAME", "shoe": "SHOE_SIZE"}
        )

        assert list(resolved) == ["vorname"]
        assert resolved["vorname"].canonical_name == "firstName"
