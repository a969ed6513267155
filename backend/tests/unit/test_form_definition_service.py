"""
Unit tests for form definition CRUD and lifecycle transitions.
"""

import pytest

from core.constants import FormCategory, FormStatus
from core.exceptions import FormStateError, FormValidationError, NotFoundError
from services.form_definition_service import FormDefinitionService, _bump_minor_version
from services.form_markup_cache import form_markup_cache
from services.form_translation_service import FormTranslationService


class TestCreateAndRead:
    """Test creating and reading definitions."""

    def test_new_definition_is_inactive_draft(self, create_definition):
        definition = create_definition()

        assert definition.id is not None
        assert definition.status == FormStatus.DRAFT.value
        assert definition.is_active is False
        assert definition.is_default is False
        assert definition.version == "1.0.0"
        assert definition.field_mappings["firstName"] == "FIRST_NAME"

    def test_get_unknown_definition_raises(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            FormDefinitionService.get(db_session, 999)
        assert exc_info.value.message == "Form definition not found: 999"

    def test_list_filters(self, db_session, create_definition):
        anamnesis = create_definition()
        consent = create_definition(name="Consent", category=FormCategory.CONSENT.value)

        assert {d.id for d in FormDefinitionService.list_all(db_session)} == {anamnesis.id, consent.id}
        assert [d.id for d in FormDefinitionService.list_by_category(db_session, "CONSENT")] == [consent.id]
        assert len(FormDefinitionService.list_by_status(db_session, FormStatus.DRAFT.value)) == 2
        assert FormDefinitionService.list_published(db_session) == []

    def test_only_one_default_per_category(self, db_session, create_definition):
        """Test that creating a new default clears the previous default of the category."""
        first = create_definition(is_default=True)
        other_category = create_definition(name="Consent", category=FormCategory.CONSENT.value, is_default=True)
        second = create_definition(name="Anamnesis v2", is_default=True)

        db_session.refresh(first)
        db_session.refresh(other_category)
        assert first.is_default is False
        assert second.is_default is True
        assert other_category.is_default is True

    def test_update_to_default_clears_previous_default(self, db_session, create_definition):
        first = create_definition(is_default=True)
        second = create_definition(name="Anamnesis v2")

        FormDefinitionService.update(db_session, second.id, is_default=True)

        db_session.refresh(first)
        assert first.is_default is False
        assert FormDefinitionService.get(db_session, second.id).is_default is True


class TestDraftEditing:
    """Test that only drafts can be edited or deleted."""

    def test_update_draft(self, db_session, create_definition):
        definition = create_definition()

        updated = FormDefinitionService.update(db_session, definition.id, name="Anamnesis (new)", description=None)

        assert updated.name == "Anamnesis (new)"
        assert updated.description is None
        assert updated.schema["properties"]["firstName"]["minLength"] == 2

    def test_update_invalidates_cached_markup(self, db_session, create_definition):
        definition = create_definition()
        form_markup_cache.put(definition.id, "de", "<div>old</div>")

        FormDefinitionService.update(db_session, definition.id, name="Renamed")

        assert form_markup_cache.get(definition.id, "de") is None

    def test_update_published_definition_fails_and_changes_nothing(self, db_session, published_form):
        with pytest.raises(FormStateError) as exc_info:
            FormDefinitionService.update(db_session, published_form.id, name="Changed")

        assert "Current status: PUBLISHED" in exc_info.value.message
        db_session.refresh(published_form)
        assert published_form.name == "Anamnesis"

    def test_delete_draft_removes_translations(self, db_session, create_definition):
        definition = create_definition()
        FormTranslationService.add(db_session, definition.id, "en", {"fields": {"firstName": "First name"}})

        FormDefinitionService.delete(db_session, definition.id)

        with pytest.raises(NotFoundError):
            FormDefinitionService.get(db_session, definition.id)
        assert FormTranslationService.list_for_language(db_session, "en") == []

    def test_delete_published_definition_fails(self, db_session, published_form):
        with pytest.raises(FormStateError):
            FormDefinitionService.delete(db_session, published_form.id)

        assert FormDefinitionService.get(db_session, published_form.id).is_published


class TestPublish:
    """Test publishing drafts."""

    def test_publish_sets_status_and_metadata(self, db_session, field_types, create_definition):
        definition = create_definition()

        published = FormDefinitionService.publish(db_session, definition.id, published_by="dr.meyer")

        assert published.status == FormStatus.PUBLISHED.value
        assert published.published_by == "dr.meyer"
        assert published.published_at is not None
        assert published.is_active is False

    def test_publish_with_unmapped_required_field_stays_draft(self, db_session, field_types, create_definition, anamnesis_mappings):
        """Test that publishing without a LAST_NAME mapping fails and lists the problem."""
        mappings = {k: v for k, v in anamnesis_mappings.items() if v != "LAST_NAME"}
        definition = create_definition(field_mappings=mappings)

        with pytest.raises(FormValidationError) as exc_info:
            FormDefinitionService.publish(db_session, definition.id)

        assert len(exc_info.value.errors) == 1
        assert "LAST_NAME" in exc_info.value.errors[0]
        db_session.refresh(definition)
        assert definition.status == FormStatus.DRAFT.value
        assert definition.published_at is None

    def test_publish_without_mappings_fails(self, db_session, field_types, create_definition):
        definition = create_definition(field_mappings={})

        with pytest.raises(FormValidationError) as exc_info:
            FormDefinitionService.publish(db_session, definition.id)

        assert exc_info.value.errors == ["Form has no field mappings defined"]

    def test_publish_twice_fails(self, db_session, published_form):
        with pytest.raises(FormStateError):
            FormDefinitionService.publish(db_session, published_form.id)

    def test_publish_set_active_leaves_single_active_form(self, db_session, published_form, create_definition):
        """Test that activating a newly published form deactivates the previous one."""
        consent = create_definition(name="Consent", category=FormCategory.CONSENT.value)
        FormDefinitionService.publish(db_session, consent.id, set_active=True)
        successor = create_definition(name="Anamnesis v2")

        FormDefinitionService.publish(db_session, successor.id, set_active=True)

        db_session.refresh(published_form)
        assert published_form.is_active is False
        active = FormDefinitionService.get_active_published(db_session, FormCategory.ANAMNESIS.value)
        assert active.id == successor.id
        assert FormDefinitionService.get_active_published(db_session, FormCategory.CONSENT.value).id == consent.id


class TestArchiveAndActivation:
    """Test archiving and (de)activation."""

    def test_archive_active_form(self, db_session, published_form):
        archived = FormDefinitionService.archive(db_session, published_form.id)

        assert archived.status == FormStatus.ARCHIVED.value
        assert archived.is_active is False
        assert FormDefinitionService.get_active_published(db_session, FormCategory.ANAMNESIS.value) is None

    def test_archive_draft(self, db_session, create_definition):
        definition = create_definition()
        assert FormDefinitionService.archive(db_session, definition.id).status == FormStatus.ARCHIVED.value

    def test_activate_draft_fails(self, db_session, create_definition):
        definition = create_definition()

        with pytest.raises(FormStateError) as exc_info:
            FormDefinitionService.activate(db_session, definition.id)

        assert "not PUBLISHED" in exc_info.value.message
        db_session.refresh(definition)
        assert definition.is_active is False

    def test_activate_deactivates_others(self, db_session, field_types, published_form, create_definition):
        other = create_definition(name="Anamnesis short")
        FormDefinitionService.publish(db_session, other.id)

        FormDefinitionService.activate(db_session, other.id)

        db_session.refresh(published_form)
        assert published_form.is_active is False
        assert FormDefinitionService.get(db_session, other.id).is_active is True

    def test_activate_without_deactivating_others(self, db_session, field_types, published_form, create_definition):
        other = create_definition(name="Anamnesis short")
        FormDefinitionService.publish(db_session, other.id)

        FormDefinitionService.activate(db_session, other.id, deactivate_others=False)

        db_session.refresh(published_form)
        assert published_form.is_active is True

    def test_deactivate(self, db_session, published_form):
        deactivated = FormDefinitionService.deactivate(db_session, published_form.id)

        assert deactivated.is_active is False
        assert deactivated.is_published


class TestDuplicate:
    """Test copying definitions into new drafts."""

    def test_duplicate_published_form(self, db_session, published_form):
        FormTranslationService.add(db_session, published_form.id, "en", {"fields": {"firstName": "First name"}})

        draft = FormDefinitionService.duplicate(db_session, published_form.id, created_by="dr.meyer")

        assert draft.id != published_form.id
        assert draft.status == FormStatus.DRAFT.value
        assert draft.is_active is False
        assert draft.version == "1.1.0"
        assert draft.schema == published_form.schema
        assert draft.field_mappings == published_form.field_mappings
        assert FormTranslationService.get_bundle(db_session, draft.id, "en") == {"fields": {"firstName": "First name"}}

    def test_duplicate_does_not_copy_default_flag(self, db_session, create_definition):
        source = create_definition(is_default=True)

        draft = FormDefinitionService.duplicate(db_session, source.id, name="Copy")

        assert draft.name == "Copy"
        assert draft.is_default is False

    @pytest.mark.parametrize("version,expected", [
        ("1.0.0", "1.1.0"),
        ("2.9.3", "2.10.0"),
        ("v1", "v1.1"),
        (None, "1.1.0"),
    ])
    def test_version_bump(self, version, expected):
        assert _bump_minor_version(version) == expected
