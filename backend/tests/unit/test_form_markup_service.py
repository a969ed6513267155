"""
Unit tests for converting form definitions into HTML markup.
"""

import pytest

from services.form_markup_cache import FormMarkupCache
from services.form_markup_service import (
    FormMarkupService,
    humanize_field_name,
    resolve_field_order,
    resolve_label,
    resolve_options,
)
from services.form_submission_service import FormSubmissionService
from services.form_translation_service import FormTranslationService
from services.form_validation_service import FormValidationService
from shared_types.form_fields import FieldKind


@pytest.fixture
def markup_service():
    return FormMarkupService(cache=FormMarkupCache())


class TestFieldOrder:
    """Test resolution of the display order."""

    def test_ui_order_is_followed(self, anamnesis_schema, anamnesis_ui_schema):
        assert resolve_field_order(anamnesis_schema, anamnesis_ui_schema) == anamnesis_ui_schema["ui:order"]

    def test_declaration_order_without_ui_schema(self, anamnesis_schema):
        assert resolve_field_order(anamnesis_schema, None) == list(anamnesis_schema["properties"])

    def test_unlisted_fields_are_appended(self):
        schema = {"properties": {"a": {}, "b": {}, "c": {}}}
        assert resolve_field_order(schema, {"ui:order": ["c", "a"]}) == ["c", "a", "b"]

    def test_wildcard_and_unknown_names(self):
        schema = {"properties": {"a": {}, "b": {}, "c": {}, "d": {}}}
        order = resolve_field_order(schema, {"ui:order": [" d ", "*", "ghost", "a"]})
        assert order == ["d", "b", "c", "a"]


class TestLabels:
    """Test label and option resolution."""

    def test_label_precedence(self):
        prop = {"title": "First name"}
        assert resolve_label("firstName", prop, {"fields": {"firstName": "Vorname"}}) == "Vorname"
        assert resolve_label("firstName", prop, {"fields": {"firstName": "  "}}) == "First name"
        assert resolve_label("firstName", {}, None) == "First Name"

    @pytest.mark.parametrize("name,expected", [
        ("firstName", "First Name"),
        ("insurance_number", "Insurance number"),
        (" zip ", "Zip"),
    ])
    def test_humanize_field_name(self, name, expected):
        assert humanize_field_name(name) == expected

    def test_option_labels(self, anamnesis_schema):
        prop = anamnesis_schema["properties"]["insuranceType"]
        bundle = {"options": {"insuranceType": {"SELF_INSURED": "Selbst versichert"}}}

        options = resolve_options("insuranceType", prop, bundle)

        assert [(o.value, o.label) for o in options] == [
            ("SELF_INSURED", "Selbst versichert"),
            ("FAMILY_INSURED", "Family insured"),
        ]

    def test_option_label_falls_back_to_value(self):
        options = resolve_options("size", {"enum": ["S", "M"]}, None)
        assert [o.label for o in options] == ["S", "M"]


class TestBuildFields:
    """Test resolution of schema properties into field variants."""

    def test_field_kinds(self, anamnesis_schema, anamnesis_ui_schema):
        fields = {f.name: f for f in FormMarkupService.build_fields(anamnesis_schema, anamnesis_ui_schema)}

        assert fields["firstName"].kind == FieldKind.TEXT
        assert fields["birthDate"].kind == FieldKind.DATE
        assert fields["email"].kind == FieldKind.EMAIL
        assert fields["insuranceType"].kind == FieldKind.RADIO
        assert fields["favoriteColor"].kind == FieldKind.SELECT
        assert fields["painLevel"].kind == FieldKind.NUMBER
        assert fields["smoker"].kind == FieldKind.CHECKBOX
        assert fields["complaints"].kind == FieldKind.TEXTAREA
        assert fields["patientSignature"].kind == FieldKind.SIGNATURE

    def test_required_and_constraints(self, anamnesis_schema, anamnesis_ui_schema):
        fields = {f.name: f for f in FormMarkupService.build_fields(anamnesis_schema, anamnesis_ui_schema)}

        assert fields["firstName"].required is True
        assert fields["email"].required is False
        assert fields["firstName"].attributes() == {"minlength": "2", "maxlength": "100"}
        assert fields["painLevel"].attributes() == {"min": "0", "max": "10", "step": "1"}
        assert fields["complaints"].attributes() == {
            "maxlength": "2000",
            "rows": "5",
            "placeholder": "Describe your complaints",
        }

    def test_enum_without_radio_widget_is_select(self, anamnesis_schema):
        fields = {f.name: f for f in FormMarkupService.build_fields(anamnesis_schema, None)}
        assert fields["insuranceType"].kind == FieldKind.SELECT

    def test_unsupported_types_are_skipped(self):
        schema = {"type": "object", "properties": {"address": {"type": "object"}, "city": {"type": "string"}}}
        assert [f.name for f in FormMarkupService.build_fields(schema)] == ["city"]

    def test_bundle_placeholders_and_help(self, anamnesis_schema, anamnesis_ui_schema):
        bundle = {
            "placeholders": {"complaints": "Ihre Beschwerden"},
            "helpTexts": {"email": "Für die Terminbestätigung"},
        }
        fields = {f.name: f for f in FormMarkupService.build_fields(anamnesis_schema, anamnesis_ui_schema, bundle)}

        assert fields["complaints"].placeholder == "Ihre Beschwerden"
        assert fields["email"].help_text == "Für die Terminbestätigung"


class TestRendering:
    """Test the rendered HTML."""

    def test_render_fields(self, markup_service, anamnesis_schema, anamnesis_ui_schema):
        html = markup_service.render_fields(anamnesis_schema, anamnesis_ui_schema, language="de")

        assert html.index('data-field="firstName"') < html.index('data-field="patientSignature"')
        assert 'type="radio"' in html and 'value="FAMILY_INSURED"' in html
        assert '<option value="">-- Bitte wählen --</option>' in html
        assert '<option value="green">Green</option>' in html
        assert 'rows="5"' in html
        assert 'placeholder="Describe your complaints"' in html
        assert 'class="signature-canvas"' in html
        assert 'type="email"' in html
        assert 'minlength="2"' in html

    def test_labels_are_escaped(self, markup_service):
        schema = {"type": "object", "properties": {"note": {"type": "string", "title": "<b>Note</b>"}}}
        html = markup_service.render_fields(schema)
        assert "&lt;b&gt;Note&lt;/b&gt;" in html

    def test_render_form_uses_translation_and_cache(self, db_session, markup_service, create_definition):
        definition = create_definition()
        FormTranslationService.add(db_session, definition.id, "de", {"fields": {"firstName": "Vorname"}})

        html = markup_service.render_form(db_session, definition, "de")

        assert "Vorname" in html
        assert markup_service.cache.get(definition.id, "de") == html
        # Served from cache even though the bundle changed behind the service's back
        FormTranslationService.find(db_session, definition.id, "de").translations = {"fields": {"firstName": "Rufname"}}
        db_session.commit()
        assert markup_service.render_form(db_session, definition, "de") == html

    def test_render_preview_page(self, db_session, markup_service, create_definition):
        definition = create_definition()
        FormTranslationService.add(db_session, definition.id, "ar", {
            "messages": {"title": "استمارة"},
            "buttons": {"submit": "أرسل"},
        })

        html = markup_service.render_preview(db_session, definition, "ar", action="/submit")

        assert '<html lang="ar" dir="rtl">' in html
        assert "<title>استمارة</title>" in html
        assert "أرسل" in html
        assert 'action="/submit"' in html

    def test_render_preview_falls_back_to_default_language(self, db_session, markup_service, create_definition):
        definition = create_definition()

        html = markup_service.render_preview(db_session, definition, "xx")

        assert '<html lang="de" dir="ltr">' in html
        assert "Initial intake questionnaire" in html
        assert "Absenden" in html

    def test_render_preview_returns_error_page_on_failure(self, db_session, create_definition):
        definition = create_definition(ui_schema={"complaints": {"ui:widget": "textarea", "ui:options": {"rows": "many"}}})
        service = FormMarkupService(cache=FormMarkupCache())

        html = service.render_preview(db_session, definition, "en")

        assert "Form Error" in html
        assert "Form preview could not be generated" in html


class TestValidateFormDefinition:
    """Test the structural check of definitions."""

    def test_valid_definition(self, markup_service, create_definition):
        check = markup_service.validate_form_definition(create_definition())

        assert check.valid
        assert check.errors == []
        assert check.warnings == []

    def test_missing_ui_schema_is_warning(self, markup_service, create_definition):
        check = markup_service.validate_form_definition(create_definition(ui_schema=None))

        assert check.valid
        assert len(check.warnings) == 1

    def test_structural_errors(self, markup_service, create_definition):
        check = markup_service.validate_form_definition(create_definition(schema={"type": "array"}))

        assert not check.valid
        assert "Schema must have a 'properties' object" in check.errors
        assert "Schema root type must be 'object'" in check.errors

    def test_empty_schema(self, markup_service, create_definition):
        check = markup_service.validate_form_definition(create_definition(schema={}))
        assert check.errors == ["Schema is missing"]

    def test_conversion_failure_is_reported(self, markup_service, create_definition):
        definition = create_definition(ui_schema={"complaints": {"ui:widget": "textarea", "ui:options": {"rows": "many"}}})

        check = markup_service.validate_form_definition(definition)

        assert not check.valid
        assert check.errors[0].startswith("Conversion failed:")


class TestRenderingSubmittedValues:
    """Test re-rendering a rejected submission with its values and errors."""

    @pytest.fixture
    def rejected(self, anamnesis_schema, valid_submission_data):
        values = {
            **valid_submission_data,
            "firstName": "J",
            "email": "not-an-email",
            "insuranceType": "FAMILY_INSURED",
            "complaints": "Back pain",
        }
        return values, FormValidationService.validate(values, anamnesis_schema)

    def test_build_fields_carries_values_and_errors(self, anamnesis_schema, anamnesis_ui_schema, rejected):
        values, validation = rejected

        fields = {f.name: f for f in FormMarkupService.build_fields(anamnesis_schema, anamnesis_ui_schema, None, values, validation)}

        assert fields["firstName"].value == "J"
        assert fields["firstName"].errors == ["Must be at least 2 characters"]
        assert fields["email"].errors == ["Invalid email format"]
        assert fields["lastName"].errors == []
        assert fields["dataConsent"].checked
        assert not fields["smoker"].checked

    def test_rendered_markup_keeps_values(self, markup_service, anamnesis_schema, anamnesis_ui_schema, rejected):
        values, validation = rejected

        html = markup_service.render_fields(anamnesis_schema, anamnesis_ui_schema, None, "de", values, validation)

        assert 'name="firstName" class="form-control" value="J"' in html
        assert 'value="Müller"' in html
        assert 'value="FAMILY_INSURED" class="form-check-input" checked' in html
        assert 'value="SELF_INSURED" class="form-check-input" checked' not in html
        assert '<option value="green" selected>Green</option>' in html
        assert 'id="field_dataConsent" name="dataConsent" value="true" class="form-check-input" checked' in html
        assert 'id="field_smoker" name="smoker" value="true" class="form-check-input" required' not in html
        assert 'id="field_smoker" name="smoker" value="true" class="form-check-input">' in html
        assert ">Back pain</textarea>" in html

    def test_rendered_markup_shows_errors(self, markup_service, anamnesis_schema, anamnesis_ui_schema, rejected):
        values, validation = rejected
        validation.add_global_error("Unexpected field: shoeSize")

        html = markup_service.render_fields(anamnesis_schema, anamnesis_ui_schema, None, "de", values, validation)

        assert '<div class="form-group has-error" data-field="firstName">' in html
        assert '<div class="form-group" data-field="lastName">' in html
        assert html.index('id="field_firstName_errors"') > html.index('data-field="firstName"')
        assert "<li>Must be at least 2 characters</li>" in html
        assert "<li>Invalid email format</li>" in html
        assert 'class="form-errors"' in html
        assert "<li>Unexpected field: shoeSize</li>" in html

    def test_submitted_values_are_escaped(self, markup_service):
        schema = {"type": "object", "properties": {"note": {"type": "string"}}}

        html = markup_service.render_fields(schema, values={"note": '"><script>alert(1)</script>'})

        assert "<script>" not in html
        assert "&#34;&gt;&lt;script&gt;" in html

    def test_plain_render_has_no_values_or_errors(self, markup_service, anamnesis_schema, anamnesis_ui_schema):
        html = markup_service.render_fields(anamnesis_schema, anamnesis_ui_schema, language="de")

        assert "has-error" not in html
        assert "form-errors" not in html
        assert " checked" not in html
        assert " selected" not in html

    def test_preview_page_with_errors(self, db_session, markup_service, create_definition, rejected):
        values, validation = rejected
        definition = create_definition()

        html = markup_service.render_preview(db_session, definition, "de", action="/submit", values=values, validation=validation)

        assert 'value="J"' in html
        assert "<li>Must be at least 2 characters</li>" in html

    def test_confirmation_page(self, db_session, markup_service, published_form, valid_submission_data):
        submission = FormSubmissionService.submit(db_session, published_form.id, valid_submission_data, "de").submission
        FormTranslationService.add(db_session, published_form.id, "en", {"messages": {"submitSuccess": "We got it."}})

        german = markup_service.render_confirmation(db_session, published_form, submission, "de")
        english = markup_service.render_confirmation(db_session, published_form, submission, "en")

        assert "Vielen Dank" in german
        assert f'data-submission-id="{submission.id}"' in german
        assert "We got it." in english
