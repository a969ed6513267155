"""
Converts a form definition into HTML form markup.

The data schema (properties, required, constraints, enum/enumNames,
format), the layout schema (ui:order, ui:widget, ui:placeholder, ui:help,
ui:options) and an optional translation bundle are resolved into an ordered
list of FormField variants, which are rendered with the Jinja2 macros in
templates/forms/fields.html.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from jinja2 import Environment
from sqlalchemy.orm import Session

from core.config import DEFAULT_FORM_LANGUAGE
from core.constants import SUPPORTED_LANGUAGES
from models import FormDefinition, FormSubmission
from services.form_markup_cache import FormMarkupCache, form_markup_cache
from services.form_translation_service import FormTranslationService
from shared_types.form_fields import (
    ChoiceConstraints,
    FieldKind,
    FieldOption,
    FormField,
    NoConstraints,
    NumberConstraints,
    TextareaConstraints,
    TextConstraints,
)
from shared_types.validation import ValidationResult
from utils.template_env import create_template_environment

logger = logging.getLogger(__name__)

DEFAULT_TEXTAREA_ROWS = 3

# Fallback labels when the bundle has no 'buttons'/'messages' entries
DEFAULT_UI_TEXTS: Dict[str, Dict[str, str]] = {
    "de": {"submit": "Absenden", "cancel": "Abbrechen", "clear_signature": "Löschen", "select_placeholder": "-- Bitte wählen --",
           "submitted_title": "Vielen Dank", "submitted_message": "Ihr Formular wurde erfolgreich übermittelt."},
    "en": {"submit": "Submit", "cancel": "Cancel", "clear_signature": "Clear", "select_placeholder": "-- Select --",
           "submitted_title": "Thank you", "submitted_message": "Your form has been submitted successfully."},
    "ar": {"submit": "إرسال", "cancel": "إلغاء", "clear_signature": "مسح", "select_placeholder": "-- اختر --",
           "submitted_title": "شكرًا لك", "submitted_message": "تم إرسال النموذج بنجاح."},
    "ru": {"submit": "Отправить", "cancel": "Отмена", "clear_signature": "Очистить", "select_placeholder": "-- Выберите --",
           "submitted_title": "Спасибо", "submitted_message": "Ваша анкета успешно отправлена."},
}

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def humanize_field_name(name: str) -> str:
    """'firstName' -> 'First Name', 'insurance_number' -> 'Insurance number'."""
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", name.strip()).replace("_", " ")
    return spaced[:1].upper() + spaced[1:]


def schema_properties(schema: Optional[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Schema properties keyed by trimmed field name."""
    properties = (schema or {}).get("properties") or {}
    return {str(name).strip(): prop for name, prop in properties.items() if isinstance(prop, dict)}


def resolve_field_order(schema: Optional[Dict[str, Any]], ui_schema: Optional[Dict[str, Any]]) -> List[str]:
    """
    Field names in display order.

    Uses the layout schema's ui:order when present ('*' stands for all
    remaining properties; properties the list leaves out are appended),
    otherwise the declaration order of the schema properties. Names are
    trimmed and unknown names are ignored.
    """
    properties = schema_properties(schema)
    order = (ui_schema or {}).get("ui:order")
    if not isinstance(order, list) or not order:
        return list(properties)

    listed = {str(raw).strip() for raw in order}
    names: List[str] = []
    for raw in order:
        name = str(raw).strip()
        if name == "*":
            names.extend(n for n in properties if n not in names and n not in listed)
        elif name in properties and name not in names:
            names.append(name)
        elif name not in properties:
            logger.debug(f"ui:order references unknown field '{name}'")
    names.extend(n for n in properties if n not in names)
    return names


def _bundle_text(bundle: Optional[Dict[str, Any]], role: str, name: str) -> Optional[str]:
    section = (bundle or {}).get(role)
    if isinstance(section, dict):
        value = section.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _ui_hints(ui_schema: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    hints = (ui_schema or {}).get(name)
    return hints if isinstance(hints, dict) else {}


def resolve_label(name: str, prop: Dict[str, Any], bundle: Optional[Dict[str, Any]]) -> str:
    """Translation bundle -> schema title -> humanized field name."""
    return _bundle_text(bundle, "fields", name) or prop.get("title") or humanize_field_name(name)


def resolve_options(name: str, prop: Dict[str, Any], bundle: Optional[Dict[str, Any]]) -> List[FieldOption]:
    """Enum values with their display labels: bundle options -> enumNames -> value."""
    values = prop.get("enum") or []
    enum_names = prop.get("enumNames") or []
    translated = ((bundle or {}).get("options") or {}).get(name)
    translated = translated if isinstance(translated, dict) else {}

    options = []
    for index, value in enumerate(values):
        label = translated.get(str(value))
        if not label and index < len(enum_names):
            label = enum_names[index]
        options.append(FieldOption(value=str(value), label=str(label or value)))
    return options


def _text_constraints(prop: Dict[str, Any]) -> TextConstraints:
    return TextConstraints(
        min_length=prop.get("minLength"),
        max_length=prop.get("maxLength"),
        pattern=prop.get("pattern"),
    )


def _string_field(name: str, prop: Dict[str, Any], hints: Dict[str, Any], bundle: Optional[Dict[str, Any]]) -> Tuple[FieldKind, Any]:
    widget = hints.get("ui:widget")
    fmt = prop.get("format")

    if prop.get("enum"):
        kind = FieldKind.RADIO if widget == "radio" else FieldKind.SELECT
        return kind, ChoiceConstraints(options=resolve_options(name, prop, bundle))
    if widget == "textarea":
        rows = (hints.get("ui:options") or {}).get("rows", DEFAULT_TEXTAREA_ROWS)
        return FieldKind.TEXTAREA, TextareaConstraints(
            min_length=prop.get("minLength"),
            max_length=prop.get("maxLength"),
            rows=int(rows),
        )
    if fmt == "signature" or widget == "signature":
        return FieldKind.SIGNATURE, NoConstraints()
    if fmt == "email":
        return FieldKind.EMAIL, _text_constraints(prop)
    if fmt == "date":
        return FieldKind.DATE, NoConstraints()
    if fmt in ("uri", "url"):
        return FieldKind.URL, _text_constraints(prop)
    return FieldKind.TEXT, _text_constraints(prop)


def _number_field(name: str, prop: Dict[str, Any], hints: Dict[str, Any], bundle: Optional[Dict[str, Any]]) -> Tuple[FieldKind, Any]:
    return FieldKind.NUMBER, NumberConstraints(
        minimum=prop.get("minimum"),
        maximum=prop.get("maximum"),
        integer=prop.get("type") == "integer",
    )


def _boolean_field(name: str, prop: Dict[str, Any], hints: Dict[str, Any], bundle: Optional[Dict[str, Any]]) -> Tuple[FieldKind, Any]:
    return FieldKind.CHECKBOX, NoConstraints()


FieldBuilder = Callable[[str, Dict[str, Any], Dict[str, Any], Optional[Dict[str, Any]]], Tuple[FieldKind, Any]]

# Declared schema type -> builder of (kind, constraints)
FIELD_BUILDERS: Dict[str, FieldBuilder] = {
    "string": _string_field,
    "integer": _number_field,
    "number": _number_field,
    "boolean": _boolean_field,
}


@dataclass
class DefinitionCheck:
    """Outcome of checking a definition's schema shape without rendering it."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


class FormMarkupService:
    """
    Service for converting form definitions to HTML markup.
    """

    def __init__(self, env: Optional[Environment] = None, cache: Optional[FormMarkupCache] = None):
        self.env = env or create_template_environment()
        self.cache = cache if cache is not None else form_markup_cache

    @staticmethod
    def build_fields(
        schema: Optional[Dict[str, Any]],
        ui_schema: Optional[Dict[str, Any]] = None,
        bundle: Optional[Dict[str, Any]] = None,
        values: Optional[Dict[str, Any]] = None,
        validation: Optional[ValidationResult] = None,
    ) -> List[FormField]:
        """
        Resolve the schema into ordered field variants. Unsupported types are skipped.

        When re-rendering a rejected submission, `values` pre-fills each field
        and `validation` attaches its field errors.
        """
        properties = schema_properties(schema)
        required = {str(name).strip() for name in (schema or {}).get("required") or []}
        submitted = {str(key).strip(): value for key, value in (values or {}).items()}
        field_errors = validation.field_errors if validation is not None else {}

        fields: List[FormField] = []
        for name in resolve_field_order(schema, ui_schema):
            prop = properties[name]
            declared = prop.get("type")
            builder = FIELD_BUILDERS.get(declared) if isinstance(declared, str) else None
            if builder is None:
                logger.warning(f"Skipping field '{name}' with unsupported type: {declared}")
                continue

            hints = _ui_hints(ui_schema, name)
            kind, constraints = builder(name, prop, hints, bundle)
            fields.append(FormField(
                name=name,
                kind=kind,
                label=resolve_label(name, prop, bundle),
                required=name in required,
                placeholder=_bundle_text(bundle, "placeholders", name) or hints.get("ui:placeholder"),
                help_text=_bundle_text(bundle, "helpTexts", name) or hints.get("ui:help"),
                constraints=constraints,
                value=submitted.get(name),
                errors=list(field_errors.get(name, [])),
            ))
        return fields

    @staticmethod
    def ui_texts(language: str, bundle: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """Button and helper labels: bundle 'buttons'/'messages' over language defaults."""
        texts = dict(DEFAULT_UI_TEXTS.get(language, DEFAULT_UI_TEXTS["en"]))
        buttons = (bundle or {}).get("buttons") or {}
        messages = (bundle or {}).get("messages") or {}
        for key in ("submit", "cancel"):
            if isinstance(buttons.get(key), str):
                texts[key] = buttons[key]
        if isinstance(buttons.get("clearSignature"), str):
            texts["clear_signature"] = buttons["clearSignature"]
        if isinstance(messages.get("selectPlaceholder"), str):
            texts["select_placeholder"] = messages["selectPlaceholder"]
        if isinstance(messages.get("submitSuccess"), str):
            texts["submitted_message"] = messages["submitSuccess"]
        return texts

    def render_fields(
        self,
        schema: Optional[Dict[str, Any]],
        ui_schema: Optional[Dict[str, Any]] = None,
        bundle: Optional[Dict[str, Any]] = None,
        language: str = DEFAULT_FORM_LANGUAGE,
        values: Optional[Dict[str, Any]] = None,
        validation: Optional[ValidationResult] = None,
    ) -> str:
        """Render the field markup fragment for a schema, with submitted values and errors if given."""
        fields = self.build_fields(schema, ui_schema, bundle, values, validation)
        template = self.env.get_template("forms/form_fields.html")
        return template.render(
            fields=fields,
            global_errors=validation.global_errors if validation is not None else [],
            texts=self.ui_texts(language, bundle),
        )

    def render_form(self, db: Session, definition: FormDefinition, language: str = DEFAULT_FORM_LANGUAGE) -> str:
        """Render (or fetch from cache) the field markup of a definition in a language."""
        def render() -> str:
            bundle = FormTranslationService.get_bundle(db, definition.id, language)
            logger.info(f"Rendering markup for form {definition.id} ({language})")
            return self.render_fields(definition.schema, definition.ui_schema, bundle, language)

        return self.cache.get_or_render(definition.id, language, render)

    def render_preview(
        self,
        db: Session,
        definition: FormDefinition,
        language: str = DEFAULT_FORM_LANGUAGE,
        action: str = "",
        values: Optional[Dict[str, Any]] = None,
        validation: Optional[ValidationResult] = None,
    ) -> str:
        """
        Render a standalone HTML page for previewing or filling in a definition.

        Pass the submitted `values` and the failed `validation` to show a
        rejected submission again with its errors. Rendering problems produce
        an error page instead of an exception.
        """
        lang = SUPPORTED_LANGUAGES.get(language) or SUPPORTED_LANGUAGES[DEFAULT_FORM_LANGUAGE]
        try:
            bundle = FormTranslationService.get_bundle(db, definition.id, lang.code)
            fields_markup = self.render_fields(
                definition.schema, definition.ui_schema, bundle, lang.code, values, validation
            )
            template = self.env.get_template("forms/form_page.html")
            return template.render(
                title=_bundle_text(bundle, "messages", "title") or definition.name,
                description=_bundle_text(bundle, "messages", "description") or definition.description,
                language=lang,
                action=action,
                fields_markup=fields_markup,
                texts=self.ui_texts(lang.code, bundle),
            )
        except Exception as e:
            logger.exception(f"Error rendering preview of form {definition.id}: {e}")
            return self.render_error_page(f"Form preview could not be generated: {e}", lang.code)

    def render_confirmation(
        self,
        db: Session,
        definition: FormDefinition,
        submission: FormSubmission,
        language: str = DEFAULT_FORM_LANGUAGE,
    ) -> str:
        """Render the page shown after a browser submission was stored."""
        lang = SUPPORTED_LANGUAGES.get(language) or SUPPORTED_LANGUAGES[DEFAULT_FORM_LANGUAGE]
        bundle = FormTranslationService.get_bundle(db, definition.id, lang.code)
        texts = self.ui_texts(lang.code, bundle)
        template = self.env.get_template("forms/submission_received.html")
        return template.render(
            title=texts["submitted_title"],
            message=texts["submitted_message"],
            language=lang,
            submission=submission,
        )

    def render_error_page(self, message: str, language: str = "en") -> str:
        template = self.env.get_template("forms/error_page.html")
        return template.render(title="Form Error", message=message, language_code=language)

    def validate_form_definition(self, definition: FormDefinition) -> DefinitionCheck:
        """
        Check a definition's schema shape and attempt a dry-run conversion.

        Reports a missing schema, a missing 'properties' node, a non-object
        root type and conversion exceptions as errors, a missing layout
        schema as a warning.
        """
        check = DefinitionCheck()
        schema = definition.schema
        if not schema:
            check.errors.append("Schema is missing")
            return check
        if not isinstance(schema.get("properties"), dict):
            check.errors.append("Schema must have a 'properties' object")
        if schema.get("type") != "object":
            check.errors.append("Schema root type must be 'object'")
        if not definition.ui_schema:
            check.warnings.append("UI schema is missing, fields will use default widgets and schema order")

        try:
            self.render_fields(schema, definition.ui_schema)
        except Exception as e:
            logger.warning(f"Dry-run conversion of form {definition.id} failed: {e}")
            check.errors.append(f"Conversion failed: {e}")
        return check
