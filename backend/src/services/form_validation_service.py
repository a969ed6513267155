"""
Validation of submitted form data against a form definition's data schema.

Submitted values arrive as a flat map of strings (HTML form posts) or as
JSON. They are coerced into a document following the declared property
types and checked with jsonschema. Problems are returned as a
ValidationResult, never raised.
"""

import logging
import re
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from models import FormDefinition
from shared_types.validation import ValidationResult

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_TRUE_VALUES = {"true", "on", "yes", "1"}
_FALSE_VALUES = {"false", "off", "no", "0"}


def normalize_field_path(path: Optional[str]) -> Optional[str]:
    """
    Turn a JSON path ('$.a.b') or JSON pointer ('/a/b') into a dotted field name.

    Returns None for the document root, meaning the problem is not tied to a field.
    """
    if path is None:
        return None
    path = path.strip()
    if path in ("", "$", "/"):
        return None
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("$"):
        path = path[1:]
    elif path.startswith("/"):
        path = path[1:].replace("/", ".")
    return path or None


def _declared_type(property_schema: Dict[str, Any]) -> Optional[str]:
    declared = property_schema.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    return declared


def _coerce_value(value: Any, declared: Optional[str]) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if declared == "integer" and _INTEGER_RE.match(text):
        return int(text)
    if declared == "number":
        if _INTEGER_RE.match(text):
            return int(text)
        try:
            return float(text)
        except ValueError:
            return value
    if declared == "boolean":
        lowered = text.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return value


def coerce_form_data(data: Dict[str, Any], schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the document to validate from submitted values.

    Field names are trimmed, blank values are treated as absent and strings
    are converted to the property's declared type where possible.
    """
    properties = (schema or {}).get("properties") or {}
    document: Dict[str, Any] = {}
    for raw_name, value in (data or {}).items():
        name = raw_name.strip() if isinstance(raw_name, str) else raw_name
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        property_schema = properties.get(name)
        if isinstance(property_schema, dict):
            value = _coerce_value(value, _declared_type(property_schema))
        document[name] = value
    return document


def _required_property(error: ValidationError) -> Optional[str]:
    """Name of the missing property of a 'required' violation."""
    if not isinstance(error.instance, dict):
        return None
    for candidate in error.validator_value or []:
        if candidate not in error.instance and error.message.startswith(repr(candidate)):
            return candidate
    return None


def _error_message(error: ValidationError, messages: Dict[str, str]) -> str:
    validator = str(error.validator)
    if validator in messages:
        return messages[validator]
    value = error.validator_value
    if validator == "required":
        return "This field is required"
    if validator == "minLength":
        return f"Must be at least {value} characters"
    if validator == "maxLength":
        return f"Must be at most {value} characters"
    if validator == "minimum":
        return f"Must be at least {value}"
    if validator == "maximum":
        return f"Must be at most {value}"
    if validator == "format":
        return f"Invalid {value} format"
    if validator == "enum":
        return "Must be one of: " + ", ".join(str(v) for v in value)
    if validator == "pattern":
        return "Does not match the required pattern"
    if validator == "type":
        return f"Must be of type {value}"
    return error.message


class FormValidationService:
    """
    Service class for validating submissions against data schemas.
    """

    @staticmethod
    def validate(
        data: Dict[str, Any],
        schema: Dict[str, Any],
        messages: Optional[Dict[str, str]] = None,
    ) -> ValidationResult:
        """
        Validate submitted values against a JSON-schema-like data schema.

        Args:
            data: Submitted values keyed by field name
            schema: The form's data schema
            messages: Optional message overrides keyed by schema keyword
                (e.g. {"required": "Pflichtfeld"}), usually the translation
                bundle's 'validation' role

        Returns:
            ValidationResult with field errors keyed by field name and
            global errors for problems at the document root
        """
        result = ValidationResult()
        overrides = {k: v for k, v in (messages or {}).items() if isinstance(v, str)}
        try:
            document = coerce_form_data(data, schema)
            validator = Draft7Validator(schema or {}, format_checker=FormatChecker())
            for error in validator.iter_errors(document):
                field_name = normalize_field_path(error.json_path)
                if error.validator == "required":
                    missing = _required_property(error)
                    if missing is not None:
                        field_name = f"{field_name}.{missing}" if field_name else missing
                message = _error_message(error, overrides)
                if field_name:
                    result.add_field_error(field_name, message)
                else:
                    result.add_global_error(message)
        except Exception as e:
            logger.exception(f"Unexpected error while validating form data: {e}")
            result.add_global_error(f"Validation error: {e}")

        if not result.valid:
            logger.debug(f"Form data failed validation: {result.all_errors}")
        return result

    @staticmethod
    def validate_submission(
        definition: FormDefinition,
        data: Dict[str, Any],
        bundle: Optional[Dict[str, Any]] = None,
    ) -> ValidationResult:
        """Validate data against a definition, using its translation bundle's validation messages."""
        messages = (bundle or {}).get("validation") if bundle else None
        return FormValidationService.validate(data, definition.schema or {}, messages)
