# Package initialization
# Import all models to ensure relationships are properly established
from .field_type import FieldType
from .form_definition import FormDefinition
from .form_translation import FormTranslation
from .patient import Patient
from .form_submission import FormSubmission
from .signature import Signature

__all__ = [
    "FieldType",
    "FormDefinition",
    "FormTranslation",
    "Patient",
    "FormSubmission",
    "Signature",
]
