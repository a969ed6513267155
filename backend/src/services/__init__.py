"""
Services package for the form engine's business logic.

Each service wraps one part of the engine (field type registry, form
definitions, translations, validation, markup, submissions, documents)
and works inside the caller's database session.
"""

from .field_type_service import FieldTypeService
from .form_definition_service import FormDefinitionService
from .form_translation_service import FormTranslationService
from .form_validation_service import FormValidationService
from .form_markup_service import FormMarkupService
from .patient_service import PatientService
from .signature_service import SignatureService
from .form_submission_service import FormSubmissionService
from .form_document_service import FormDocumentService

__all__ = [
    "FieldTypeService",
    "FormDefinitionService",
    "FormTranslationService",
    "FormValidationService",
    "FormMarkupService",
    "PatientService",
    "SignatureService",
    "FormSubmissionService",
    "FormDocumentService",
]
