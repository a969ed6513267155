"""
Form submission service.

Maps submitted values onto canonical patient attributes through the form's
field mapping table, resolves or creates the patient, stores the raw
snapshot and extracts signatures.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.config import DEFAULT_FORM_LANGUAGE
from core.constants import BIRTH_DATE_FORMATS, REQUIRED_CANONICAL_FIELDS, SUPPORTED_LANGUAGES
from core.exceptions import FormStateError, FormValidationError, NotFoundError, SubmissionFormatError
from models import FormDefinition, FormSubmission
from services.field_type_service import FieldTypeService
from services.form_definition_service import FormDefinitionService
from services.form_translation_service import FormTranslationService
from services.form_validation_service import FormValidationService
from services.patient_service import PatientService
from services.signature_service import SignatureService, is_signature_value
from shared_types.validation import ValidationResult
from utils.datetime_utils import parse_date_with_formats, utc_now

logger = logging.getLogger(__name__)


@dataclass
class SubmissionMetadata:
    """Request details recorded with a submission."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def device_type(self) -> str:
        return detect_device_type(self.user_agent)


@dataclass
class CanonicalSubmission:
    """
    Submitted data split by the field mapping table.

    `canonical` holds values of mapped fields under their canonical names,
    `custom_fields` holds every unmapped field verbatim. Together,
    `mapped_fields` and the keys of `custom_fields` are exactly the
    submitted field names.
    """
    canonical: Dict[str, Any] = field(default_factory=dict)
    mapped_fields: List[str] = field(default_factory=list)
    custom_fields: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SubmissionResult:
    """Outcome of a submission: either a stored submission or validation errors."""
    validation: ValidationResult
    submission: Optional[FormSubmission] = None

    @property
    def accepted(self) -> bool:
        return self.submission is not None


def detect_device_type(user_agent: Optional[str]) -> str:
    """Classify a user agent as Mobile, Tablet or Desktop."""
    agent = (user_agent or "").lower()
    if "tablet" in agent or "ipad" in agent:
        return "Tablet"
    if "mobile" in agent or "android" in agent:
        return "Mobile"
    return "Desktop"


def parse_birth_date(value: Any) -> date:
    """
    Parse a submitted birth date, trying each accepted format in turn.

    Raises:
        SubmissionFormatError: If no accepted format matches
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_date_with_formats(str(value))
    if parsed is None:
        accepted = ", ".join(label for _, label in BIRTH_DATE_FORMATS)
        raise SubmissionFormatError(
            f"Invalid birth date format: {value}. Expected formats: {accepted}",
            field="birthDate",
        )
    return parsed


class FormSubmissionService:
    """
    Service class for form submission processing.
    """

    @staticmethod
    def canonicalize(db: Session, definition: FormDefinition, data: Dict[str, Any]) -> CanonicalSubmission:
        """
        Split submitted values into canonical and custom fields.

        Mapping entries that point at unknown field types count as unmapped.
        Blank values of mapped fields are not copied into `canonical`.
        """
        mapped_types = {
            name.strip(): field_type
            for name, field_type in FieldTypeService.get_mapped_fields(db, definition.field_mappings).items()
        }
        result = CanonicalSubmission()
        for name, value in (data or {}).items():
            field_type = mapped_types.get(name.strip())
            if field_type is None:
                result.custom_fields[name] = value
                continue
            result.mapped_fields.append(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            result.canonical[field_type.canonical_name] = value.strip() if isinstance(value, str) else value
        return result

    @staticmethod
    def check_required_fields(canonical: Dict[str, Any]) -> Dict[str, Any]:
        """
        Ensure first name, last name and birth date were submitted and parse the birth date.

        Returns:
            A copy of `canonical` with `birthDate` parsed to a date

        Raises:
            SubmissionFormatError: If a required field is missing or the birth date is unparseable
        """
        for canonical_name, display_name in REQUIRED_CANONICAL_FIELDS:
            value = canonical.get(canonical_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise SubmissionFormatError(
                    f"{display_name} ({canonical_name}) is required but not found in mapped form data",
                    field=canonical_name,
                )
        checked = dict(canonical)
        checked["birthDate"] = parse_birth_date(canonical["birthDate"])
        return checked

    @staticmethod
    def submit(
        db: Session,
        form_id: int,
        data: Dict[str, Any],
        language: Optional[str] = None,
        metadata: Optional[SubmissionMetadata] = None,
    ) -> SubmissionResult:
        """
        Validate and store a submission of a published form.

        Invalid data is returned in the result's `validation` without
        storing anything.

        Raises:
            NotFoundError: If the form does not exist
            FormStateError: If the form is not published
            FormValidationError: If the language is not supported
            SubmissionFormatError: If identity fields are missing or malformed
        """
        definition = FormDefinitionService.get(db, form_id)
        if not definition.is_published:
            raise FormStateError(
                f"Cannot submit to form that is not PUBLISHED. Current status: {definition.status}"
            )
        language = language or DEFAULT_FORM_LANGUAGE
        if language not in SUPPORTED_LANGUAGES:
            raise FormValidationError(f"Unsupported language: {language}")
        data = dict(data or {})
        metadata = metadata or SubmissionMetadata()

        bundle = FormTranslationService.get_bundle(db, definition.id, language)
        validation = FormValidationService.validate_submission(definition, data, bundle)
        if not validation.valid:
            logger.info(f"Submission to form {form_id} rejected with {len(validation.all_errors)} validation error(s)")
            return SubmissionResult(validation=validation)

        split = FormSubmissionService.canonicalize(db, definition, data)
        canonical = FormSubmissionService.check_required_fields(split.canonical)
        custom_fields = {k: v for k, v in split.custom_fields.items() if not is_signature_value(v)}
        patient_values = {k: v for k, v in canonical.items() if not is_signature_value(v)}

        patient = PatientService.resolve_from_submission(db, patient_values, custom_fields, language)

        submission = FormSubmission(
            form_definition_id=definition.id,
            patient_id=patient.id,
            submission_date=utc_now(),
            form_language=language,
            form_version=definition.version,
            form_data_snapshot=data,
            ip_address=metadata.ip_address,
            user_agent=metadata.user_agent,
            device_type=metadata.device_type,
        )
        db.add(submission)
        db.flush()

        SignatureService.extract_signatures(db, data, patient, submission)

        db.commit()
        db.refresh(submission)
        logger.info(f"Stored submission {submission.id} of form {definition.id} for patient {patient.id}")
        return SubmissionResult(validation=validation, submission=submission)

    @staticmethod
    def get(db: Session, submission_id: int) -> FormSubmission:
        submission = db.query(FormSubmission).filter(FormSubmission.id == submission_id).first()
        if not submission:
            raise NotFoundError("Form submission", submission_id)
        return submission

    @staticmethod
    def list_for_patient(db: Session, patient_id: int) -> List[FormSubmission]:
        return db.query(FormSubmission).filter(
            FormSubmission.patient_id == patient_id
        ).order_by(FormSubmission.submission_date.desc(), FormSubmission.id.desc()).all()

    @staticmethod
    def list_for_form(db: Session, form_id: int) -> List[FormSubmission]:
        return db.query(FormSubmission).filter(
            FormSubmission.form_definition_id == form_id
        ).order_by(FormSubmission.submission_date.desc(), FormSubmission.id.desc()).all()

    @staticmethod
    def mark_failed(db: Session, submission_id: int, reason: str) -> FormSubmission:
        submission = FormSubmissionService.get(db, submission_id)
        submission.mark_failed(reason)
        db.commit()
        db.refresh(submission)
        logger.warning(f"Submission {submission_id} marked as failed: {reason}")
        return submission
