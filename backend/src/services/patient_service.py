"""
Patient service for resolving and updating patients from form submissions.

A submission either matches an existing patient (by email, else by name
and birth date) or creates a new one. Matched patients are updated with
the submission's non-blank values: the latest submission wins.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from core.constants import InsuranceType
from core.exceptions import NotFoundError
from models import Patient
from models.patient import CANONICAL_ATTRIBUTES

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_insurance_type(value: Any) -> str:
    """Map a submitted insurance type to a known value, defaulting to SELF_INSURED."""
    text = str(value or "").strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return InsuranceType(text).value
    except ValueError:
        if text:
            logger.warning(f"Unknown insurance type '{value}', defaulting to {InsuranceType.SELF_INSURED.value}")
        return InsuranceType.SELF_INSURED.value


def _attribute_value(canonical_name: str, value: Any) -> Any:
    if canonical_name == "insuranceType":
        return parse_insurance_type(value)
    if canonical_name == "birthDate":
        return value  # already parsed by the caller
    return str(value).strip()


class PatientService:
    """
    Service class for patient operations used by form submission processing.
    """

    @staticmethod
    def get(db: Session, patient_id: int) -> Patient:
        patient = db.query(Patient).filter(Patient.id == patient_id).first()
        if not patient:
            raise NotFoundError("Patient", patient_id)
        return patient

    @staticmethod
    def find_existing(
        db: Session,
        email: Optional[str],
        first_name: str,
        last_name: str,
        birth_date: date,
    ) -> Optional[Patient]:
        """
        Find the patient a submission belongs to.

        Looks up by email first; if several patients share the email the most
        recently created one is used. Falls back to the exact
        (first name, last name, birth date) tuple.
        """
        if email and email.strip():
            matches = db.query(Patient).filter(
                func.lower(Patient.email_address) == email.strip().lower()
            ).order_by(Patient.created_at.desc(), Patient.id.desc()).all()
            if len(matches) > 1:
                logger.warning(
                    f"Found {len(matches)} patients with the same email, using most recent patient {matches[0].id}"
                )
            if matches:
                return matches[0]

        return db.query(Patient).filter(
            Patient.first_name == first_name,
            Patient.last_name == last_name,
            Patient.birth_date == birth_date,
        ).order_by(Patient.created_at.desc(), Patient.id.desc()).first()

    @staticmethod
    def create_from_submission(
        db: Session,
        canonical: Dict[str, Any],
        custom_fields: Dict[str, Any],
        language: Optional[str] = None,
    ) -> Patient:
        """
        Create a patient from canonical values.

        `canonical` must hold firstName, lastName and a parsed birthDate.
        """
        patient = Patient(
            first_name=str(canonical["firstName"]).strip(),
            last_name=str(canonical["lastName"]).strip(),
            birth_date=canonical["birthDate"],
            insurance_type=InsuranceType.SELF_INSURED.value,
            language=language,
            custom_fields={},
        )
        PatientService.apply_submission(patient, canonical, custom_fields, language)
        db.add(patient)
        db.flush()

        logger.info(f"Created patient {patient.id} from form submission")
        return patient

    @staticmethod
    def apply_submission(
        patient: Patient,
        canonical: Dict[str, Any],
        custom_fields: Dict[str, Any],
        language: Optional[str] = None,
    ) -> None:
        """
        Overwrite patient attributes with the non-blank submitted values.

        Canonical names without a patient attribute and unmapped fields are
        merged into `custom_fields`, again only for non-blank values.
        """
        extra: Dict[str, Any] = dict(patient.custom_fields or {})
        for canonical_name, value in canonical.items():
            if _is_blank(value):
                continue
            attribute = CANONICAL_ATTRIBUTES.get(canonical_name)
            if attribute:
                setattr(patient, attribute, _attribute_value(canonical_name, value))
            else:
                extra[canonical_name] = value

        for name, value in custom_fields.items():
            if not _is_blank(value):
                extra[name] = value
        patient.custom_fields = extra

        if language:
            patient.language = language

    @staticmethod
    def resolve_from_submission(
        db: Session,
        canonical: Dict[str, Any],
        custom_fields: Dict[str, Any],
        language: Optional[str] = None,
    ) -> Patient:
        """Find the matching patient and update it, or create a new one."""
        email = canonical.get("email")
        patient = PatientService.find_existing(
            db,
            email=str(email) if email is not None else None,
            first_name=str(canonical["firstName"]).strip(),
            last_name=str(canonical["lastName"]).strip(),
            birth_date=canonical["birthDate"],
        )
        if patient is None:
            return PatientService.create_from_submission(db, canonical, custom_fields, language)

        PatientService.apply_submission(patient, canonical, custom_fields, language)
        db.flush()
        logger.info(f"Updated patient {patient.id} from form submission")
        return patient
