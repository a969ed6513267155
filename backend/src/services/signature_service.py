"""
Signature service: extracts signature images from submitted form data and
stores them with their SHA-256 hash.
"""

import base64
import binascii
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import SIGNATURE_DATA_URL_PREFIX, SIGNATURE_MIME_TYPE, SignatureDocumentType, SignatureType
from models import FormSubmission, Patient, Signature

logger = logging.getLogger(__name__)


def is_signature_value(value: Any) -> bool:
    """True for PNG data URLs as produced by the signature pad."""
    return isinstance(value, str) and value.startswith(SIGNATURE_DATA_URL_PREFIX)


def decode_signature(data_url: str) -> bytes:
    """
    Decode a signature data URL into raw image bytes.

    Raises:
        ValueError: If the value is not a PNG data URL or the payload is not valid base64
    """
    if not is_signature_value(data_url):
        raise ValueError("Not a PNG signature data URL")
    payload = data_url[len(SIGNATURE_DATA_URL_PREFIX):].strip()
    if not payload:
        raise ValueError("Signature data URL has an empty payload")
    try:
        return base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid signature payload: {e}") from e


class SignatureService:
    """
    Service class for signature records.
    """

    @staticmethod
    def store_signature(
        db: Session,
        patient: Patient,
        data_url: str,
        submission: Optional[FormSubmission] = None,
        field_name: Optional[str] = None,
        signed_at: Optional[datetime] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Signature:
        """
        Decode, hash and persist one signature.

        Raises:
            ValueError: If the data URL cannot be decoded
        """
        image = decode_signature(data_url)
        signature = Signature(
            patient_id=patient.id,
            form_submission_id=submission.id if submission else None,
            signature_data=image,
            signature_hash=Signature.compute_hash(image),
            mime_type=SIGNATURE_MIME_TYPE,
            signer_name=patient.full_name,
            signature_type=SignatureType.SIMPLE.value,
            document_type=SignatureDocumentType.ANAMNESIS.value,
            field_name=field_name,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        if signed_at is not None:
            signature.signed_at = signed_at
        db.add(signature)
        db.flush()
        return signature

    @staticmethod
    def extract_signatures(
        db: Session,
        data: Dict[str, Any],
        patient: Patient,
        submission: FormSubmission,
    ) -> List[Signature]:
        """
        Store every signature-shaped value of the submitted data.

        A signature that cannot be decoded is logged and skipped; it does not
        fail the submission.
        """
        stored: List[Signature] = []
        for field_name, value in data.items():
            if not is_signature_value(value):
                continue
            try:
                stored.append(SignatureService.store_signature(
                    db,
                    patient,
                    value,
                    submission=submission,
                    field_name=field_name,
                    signed_at=submission.submission_date,
                    ip_address=submission.ip_address,
                    user_agent=submission.user_agent,
                ))
            except ValueError as e:
                logger.error(f"Skipping signature in field '{field_name}' of submission {submission.id}: {e}")

        if stored:
            logger.info(f"Stored {len(stored)} signature(s) for submission {submission.id}")
        return stored

    @staticmethod
    def list_for_patient_between(db: Session, patient_id: int, start: datetime, end: datetime) -> List[Signature]:
        """Signatures of a patient captured within [start, end], oldest first."""
        return db.query(Signature).filter(
            Signature.patient_id == patient_id,
            Signature.signed_at >= start,
            Signature.signed_at <= end,
        ).order_by(Signature.signed_at, Signature.id).all()

    @staticmethod
    def list_for_submission(db: Session, submission_id: int) -> List[Signature]:
        return db.query(Signature).filter(
            Signature.form_submission_id == submission_id
        ).order_by(Signature.signed_at, Signature.id).all()
