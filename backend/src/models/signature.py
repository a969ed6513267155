"""
Signature model: a captured handwritten signature image with its hash.
"""

import hashlib
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import String, LargeBinary, ForeignKey, TIMESTAMP, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import SignatureType, SignatureDocumentType, SIGNATURE_MIME_TYPE
from core.database import Base
from utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from models.patient import Patient
    from models.form_submission import FormSubmission


class Signature(Base):
    """
    Signature captured on a signature pad while filling in a form.

    The SHA-256 hash of the raw image bytes is stored alongside the image
    so tampering can be detected later.
    """

    __tablename__ = "signatures"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)
    form_submission_id: Mapped[Optional[int]] = mapped_column(ForeignKey("form_submissions.id"), nullable=True)

    signature_data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    signature_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(50), nullable=False, default=SIGNATURE_MIME_TYPE)

    signer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    signature_type: Mapped[str] = mapped_column(String(20), nullable=False, default=SignatureType.SIMPLE.value)
    document_type: Mapped[str] = mapped_column(String(20), nullable=False, default=SignatureDocumentType.ANAMNESIS.value)
    field_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Schema field the signature was captured in."""

    signed_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    patient: Mapped["Patient"] = relationship("Patient", back_populates="signatures")
    form_submission: Mapped[Optional["FormSubmission"]] = relationship("FormSubmission", back_populates="signatures")

    __table_args__ = (
        Index("idx_signatures_patient_signed_at", "patient_id", "signed_at"),
    )

    @staticmethod
    def compute_hash(data: bytes) -> str:
        return hashlib.sha256(data).hexdigest()

    def verify_integrity(self) -> bool:
        """Recompute the hash of the stored image and compare it with the recorded one."""
        return self.compute_hash(self.signature_data) == self.signature_hash
