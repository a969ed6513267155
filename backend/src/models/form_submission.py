"""
Form submission model.

A submission keeps the raw submitted values verbatim so the generated
document reflects what the patient entered, even if the form definition
changes later.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from sqlalchemy import String, Text, ForeignKey, TIMESTAMP, Index, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import SubmissionStatus
from core.database import Base
from models.base import JSONType
from utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from models.form_definition import FormDefinition
    from models.patient import Patient
    from models.signature import Signature


class FormSubmission(Base):
    """
    A completed intake form.

    Lifecycle: SUBMITTED -> COMPLETED (document generated) or FAILED.
    """

    __tablename__ = "form_submissions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    form_definition_id: Mapped[int] = mapped_column(ForeignKey("form_definitions.id"), nullable=False)
    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id"), nullable=False)

    submission_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    form_language: Mapped[str] = mapped_column(String(10), nullable=False)
    form_version: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    form_data_snapshot: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    """Submitted values exactly as received, keyed by schema field name."""

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SubmissionStatus.SUBMITTED.value)

    pdf_file_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pdf_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    """SHA-256 of the generated document bytes, hex encoded."""
    pdf_generated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Failure reason when status is FAILED."""

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    device_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    form_definition: Mapped["FormDefinition"] = relationship("FormDefinition", back_populates="submissions")
    patient: Mapped["Patient"] = relationship("Patient", back_populates="submissions")
    signatures: Mapped[List["Signature"]] = relationship("Signature", back_populates="form_submission")

    __table_args__ = (
        Index("idx_form_submissions_patient", "patient_id"),
        Index("idx_form_submissions_form", "form_definition_id"),
        CheckConstraint(
            "status IN ('SUBMITTED', 'COMPLETED', 'FAILED', 'ARCHIVED')",
            name="check_submission_status",
        ),
    )

    @property
    def is_completed(self) -> bool:
        return self.status == SubmissionStatus.COMPLETED.value

    def mark_completed(self, pdf_file_path: str, pdf_hash: str, generated_at: Optional[datetime] = None) -> None:
        self.pdf_file_path = pdf_file_path
        self.pdf_hash = pdf_hash
        self.pdf_generated_at = generated_at or utc_now()
        self.status = SubmissionStatus.COMPLETED.value
        self.notes = None

    def mark_failed(self, reason: str) -> None:
        self.status = SubmissionStatus.FAILED.value
        self.notes = reason
