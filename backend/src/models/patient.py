"""
Patient model representing the person an intake form is filled in for.

Patients are resolved (or created) from form submissions. Known identity,
contact, insurance and medical attributes live in typed columns; values of
form fields that map to no known attribute are kept in `custom_fields`.
"""

from sqlalchemy import String, Text, TIMESTAMP, Date, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime, date
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from core.constants import InsuranceType
from core.database import Base
from models.base import JSONType

if TYPE_CHECKING:
    from models.form_submission import FormSubmission
    from models.signature import Signature


# Canonical field name (as used by the field type registry) -> Patient attribute
CANONICAL_ATTRIBUTES: Dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "birthDate": "birth_date",
    "gender": "gender",
    "email": "email_address",
    "phone": "phone_number",
    "mobile": "mobile_number",
    "street": "street",
    "zipCode": "zip_code",
    "city": "city",
    "country": "country",
    "insuranceType": "insurance_type",
    "insuranceNumber": "insurance_number",
    "insuranceCompany": "insurance_company",
    "medicalHistory": "medical_history",
    "allergies": "allergies",
    "medications": "medications",
    "currentComplaints": "current_complaints",
}


class Patient(Base):
    """
    Patient record populated by canonicalized form submissions.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    birth_date: Mapped[date] = mapped_column(Date, nullable=False)

    gender: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    """Free text as submitted, e.g. 'MALE', 'FEMALE', 'OTHER', 'PREFER_NOT_TO_SAY'."""

    email_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Contact email. First key used to recognise a returning patient."""

    phone_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    mobile_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    zip_code: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    insurance_type: Mapped[str] = mapped_column(String(30), nullable=False, default=InsuranceType.SELF_INSURED.value)
    insurance_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    insurance_company: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    medical_history: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    allergies: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    medications: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    current_complaints: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    language: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    """Language of the most recent submission."""

    custom_fields: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    """Submitted values of fields that map to no patient attribute."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    submissions: Mapped[List["FormSubmission"]] = relationship("FormSubmission", back_populates="patient")
    signatures: Mapped[List["Signature"]] = relationship("Signature", back_populates="patient")

    __table_args__ = (
        Index("idx_patients_email", "email_address"),
        Index("idx_patients_identity", "first_name", "last_name", "birth_date"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def canonical_value(self, canonical_name: str) -> Any:
        """Value of a canonical attribute, or None if the name is not a patient attribute."""
        attribute = CANONICAL_ATTRIBUTES.get(canonical_name)
        return getattr(self, attribute) if attribute else None
