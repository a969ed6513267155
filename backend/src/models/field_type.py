"""
Field type model for the global field type registry.

A field type is a reusable field identity ("first name", "insurance number")
that form fields are mapped to. The mapping lets submissions populate the
canonical patient record no matter how an individual form names its fields.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import String, Boolean, TIMESTAMP, Index, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base
from models.base import JSONType


class FieldType(Base):
    """
    Registry entry describing one canonical field identity.

    System entries are seeded with the application and cannot be deleted;
    custom entries are created by operators.
    """

    __tablename__ = "field_types"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    field_type: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    """Machine key, e.g. 'FIRST_NAME'. Globally unique."""

    canonical_name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    """Attribute name on the patient record, e.g. 'firstName'. Globally unique."""

    display_name_key: Mapped[str] = mapped_column(String(100), nullable=False)
    """i18n key for the human readable name, e.g. 'field.firstName'."""

    category: Mapped[str] = mapped_column(String(20), nullable=False)
    """UI category used to group fields (PERSONAL, CONTACT, INSURANCE, MEDICAL, CONSENT, CUSTOM)."""

    data_type: Mapped[str] = mapped_column(String(20), nullable=False)
    """Value type (STRING, TEXT, DATE, EMAIL, PHONE, NUMBER, BOOLEAN, SIGNATURE)."""

    is_required: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """Required field types must be mapped before a form can be published."""

    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    """Seeded entries are system entries and cannot be deleted."""

    accepted_aliases: Mapped[List[str]] = mapped_column(JSONType, default=list, nullable=False)
    """Alternative field names (any language) recognised for this field type."""

    validation_rules: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    """JSON schema fragment suggested for fields of this type."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_field_types_category", "category"),
        Index("idx_field_types_required", "is_required"),
        CheckConstraint(
            "category IN ('PERSONAL', 'CONTACT', 'INSURANCE', 'MEDICAL', 'CONSENT', 'CUSTOM')",
            name="check_field_type_category",
        ),
        CheckConstraint(
            "data_type IN ('STRING', 'TEXT', 'DATE', 'EMAIL', 'PHONE', 'NUMBER', 'BOOLEAN', 'SIGNATURE')",
            name="check_field_type_data_type",
        ),
    )

    def matches_alias(self, name: str) -> bool:
        """Check whether a field name matches one of the aliases (case-insensitive)."""
        normalized = name.strip().lower()
        if not normalized:
            return False
        return any(alias.strip().lower() == normalized for alias in (self.accepted_aliases or []))

    def __repr__(self) -> str:
        return f"<FieldType {self.field_type} -> {self.canonical_name}>"
