"""
Form definition model.

A form definition is the declarative description of an intake form: the
data schema (JSON-schema-like), the layout schema (order, widgets, hints)
and the field mapping table (schema field -> field type key).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from sqlalchemy import String, Text, Boolean, TIMESTAMP, Index, CheckConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import FormStatus, DEFAULT_FORM_VERSION
from core.database import Base
from models.base import JSONType
from utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from models.form_translation import FormTranslation
    from models.form_submission import FormSubmission


class FormDefinition(Base):
    """
    Declarative intake form.

    Lifecycle: DRAFT -> PUBLISHED -> ARCHIVED. Only drafts can be edited or
    deleted. `is_active` is orthogonal to the status and only meaningful for
    published forms.
    """

    __tablename__ = "form_definitions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    version: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_FORM_VERSION)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=FormStatus.DRAFT.value)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """Whether this is the form served for its category. Only set on published forms."""

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    """At most one definition per category carries the default flag."""

    schema: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False)
    """Data schema: properties with type, constraints, enum/enumNames and format."""

    ui_schema: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    """Layout schema: ui:order plus per-field widget, placeholder and help hints."""

    field_mappings: Mapped[Dict[str, str]] = mapped_column(JSONType, nullable=False, default=dict)
    """Schema field name -> field type key (e.g. {'vorname': 'FIRST_NAME'})."""

    validation_rules: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    rendering_options: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)

    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    published_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    translations: Mapped[List["FormTranslation"]] = relationship(
        "FormTranslation",
        back_populates="form_definition",
        cascade="all, delete-orphan",
    )
    submissions: Mapped[List["FormSubmission"]] = relationship(
        "FormSubmission",
        back_populates="form_definition",
    )

    __table_args__ = (
        Index("idx_form_definitions_category_status", "category", "status"),
        Index("idx_form_definitions_active", "category", "is_active"),
        CheckConstraint("category IN ('ANAMNESIS', 'CONSENT', 'TREATMENT', 'CUSTOM')", name="check_form_category"),
        CheckConstraint("status IN ('DRAFT', 'PUBLISHED', 'ARCHIVED')", name="check_form_status"),
    )

    @property
    def is_draft(self) -> bool:
        return self.status == FormStatus.DRAFT.value

    @property
    def is_published(self) -> bool:
        return self.status == FormStatus.PUBLISHED.value

    @property
    def is_published_and_active(self) -> bool:
        return self.is_published and bool(self.is_active)

    def publish(self, published_by: Optional[str]) -> None:
        """Mark the definition as published now."""
        self.status = FormStatus.PUBLISHED.value
        self.published_at = utc_now()
        self.published_by = published_by

    def archive(self) -> None:
        """Archive the definition. Archived forms are never active."""
        self.status = FormStatus.ARCHIVED.value
        self.is_active = False

    def deactivate(self) -> None:
        self.is_active = False

    def __repr__(self) -> str:
        return f"<FormDefinition {self.id} {self.name!r} {self.category} {self.status}>"
