"""
Form translation model: one string bundle per (form definition, language).
"""

from datetime import datetime
from typing import Any, Dict, Optional, TYPE_CHECKING

from sqlalchemy import String, ForeignKey, TIMESTAMP, UniqueConstraint, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.constants import SUPPORTED_LANGUAGES
from core.database import Base
from models.base import JSONType

if TYPE_CHECKING:
    from models.form_definition import FormDefinition


class FormTranslation(Base):
    """
    Translated strings of a form definition for a single language.

    The bundle is a nested map keyed by role: fields, placeholders,
    helpTexts, options, buttons, validation, messages.
    """

    __tablename__ = "form_translations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    form_definition_id: Mapped[int] = mapped_column(
        ForeignKey("form_definitions.id", ondelete="CASCADE"), nullable=False
    )
    language: Mapped[str] = mapped_column(String(10), nullable=False)
    translations: Mapped[Dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    created_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    form_definition: Mapped["FormDefinition"] = relationship("FormDefinition", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("form_definition_id", "language", name="uq_form_translation_language"),
        Index("idx_form_translations_language", "language"),
    )

    @property
    def is_rtl(self) -> bool:
        lang = SUPPORTED_LANGUAGES.get(self.language)
        return bool(lang and lang.rtl)

    @property
    def language_display_name(self) -> str:
        lang = SUPPORTED_LANGUAGES.get(self.language)
        return lang.display_name if lang else self.language
