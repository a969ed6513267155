"""
Service for managing per-language translation bundles of form definitions.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import SUPPORTED_LANGUAGES
from core.exceptions import FormStateError, FormValidationError, NotFoundError
from models import FormTranslation
from services.form_definition_service import FormDefinitionService
from services.form_markup_cache import form_markup_cache

logger = logging.getLogger(__name__)


class FormTranslationService:
    """
    Service class for form translations.

    Each form definition has at most one bundle per supported language.
    """

    @staticmethod
    def _check_language(language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            supported = ", ".join(SUPPORTED_LANGUAGES)
            raise FormValidationError(f"Unsupported language: {language}. Supported languages: {supported}")

    @staticmethod
    def find(db: Session, form_id: int, language: str) -> Optional[FormTranslation]:
        return db.query(FormTranslation).filter(
            FormTranslation.form_definition_id == form_id,
            FormTranslation.language == language,
        ).first()

    @staticmethod
    def get(db: Session, form_id: int, language: str) -> FormTranslation:
        """
        Get the translation of a form for a language.

        Raises:
            NotFoundError: If the form has no translation for the language
        """
        translation = FormTranslationService.find(db, form_id, language)
        if not translation:
            raise NotFoundError("Translation", f"form {form_id}, language {language}")
        return translation

    @staticmethod
    def get_bundle(db: Session, form_id: int, language: str) -> Optional[Dict[str, Any]]:
        """Get the string bundle of a form for a language, or None if untranslated."""
        translation = FormTranslationService.find(db, form_id, language)
        return translation.translations if translation else None

    @staticmethod
    def list_for_form(db: Session, form_id: int) -> List[FormTranslation]:
        return db.query(FormTranslation).filter(
            FormTranslation.form_definition_id == form_id
        ).order_by(FormTranslation.language).all()

    @staticmethod
    def list_for_language(db: Session, language: str) -> List[FormTranslation]:
        return db.query(FormTranslation).filter(
            FormTranslation.language == language
        ).order_by(FormTranslation.form_definition_id).all()

    @staticmethod
    def exists(db: Session, form_id: int, language: str) -> bool:
        return FormTranslationService.find(db, form_id, language) is not None

    @staticmethod
    def count_for_form(db: Session, form_id: int) -> int:
        return db.query(FormTranslation).filter(FormTranslation.form_definition_id == form_id).count()

    @staticmethod
    def add(
        db: Session,
        form_id: int,
        language: str,
        translations: Dict[str, Any],
        created_by: Optional[str] = None,
    ) -> FormTranslation:
        """
        Add a translation bundle to a form.

        Raises:
            NotFoundError: If the form does not exist
            FormValidationError: If the language is not supported
            FormStateError: If the form already has a translation for the language
        """
        definition = FormDefinitionService.get(db, form_id)
        FormTranslationService._check_language(language)
        if FormTranslationService.exists(db, form_id, language):
            raise FormStateError(f"Translation already exists for language: {language}")

        translation = FormTranslation(
            form_definition_id=definition.id,
            language=language,
            translations=dict(translations or {}),
            created_by=created_by,
        )
        db.add(translation)
        db.commit()
        db.refresh(translation)
        form_markup_cache.invalidate(form_id, language)

        logger.info(f"Added {language} translation to form definition {form_id}")
        return translation

    @staticmethod
    def update(db: Session, form_id: int, language: str, translations: Dict[str, Any]) -> FormTranslation:
        """Replace the bundle of an existing translation."""
        translation = FormTranslationService.get(db, form_id, language)
        translation.translations = dict(translations or {})
        db.commit()
        db.refresh(translation)
        form_markup_cache.invalidate(form_id, language)

        logger.info(f"Updated {language} translation of form definition {form_id}")
        return translation

    @staticmethod
    def delete(db: Session, form_id: int, language: str) -> None:
        translation = FormTranslationService.get(db, form_id, language)
        db.delete(translation)
        db.commit()
        form_markup_cache.invalidate(form_id, language)
        logger.info(f"Deleted {language} translation of form definition {form_id}")
