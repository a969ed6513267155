"""
Service for managing form definitions and their lifecycle.

Lifecycle: DRAFT -> PUBLISHED -> ARCHIVED. Only drafts can be updated or
deleted. Per category there is at most one default definition and at most
one active published definition; both are maintained by clearing the
previous holder before setting the new one, within the same transaction.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import FormStatus, DEFAULT_FORM_VERSION
from core.exceptions import FormStateError, FormValidationError, NotFoundError
from core.sentinels import MISSING, is_provided
from models import FormDefinition
from services.field_type_service import FieldTypeService
from services.form_markup_cache import form_markup_cache

logger = logging.getLogger(__name__)


class FormDefinitionService:
    """
    Service class for form definition CRUD and lifecycle transitions.
    """

    @staticmethod
    def get(db: Session, form_id: int) -> FormDefinition:
        """
        Get a form definition by ID.

        Raises:
            NotFoundError: If the definition does not exist
        """
        definition = db.query(FormDefinition).filter(FormDefinition.id == form_id).first()
        if not definition:
            raise NotFoundError("Form definition", form_id)
        return definition

    @staticmethod
    def list_all(db: Session) -> List[FormDefinition]:
        return db.query(FormDefinition).order_by(FormDefinition.created_at.desc(), FormDefinition.id.desc()).all()

    @staticmethod
    def list_by_category(db: Session, category: str) -> List[FormDefinition]:
        return db.query(FormDefinition).filter(
            FormDefinition.category == category
        ).order_by(FormDefinition.created_at.desc(), FormDefinition.id.desc()).all()

    @staticmethod
    def list_by_status(db: Session, status: str) -> List[FormDefinition]:
        return db.query(FormDefinition).filter(
            FormDefinition.status == status
        ).order_by(FormDefinition.created_at.desc(), FormDefinition.id.desc()).all()

    @staticmethod
    def list_published(db: Session) -> List[FormDefinition]:
        """List all published definitions, newest publication first."""
        return db.query(FormDefinition).filter(
            FormDefinition.status == FormStatus.PUBLISHED.value
        ).order_by(FormDefinition.published_at.desc(), FormDefinition.id.desc()).all()

    @staticmethod
    def get_active_published(db: Session, category: str) -> Optional[FormDefinition]:
        """Get the active published definition of a category (newest publication wins)."""
        return db.query(FormDefinition).filter(
            FormDefinition.category == category,
            FormDefinition.status == FormStatus.PUBLISHED.value,
            FormDefinition.is_active == True,  # noqa: E712
        ).order_by(FormDefinition.published_at.desc(), FormDefinition.id.desc()).first()

    @staticmethod
    def create(
        db: Session,
        name: str,
        category: str,
        schema: Dict[str, Any],
        ui_schema: Optional[Dict[str, Any]] = None,
        field_mappings: Optional[Dict[str, str]] = None,
        description: Optional[str] = None,
        version: str = DEFAULT_FORM_VERSION,
        is_default: bool = False,
        validation_rules: Optional[Dict[str, Any]] = None,
        rendering_options: Optional[Dict[str, Any]] = None,
        created_by: Optional[str] = None,
    ) -> FormDefinition:
        """
        Create a new draft form definition.

        New definitions always start as inactive drafts. When created as the
        category default, the previous default of that category is cleared first.
        """
        if is_default:
            FormDefinitionService._clear_default(db, category)

        definition = FormDefinition(
            name=name,
            description=description,
            category=category,
            version=version,
            status=FormStatus.DRAFT.value,
            is_active=False,
            is_default=is_default,
            schema=schema,
            ui_schema=ui_schema,
            field_mappings=dict(field_mappings or {}),
            validation_rules=validation_rules,
            rendering_options=rendering_options,
            created_by=created_by,
        )
        db.add(definition)
        db.commit()
        db.refresh(definition)

        logger.info(f"Created form definition {definition.id} '{name}' ({category})")
        return definition

    @staticmethod
    def update(
        db: Session,
        form_id: int,
        name: Any = MISSING,
        description: Any = MISSING,
        category: Any = MISSING,
        version: Any = MISSING,
        schema: Any = MISSING,
        ui_schema: Any = MISSING,
        field_mappings: Any = MISSING,
        validation_rules: Any = MISSING,
        rendering_options: Any = MISSING,
        is_default: Any = MISSING,
    ) -> FormDefinition:
        """
        Update a draft definition. Omitted arguments are left unchanged.

        Raises:
            NotFoundError: If the definition does not exist
            FormStateError: If the definition is not a draft
        """
        definition = FormDefinitionService.get(db, form_id)
        if not definition.is_draft:
            raise FormStateError(
                f"Cannot update form that is not in DRAFT status. Current status: {definition.status}"
            )

        if is_provided(name):
            definition.name = name
        if is_provided(description):
            definition.description = description
        if is_provided(category):
            definition.category = category
        if is_provided(version):
            definition.version = version
        if is_provided(schema):
            definition.schema = schema
        if is_provided(ui_schema):
            definition.ui_schema = ui_schema
        if is_provided(field_mappings):
            definition.field_mappings = dict(field_mappings or {})
        if is_provided(validation_rules):
            definition.validation_rules = validation_rules
        if is_provided(rendering_options):
            definition.rendering_options = rendering_options

        if is_provided(is_default):
            if is_default:
                FormDefinitionService._clear_default(db, definition.category, exclude_id=definition.id)
                definition.is_default = True
            else:
                definition.is_default = False
        elif definition.is_default and is_provided(category):
            # Moving the default into another category takes over that category's default
            FormDefinitionService._clear_default(db, definition.category, exclude_id=definition.id)

        db.commit()
        db.refresh(definition)
        form_markup_cache.invalidate(definition.id)

        logger.info(f"Updated form definition {definition.id}")
        return definition

    @staticmethod
    def delete(db: Session, form_id: int) -> None:
        """
        Delete a draft definition together with its translations.

        Raises:
            FormStateError: If the definition is not a draft
        """
        definition = FormDefinitionService.get(db, form_id)
        if not definition.is_draft:
            raise FormStateError(
                f"Cannot delete form that is not in DRAFT status. Current status: {definition.status}"
            )

        db.delete(definition)
        db.commit()
        form_markup_cache.invalidate(form_id)
        logger.info(f"Deleted form definition {form_id}")

    @staticmethod
    def publish(
        db: Session,
        form_id: int,
        published_by: Optional[str] = None,
        set_active: bool = False,
    ) -> FormDefinition:
        """
        Publish a draft definition.

        The field mapping table must cover every required field type. With
        `set_active`, all other active published definitions of the category
        are deactivated before this one is activated.

        Raises:
            FormStateError: If the definition is not a draft
            FormValidationError: If required field types are unmapped; `errors`
                lists every missing field and the definition stays a draft
        """
        definition = FormDefinitionService.get(db, form_id)
        if not definition.is_draft:
            raise FormStateError(
                f"Cannot publish form that is not in DRAFT status. Current status: {definition.status}"
            )

        errors = FieldTypeService.validate_required_field_mappings(db, definition.field_mappings)
        if errors:
            logger.warning(f"Publishing form {form_id} rejected: {len(errors)} mapping problem(s)")
            raise FormValidationError(
                f"Form cannot be published: {len(errors)} required field mapping problem(s)",
                errors=errors,
            )

        if set_active:
            FormDefinitionService._deactivate_others(db, definition.category, exclude_id=definition.id)
            definition.is_active = True
        definition.publish(published_by)

        db.commit()
        db.refresh(definition)
        form_markup_cache.invalidate(definition.id)

        logger.info(f"Published form definition {definition.id} (active={definition.is_active}) by {published_by}")
        return definition

    @staticmethod
    def archive(db: Session, form_id: int) -> FormDefinition:
        """Archive a definition from any status. Archived definitions are never active."""
        definition = FormDefinitionService.get(db, form_id)
        definition.archive()
        db.commit()
        db.refresh(definition)
        form_markup_cache.invalidate(definition.id)

        logger.info(f"Archived form definition {definition.id}")
        return definition

    @staticmethod
    def activate(db: Session, form_id: int, deactivate_others: bool = True) -> FormDefinition:
        """
        Mark a published definition as active.

        Raises:
            FormStateError: If the definition is not published
        """
        definition = FormDefinitionService.get(db, form_id)
        if not definition.is_published:
            raise FormStateError(
                f"Cannot activate form that is not PUBLISHED. Current status: {definition.status}"
            )

        if deactivate_others:
            FormDefinitionService._deactivate_others(db, definition.category, exclude_id=definition.id)
        definition.is_active = True
        db.commit()
        db.refresh(definition)

        logger.info(f"Activated form definition {definition.id}")
        return definition

    @staticmethod
    def deactivate(db: Session, form_id: int) -> FormDefinition:
        definition = FormDefinitionService.get(db, form_id)
        definition.deactivate()
        db.commit()
        db.refresh(definition)
        logger.info(f"Deactivated form definition {definition.id}")
        return definition

    @staticmethod
    def duplicate(
        db: Session,
        form_id: int,
        created_by: Optional[str] = None,
        name: Optional[str] = None,
    ) -> FormDefinition:
        """
        Copy a definition (any status) into a new draft with a bumped version.

        Published forms are immutable, so this is how they get revised.
        Translations are copied along; the default flag is not.
        """
        source = FormDefinitionService.get(db, form_id)
        draft = FormDefinition(
            name=name or source.name,
            description=source.description,
            category=source.category,
            version=_bump_minor_version(source.version),
            status=FormStatus.DRAFT.value,
            is_active=False,
            is_default=False,
            schema=dict(source.schema or {}),
            ui_schema=dict(source.ui_schema) if source.ui_schema is not None else None,
            field_mappings=dict(source.field_mappings or {}),
            validation_rules=source.validation_rules,
            rendering_options=source.rendering_options,
            created_by=created_by,
        )
        db.add(draft)
        db.flush()

        # Imported here to avoid a circular import
        from models import FormTranslation
        for translation in source.translations:
            db.add(FormTranslation(
                form_definition_id=draft.id,
                language=translation.language,
                translations=dict(translation.translations or {}),
                created_by=created_by,
            ))

        db.commit()
        db.refresh(draft)
        logger.info(f"Duplicated form definition {source.id} into draft {draft.id} (version {draft.version})")
        return draft

    @staticmethod
    def _clear_default(db: Session, category: str, exclude_id: Optional[int] = None) -> None:
        query = db.query(FormDefinition).filter(
            FormDefinition.category == category,
            FormDefinition.is_default == True,  # noqa: E712
        )
        if exclude_id is not None:
            query = query.filter(FormDefinition.id != exclude_id)
        for previous in query.all():
            previous.is_default = False
            logger.info(f"Cleared default flag of form definition {previous.id} ({category})")
        db.flush()

    @staticmethod
    def _deactivate_others(db: Session, category: str, exclude_id: int) -> None:
        others = db.query(FormDefinition).filter(
            FormDefinition.category == category,
            FormDefinition.status == FormStatus.PUBLISHED.value,
            FormDefinition.is_active == True,  # noqa: E712
            FormDefinition.id != exclude_id,
        ).all()
        for other in others:
            other.is_active = False
            logger.info(f"Deactivated form definition {other.id} ({category})")
        db.flush()


def _bump_minor_version(version: Optional[str]) -> str:
    parts = (version or DEFAULT_FORM_VERSION).split(".")
    if len(parts) == 3 and all(part.isdigit() for part in parts):
        return f"{parts[0]}.{int(parts[1]) + 1}.0"
    return f"{version}.1"
