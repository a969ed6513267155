"""
Field type registry service.

Looks up reusable field identities, manages custom entries and checks that
a form's field mapping table covers every required field type.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.constants import FieldCategory, FieldDataType
from core.exceptions import FieldTypeValidationError, FormStateError, NotFoundError
from models import FieldType
from services.field_type_seed import SYSTEM_FIELD_TYPES

logger = logging.getLogger(__name__)


class FieldTypeService:
    """
    Service class for the global field type registry.

    System entries are seeded once and immutable; custom entries can be
    created and deleted by operators.
    """

    @staticmethod
    def list_all(db: Session) -> List[FieldType]:
        """List all field types ordered by category, then key."""
        return db.query(FieldType).order_by(FieldType.category, FieldType.field_type).all()

    @staticmethod
    def list_required(db: Session) -> List[FieldType]:
        """List field types that must be mapped before a form can be published."""
        return db.query(FieldType).filter(
            FieldType.is_required == True  # noqa: E712
        ).order_by(FieldType.category, FieldType.field_type).all()

    @staticmethod
    def list_by_category(db: Session, category: str) -> List[FieldType]:
        return db.query(FieldType).filter(
            FieldType.category == category
        ).order_by(FieldType.field_type).all()

    @staticmethod
    def find_by_key(db: Session, field_type: str) -> Optional[FieldType]:
        return db.query(FieldType).filter(FieldType.field_type == field_type).first()

    @staticmethod
    def get_by_key(db: Session, field_type: str) -> FieldType:
        """
        Get a field type by its machine key.

        Raises:
            NotFoundError: If no field type has this key
        """
        entry = FieldTypeService.find_by_key(db, field_type)
        if not entry:
            raise NotFoundError("Field type", field_type)
        return entry

    @staticmethod
    def get_by_canonical_name(db: Session, canonical_name: str) -> FieldType:
        entry = db.query(FieldType).filter(FieldType.canonical_name == canonical_name).first()
        if not entry:
            raise NotFoundError("Field type with canonical name", canonical_name)
        return entry

    @staticmethod
    def find_by_alias(db: Session, alias: str) -> Optional[FieldType]:
        """
        Find the field type whose alias list contains the given name.

        Matching is case-insensitive and ignores surrounding whitespace. The
        registry is small, so a linear scan over all entries is used.
        """
        if not alias or not alias.strip():
            return None
        for entry in FieldTypeService.list_all(db):
            if entry.matches_alias(alias):
                return entry
        return None

    @staticmethod
    def create_custom(
        db: Session,
        field_type: str,
        canonical_name: str,
        display_name_key: Optional[str] = None,
        category: str = FieldCategory.CUSTOM.value,
        data_type: str = FieldDataType.STRING.value,
        is_required: bool = False,
        accepted_aliases: Optional[List[str]] = None,
        validation_rules: Optional[Dict[str, Any]] = None,
    ) -> FieldType:
        """
        Create a custom (deletable) field type.

        Raises:
            FieldTypeValidationError: If the key or canonical name is already taken
        """
        field_type = field_type.strip()
        canonical_name = canonical_name.strip()

        if FieldTypeService.find_by_key(db, field_type):
            raise FieldTypeValidationError(f"Field type already exists: {field_type}", field="field_type")
        if db.query(FieldType).filter(FieldType.canonical_name == canonical_name).first():
            raise FieldTypeValidationError(f"Canonical name already exists: {canonical_name}", field="canonical_name")

        entry = FieldType(
            field_type=field_type,
            canonical_name=canonical_name,
            display_name_key=display_name_key or f"field.{canonical_name}",
            category=category,
            data_type=data_type,
            is_required=is_required,
            is_system=False,
            accepted_aliases=list(accepted_aliases or []),
            validation_rules=validation_rules,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)

        logger.info(f"Created custom field type {entry.field_type} ({entry.canonical_name})")
        return entry

    @staticmethod
    def delete(db: Session, field_type: str) -> None:
        """
        Delete a custom field type.

        Raises:
            NotFoundError: If the key is unknown
            FormStateError: If the entry is a system field type
        """
        entry = FieldTypeService.get_by_key(db, field_type)
        if entry.is_system:
            raise FormStateError(f"Cannot delete system field type: {field_type}")

        db.delete(entry)
        db.commit()
        logger.info(f"Deleted custom field type {field_type}")

    @staticmethod
    def validate_required_field_mappings(db: Session, field_mappings: Optional[Dict[str, str]]) -> List[str]:
        """
        Check that every required field type is mapped by at least one schema field.

        Args:
            db: Database session
            field_mappings: Schema field name -> field type key

        Returns:
            List of error messages, empty when the mapping table is complete
        """
        if not field_mappings:
            return ["Form has no field mappings defined"]

        mapped_keys = set(field_mappings.values())
        errors: List[str] = []
        for required in FieldTypeService.list_required(db):
            if required.field_type not in mapped_keys:
                errors.append(
                    f"Required field type '{required.field_type}' ({required.canonical_name}) is not mapped. "
                    f"Please add a field for: {required.display_name_key}"
                )
        return errors

    @staticmethod
    def get_mapped_fields(db: Session, field_mappings: Optional[Dict[str, str]]) -> Dict[str, FieldType]:
        """
        Resolve a mapping table to field type entries.

        Mappings pointing at unknown keys are skipped with a warning.

        Returns:
            Schema field name -> FieldType
        """
        if not field_mappings:
            return {}

        registry = {entry.field_type: entry for entry in FieldTypeService.list_all(db)}
        resolved: Dict[str, FieldType] = {}
        for schema_field, key in field_mappings.items():
            entry = registry.get(key)
            if entry is None:
                logger.warning(f"Unknown field type '{key}' mapped from field '{schema_field}', skipping")
                continue
            resolved[schema_field] = entry
        return resolved

    @staticmethod
    def seed_system_field_types(db: Session) -> int:
        """
        Insert the system field types that are not registered yet.

        Safe to call on every startup.

        Returns:
            Number of entries inserted
        """
        existing = {key for (key,) in db.query(FieldType.field_type).all()}
        inserted = 0
        for data in SYSTEM_FIELD_TYPES:
            if data["field_type"] in existing:
                continue
            db.add(FieldType(**{**data, "accepted_aliases": list(data["accepted_aliases"])}))
            inserted += 1

        if inserted:
            db.commit()
            logger.info(f"Seeded {inserted} system field types")
        return inserted
