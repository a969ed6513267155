"""
Field type registry endpoints.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.forms.schemas import FieldMappingCheckRequest, FieldMappingCheckResponse, FieldTypeCreate, FieldTypeResponse
from api.forms.shared import to_http_exception
from core.constants import FieldCategory
from core.database import get_db
from core.exceptions import FormEngineError
from services.field_type_service import FieldTypeService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[FieldTypeResponse], summary="List field types")
async def list_field_types(
    category: Optional[FieldCategory] = None,
    required_only: bool = False,
    db: Session = Depends(get_db)
):
    """List registered field types, optionally only one category or only the required ones."""
    if required_only:
        entries = FieldTypeService.list_required(db)
        if category is not None:
            entries = [e for e in entries if e.category == category.value]
        return entries
    if category is not None:
        return FieldTypeService.list_by_category(db, category.value)
    return FieldTypeService.list_all(db)


@router.post("", response_model=FieldTypeResponse, status_code=status.HTTP_201_CREATED, summary="Create a custom field type")
async def create_field_type(field_type_data: FieldTypeCreate, db: Session = Depends(get_db)):
    try:
        return FieldTypeService.create_custom(
            db,
            field_type=field_type_data.field_type,
            canonical_name=field_type_data.canonical_name,
            display_name_key=field_type_data.display_name_key,
            category=field_type_data.category.value,
            data_type=field_type_data.data_type.value,
            is_required=field_type_data.is_required,
            accepted_aliases=field_type_data.accepted_aliases,
            validation_rules=field_type_data.validation_rules,
        )
    except FormEngineError as e:
        raise to_http_exception(e)


@router.post("/check-mappings", response_model=FieldMappingCheckResponse, summary="Check a field mapping table")
async def check_field_mappings(request: FieldMappingCheckRequest, db: Session = Depends(get_db)):
    """Report the required field types a mapping table leaves out."""
    errors = FieldTypeService.validate_required_field_mappings(db, request.field_mappings)
    return FieldMappingCheckResponse(valid=not errors, errors=errors)


@router.get("/{field_type}", response_model=FieldTypeResponse, summary="Get a field type")
async def get_field_type(field_type: str, db: Session = Depends(get_db)):
    try:
        return FieldTypeService.get_by_key(db, field_type)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.delete("/{field_type}", summary="Delete a custom field type")
async def delete_field_type(field_type: str, db: Session = Depends(get_db)):
    try:
        FieldTypeService.delete(db, field_type)
    except FormEngineError as e:
        raise to_http_exception(e)
    return {"message": f"Field type {field_type} deleted"}
