"""
Form definition endpoints: CRUD, lifecycle transitions, preview and shape check.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from api.forms.schemas import (
    DefinitionCheckResponse,
    DuplicateRequest,
    FormDefinitionCreate,
    FormDefinitionResponse,
    FormDefinitionUpdate,
    PublishRequest,
)
from api.forms.shared import get_markup_service, to_http_exception
from core.config import DEFAULT_FORM_LANGUAGE
from core.constants import DEFAULT_FORM_VERSION, FormCategory, FormStatus
from core.database import get_db
from core.exceptions import FormEngineError
from models import FormDefinition
from services.form_definition_service import FormDefinitionService
from services.form_markup_service import FormMarkupService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[FormDefinitionResponse], summary="List form definitions")
async def list_definitions(
    category: Optional[FormCategory] = None,
    status_filter: Optional[FormStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    """List definitions, optionally filtered by category or status."""
    if category is not None:
        definitions = FormDefinitionService.list_by_category(db, category.value)
    elif status_filter is not None:
        definitions = FormDefinitionService.list_by_status(db, status_filter.value)
    else:
        definitions = FormDefinitionService.list_all(db)

    if category is not None and status_filter is not None:
        definitions = [d for d in definitions if d.status == status_filter.value]
    return definitions


@router.get("/published", response_model=List[FormDefinitionResponse], summary="List published form definitions")
async def list_published_definitions(db: Session = Depends(get_db)):
    """Published definitions, newest first."""
    return FormDefinitionService.list_published(db)


@router.get("/active", response_model=FormDefinitionResponse, summary="Get the active form of a category")
async def get_active_definition(category: FormCategory, db: Session = Depends(get_db)):
    definition = FormDefinitionService.get_active_published(db, category.value)
    if definition is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active published form for category: {category.value}"
        )
    return definition


@router.post("", response_model=FormDefinitionResponse, status_code=status.HTTP_201_CREATED, summary="Create a form definition")
async def create_definition(definition_data: FormDefinitionCreate, db: Session = Depends(get_db)):
    """Create a new draft definition."""
    return FormDefinitionService.create(
        db=db,
        name=definition_data.name,
        category=definition_data.category.value,
        schema=definition_data.schema_,
        ui_schema=definition_data.ui_schema,
        field_mappings=definition_data.field_mappings,
        description=definition_data.description,
        version=definition_data.version or DEFAULT_FORM_VERSION,
        is_default=definition_data.is_default,
        validation_rules=definition_data.validation_rules,
        rendering_options=definition_data.rendering_options,
        created_by=definition_data.created_by,
    )


@router.get("/{form_id}", response_model=FormDefinitionResponse, summary="Get a form definition")
async def get_definition(form_id: int, db: Session = Depends(get_db)):
    try:
        return FormDefinitionService.get(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.put("/{form_id}", response_model=FormDefinitionResponse, summary="Update a draft form definition")
async def update_definition(form_id: int, definition_data: FormDefinitionUpdate, db: Session = Depends(get_db)):
    """Update a draft. Fields left out of the request are unchanged."""
    update_dict = definition_data.model_dump(exclude_unset=True)
    if "schema_" in update_dict:
        update_dict["schema"] = update_dict.pop("schema_")
    # Columns that cannot be cleared
    for key in ("name", "category", "version", "schema", "field_mappings", "is_default"):
        if key in update_dict and update_dict[key] is None:
            del update_dict[key]
    if "category" in update_dict:
        update_dict["category"] = update_dict["category"].value

    try:
        return FormDefinitionService.update(db, form_id, **update_dict)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.delete("/{form_id}", summary="Delete a draft form definition")
async def delete_definition(form_id: int, db: Session = Depends(get_db)):
    try:
        FormDefinitionService.delete(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    return {"message": f"Form definition {form_id} deleted"}


@router.post("/{form_id}/publish", response_model=FormDefinitionResponse, summary="Publish a form definition")
async def publish_definition(form_id: int, request: PublishRequest, db: Session = Depends(get_db)):
    """
    Publish a draft.

    Fails with 400 listing every required field type the mapping table
    leaves out; the definition stays a draft in that case.
    """
    try:
        return FormDefinitionService.publish(
            db, form_id, published_by=request.published_by, set_active=request.set_active
        )
    except FormEngineError as e:
        raise to_http_exception(e)


@router.post("/{form_id}/archive", response_model=FormDefinitionResponse, summary="Archive a form definition")
async def archive_definition(form_id: int, db: Session = Depends(get_db)):
    try:
        return FormDefinitionService.archive(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.post("/{form_id}/activate", response_model=FormDefinitionResponse, summary="Activate a published form definition")
async def activate_definition(form_id: int, deactivate_others: bool = True, db: Session = Depends(get_db)):
    try:
        return FormDefinitionService.activate(db, form_id, deactivate_others=deactivate_others)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.post("/{form_id}/deactivate", response_model=FormDefinitionResponse, summary="Deactivate a form definition")
async def deactivate_definition(form_id: int, db: Session = Depends(get_db)):
    try:
        return FormDefinitionService.deactivate(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.post("/{form_id}/duplicate", response_model=FormDefinitionResponse, status_code=status.HTTP_201_CREATED, summary="Duplicate a form definition as a new draft")
async def duplicate_definition(form_id: int, request: DuplicateRequest, db: Session = Depends(get_db)):
    try:
        return FormDefinitionService.duplicate(db, form_id, created_by=request.created_by, name=request.name)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.get("/{form_id}/preview", response_class=HTMLResponse, summary="Preview a form definition")
async def preview_definition(
    form_id: int,
    language: str = DEFAULT_FORM_LANGUAGE,
    db: Session = Depends(get_db),
    markup_service: FormMarkupService = Depends(get_markup_service)
):
    """Render a standalone preview page. Works for drafts too."""
    try:
        definition = FormDefinitionService.get(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    return HTMLResponse(content=markup_service.render_preview(db, definition, language))


@router.get("/{form_id}/check", response_model=DefinitionCheckResponse, summary="Check a form definition's schema")
async def check_definition(
    form_id: int,
    db: Session = Depends(get_db),
    markup_service: FormMarkupService = Depends(get_markup_service)
):
    """Report schema shape problems without rendering."""
    try:
        definition: FormDefinition = FormDefinitionService.get(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    check = markup_service.validate_form_definition(definition)
    return DefinitionCheckResponse(valid=check.valid, errors=check.errors, warnings=check.warnings)
