"""
Form translation endpoints, nested under a form definition.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.forms.schemas import TranslationCreate, TranslationResponse, TranslationUpdate
from api.forms.shared import to_http_exception
from core.database import get_db
from core.exceptions import FormEngineError
from services.form_definition_service import FormDefinitionService
from services.form_translation_service import FormTranslationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{form_id}/translations", response_model=List[TranslationResponse], summary="List translations of a form")
async def list_translations(form_id: int, db: Session = Depends(get_db)):
    try:
        FormDefinitionService.get(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    return FormTranslationService.list_for_form(db, form_id)


@router.post("/{form_id}/translations", response_model=TranslationResponse, status_code=status.HTTP_201_CREATED, summary="Add a translation")
async def create_translation(form_id: int, translation_data: TranslationCreate, db: Session = Depends(get_db)):
    try:
        return FormTranslationService.add(
            db,
            form_id,
            translation_data.language,
            translation_data.translations,
            created_by=translation_data.created_by,
        )
    except FormEngineError as e:
        raise to_http_exception(e)


@router.get("/{form_id}/translations/{language}", response_model=TranslationResponse, summary="Get a translation")
async def get_translation(form_id: int, language: str, db: Session = Depends(get_db)):
    try:
        return FormTranslationService.get(db, form_id, language)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.put("/{form_id}/translations/{language}", response_model=TranslationResponse, summary="Replace a translation bundle")
async def update_translation(form_id: int, language: str, translation_data: TranslationUpdate, db: Session = Depends(get_db)):
    try:
        return FormTranslationService.update(db, form_id, language, translation_data.translations)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.delete("/{form_id}/translations/{language}", summary="Delete a translation")
async def delete_translation(form_id: int, language: str, db: Session = Depends(get_db)):
    try:
        FormTranslationService.delete(db, form_id, language)
    except FormEngineError as e:
        raise to_http_exception(e)
    return {"message": f"Translation {language} of form definition {form_id} deleted"}
