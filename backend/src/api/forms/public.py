"""
Patient-facing endpoints: render published forms and accept submissions.
"""

import logging
from typing import Any, Dict, Iterable, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from api.forms.schemas import SubmissionRequest, SubmissionResponse
from api.forms.shared import get_markup_service, to_http_exception
from core.config import DEFAULT_FORM_LANGUAGE
from core.database import get_db
from core.exceptions import FormEngineError, FormStateError, SubmissionFormatError
from models import FormDefinition
from services.form_definition_service import FormDefinitionService
from services.form_markup_service import FormMarkupService
from services.form_submission_service import FormSubmissionService, SubmissionMetadata
from shared_types.validation import ValidationResult

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_published(db: Session, form_id: int) -> FormDefinition:
    definition = FormDefinitionService.get(db, form_id)
    if not definition.is_published:
        raise FormStateError(f"Form is not published. Current status: {definition.status}")
    return definition


def _request_metadata(request: Request) -> SubmissionMetadata:
    return SubmissionMetadata(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def collect_form_values(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Flatten posted form items into one value per field name.

    The last value of a repeated name wins, so a checked checkbox's "true"
    replaces the hidden "false" posted before it. Uploaded files are ignored.
    """
    values: Dict[str, Any] = {}
    for name, value in items:
        if isinstance(value, str):
            values[name] = value
    return values


def _page_action(form_id: int, language: str) -> str:
    return f"/api/forms/public/{form_id}?language={language}"


@router.get("/{form_id}/markup", response_class=HTMLResponse, summary="Render the fields of a published form")
async def get_form_markup(
    form_id: int,
    language: str = DEFAULT_FORM_LANGUAGE,
    db: Session = Depends(get_db),
    markup_service: FormMarkupService = Depends(get_markup_service)
):
    """Field markup fragment for embedding in a page. Served from the markup cache when possible."""
    try:
        definition = _get_published(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    return HTMLResponse(content=markup_service.render_form(db, definition, language))


@router.get("/{form_id}", response_class=HTMLResponse, summary="Render a published form page")
async def get_form_page(
    form_id: int,
    language: str = DEFAULT_FORM_LANGUAGE,
    db: Session = Depends(get_db),
    markup_service: FormMarkupService = Depends(get_markup_service)
):
    """Standalone page whose form posts back to this URL."""
    try:
        definition = _get_published(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)
    page = markup_service.render_preview(db, definition, language, action=_page_action(form_id, language))
    return HTMLResponse(content=page)


@router.post("/{form_id}", response_class=HTMLResponse, summary="Submit a published form page")
async def submit_form_page(
    form_id: int,
    request: Request,
    language: str = DEFAULT_FORM_LANGUAGE,
    db: Session = Depends(get_db),
    markup_service: FormMarkupService = Depends(get_markup_service)
):
    """
    Accept the browser post of a form page (url-encoded or multipart).

    A stored submission answers 201 with a confirmation page. A rejected
    one answers 400 with the form page again, keeping the entered values
    and showing every error next to its field.
    """
    try:
        definition = _get_published(db, form_id)
    except FormEngineError as e:
        raise to_http_exception(e)

    form = await request.form()
    data = collect_form_values(form.multi_items())

    try:
        result = FormSubmissionService.submit(
            db, form_id, data, language=language, metadata=_request_metadata(request)
        )
        validation = result.validation
    except SubmissionFormatError as e:
        result = None
        validation = ValidationResult()
        validation.add_global_error(e.message)
    except FormEngineError as e:
        raise to_http_exception(e)

    if result is None or not result.accepted:
        page = markup_service.render_preview(
            db, definition, language,
            action=_page_action(form_id, language),
            values=data,
            validation=validation,
        )
        return HTMLResponse(content=page, status_code=status.HTTP_400_BAD_REQUEST)

    page = markup_service.render_confirmation(db, definition, result.submission, language)
    return HTMLResponse(content=page, status_code=status.HTTP_201_CREATED)


@router.post("/{form_id}/submissions", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED, summary="Submit a form")
async def submit_form(
    form_id: int,
    submission_data: SubmissionRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Validate and store a submission sent as JSON.

    Returns 400 with field and global errors when the data does not satisfy
    the form's schema; nothing is stored in that case.
    """
    try:
        result = FormSubmissionService.submit(
            db, form_id, submission_data.data, language=submission_data.language, metadata=_request_metadata(request)
        )
    except FormEngineError as e:
        raise to_http_exception(e)

    if not result.accepted:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.validation.to_dict())
    return result.submission
