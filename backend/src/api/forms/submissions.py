"""
Submission endpoints for staff: lookup, document preview and PDF download.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse, Response
from sqlalchemy.orm import Session

from api.forms.schemas import SubmissionDetailResponse, SubmissionResponse
from api.forms.shared import get_document_service, to_http_exception
from core.database import get_db
from core.exceptions import FormEngineError
from services.form_document_service import FormDocumentService
from services.form_submission_service import FormSubmissionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[SubmissionResponse], summary="List submissions")
async def list_submissions(
    patient_id: Optional[int] = None,
    form_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    """List submissions of a patient or of a form, newest first."""
    if patient_id is not None:
        submissions = FormSubmissionService.list_for_patient(db, patient_id)
        if form_id is not None:
            submissions = [s for s in submissions if s.form_definition_id == form_id]
        return submissions
    if form_id is not None:
        return FormSubmissionService.list_for_form(db, form_id)
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Either patient_id or form_id is required"
    )


@router.get("/{submission_id}", response_model=SubmissionDetailResponse, summary="Get a submission")
async def get_submission(submission_id: int, db: Session = Depends(get_db)):
    try:
        return FormSubmissionService.get(db, submission_id)
    except FormEngineError as e:
        raise to_http_exception(e)


@router.get("/{submission_id}/document", response_class=HTMLResponse, summary="Render a submission document as HTML")
async def get_submission_document(
    submission_id: int,
    db: Session = Depends(get_db),
    document_service: FormDocumentService = Depends(get_document_service)
):
    try:
        return HTMLResponse(content=document_service.render_html(db, submission_id))
    except FormEngineError as e:
        raise to_http_exception(e)


@router.get("/{submission_id}/pdf", summary="Download a submission document as PDF")
async def download_submission_pdf(
    submission_id: int,
    regenerate: bool = False,
    db: Session = Depends(get_db),
    document_service: FormDocumentService = Depends(get_document_service)
):
    """
    Download the submission PDF.

    Generated on first request and stored; later requests serve the stored
    file unless `regenerate` is set.
    """
    try:
        generated = document_service.generate_pdf(db, submission_id, regenerate=regenerate)
    except FormEngineError as e:
        raise to_http_exception(e)

    return Response(
        content=generated.content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{generated.filename}"',
            "X-Content-SHA256": generated.submission.pdf_hash or "",
        }
    )
