"""
Shared helpers for the form API routers.

Translates domain exceptions into HTTP errors and provides the service
dependencies that tests override.
"""

import logging

from fastapi import HTTPException, status

from core.exceptions import (
    DocumentRenderingError,
    FormEngineError,
    FormStateError,
    FormValidationError,
    NotFoundError,
    SubmissionFormatError,
)
from services.form_document_service import FormDocumentService
from services.form_markup_service import FormMarkupService

logger = logging.getLogger(__name__)


def to_http_exception(error: FormEngineError) -> HTTPException:
    """
    Map a domain exception to an HTTPException.

    Not found -> 404, state conflicts -> 409, validation and format
    problems -> 400 (with every validation error listed), rendering
    failures -> 500.
    """
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, FormStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, FormValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": error.message, "errors": error.errors},
        )
    if isinstance(error, SubmissionFormatError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": error.message, "field": error.field},
        )
    if isinstance(error, DocumentRenderingError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)

    logger.error(f"Unmapped form engine error: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=error.message)


def get_markup_service() -> FormMarkupService:
    return FormMarkupService()


def get_document_service() -> FormDocumentService:
    return FormDocumentService()
