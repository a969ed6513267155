# pyright: reportMissingTypeStubs=false
"""
Intake Forms Backend API

A FastAPI application serving the dynamic form engine for medical intake
forms.

Features:
- Field type registry and form definition lifecycle (draft, published, archived)
- Translated form rendering and submission validation
- Submission documents as PDF
- PostgreSQL database with SQLAlchemy ORM
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.forms import (
    definitions_router,
    field_types_router,
    public_router,
    submissions_router,
    translations_router,
)
from core.config import SEED_FIELD_TYPES_ON_STARTUP
from core.constants import CORS_ORIGINS
from core.database import get_db_context
from services.field_type_service import FieldTypeService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler()],
)

logger = logging.getLogger(__name__)
logger.info("Intake Forms API starting...")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting Intake Forms Backend API")

    if SEED_FIELD_TYPES_ON_STARTUP:
        try:
            with get_db_context() as db:
                created = FieldTypeService.seed_system_field_types(db)
            logger.info(f"System field types seeded ({created} new)")
        except Exception as e:
            logger.exception(f"Failed to seed system field types: {e}")

    yield

    logger.info("Shutting down Intake Forms Backend API")


# Create FastAPI application
app = FastAPI(
    title="Intake Forms Backend",
    description="Dynamic form engine for medical intake forms",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI
    redoc_url="/redoc",  # ReDoc
    lifespan=lifespan,
)

# CORS middleware for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(
    field_types_router,
    prefix="/api/forms/field-types",
    tags=["field-types"],
    responses={
        400: {"description": "Bad request"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    definitions_router,
    prefix="/api/forms/definitions",
    tags=["form-definitions"],
    responses={
        400: {"description": "Bad request"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    translations_router,
    prefix="/api/forms/definitions",
    tags=["form-translations"],
    responses={
        400: {"description": "Bad request"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    public_router,
    prefix="/api/forms/public",
    tags=["public-forms"],
    responses={
        400: {"description": "Bad request"},
        404: {"description": "Resource not found"},
        409: {"description": "Conflict"},
        500: {"description": "Internal server error"},
    },
)
app.include_router(
    submissions_router,
    prefix="/api/forms/submissions",
    tags=["form-submissions"],
    responses={
        404: {"description": "Resource not found"},
        500: {"description": "Internal server error"},
    },
)


@app.get(
    "/",
    summary="Root endpoint",
    description="Returns basic API information",
)
async def root() -> dict[str, str]:
    """Get API information."""
    return {
        "message": "Intake Forms Backend API",
        "version": "1.0.0",
        "status": "running"
    }


@app.get(
    "/health",
    summary="Health check",
    description="Returns the health status of the API",
)
async def health_check() -> dict[str, str]:
    """Check if the API is healthy and responding."""
    return {"status": "healthy"}


# Global exception handlers
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions globally."""
    logger.exception(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": "internal_error"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    """Handle ValueError exceptions."""
    logger.warning(f"ValueError: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "type": "validation_error"},
    )
