"""
Test configuration and shared fixtures for the intake forms test suite.

Uses an in-memory SQLite database; every test gets a fresh schema created
from the SQLAlchemy models.
"""

import os

# Must be set before core.database creates its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SEED_FIELD_TYPES_ON_STARTUP", "false")

import pytest
from typing import Any, Dict, Generator, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.constants import FormCategory
from core.database import Base
import models  # noqa: F401  (registers all tables)
from models import FormDefinition
from services.field_type_service import FieldTypeService
from services.form_definition_service import FormDefinitionService
from services.form_markup_cache import form_markup_cache


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a fresh in-memory database for a test.

    StaticPool keeps the single connection alive so the schema survives
    across sessions and threads (TestClient runs endpoints in a worker thread).
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session bound to the test database."""
    TestSession = sessionmaker(bind=db_engine, autoflush=False)
    session = TestSession()

    yield session

    session.close()


@pytest.fixture(autouse=True)
def clear_markup_cache():
    """Form ids repeat across test databases, so the process-wide markup cache must start empty."""
    form_markup_cache.clear()
    yield
    form_markup_cache.clear()


@pytest.fixture
def field_types(db_session):
    """Seed the system field types."""
    FieldTypeService.seed_system_field_types(db_session)
    return FieldTypeService.list_all(db_session)


class FakeRasterizer:
    """Stands in for WeasyPrint: records the HTML and returns fixed bytes."""

    def __init__(self, content: bytes = b"%PDF-1.7 fake document", error: Optional[Exception] = None):
        self.content = content
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def html_to_pdf(self, html: str, metadata: Optional[Dict[str, Any]] = None) -> bytes:
        self.calls.append({"html": html, "metadata": metadata})
        if self.error is not None:
            raise self.error
        return self.content


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


@pytest.fixture
def rasterizer_factory():
    return FakeRasterizer


@pytest.fixture
def anamnesis_schema() -> Dict[str, Any]:
    """A small intake form covering every field kind."""
    return {
        "type": "object",
        "required": ["firstName", "lastName", "birthDate", "insuranceType", "dataConsent"],
        "properties": {
            "firstName": {"type": "string", "title": "First name", "minLength": 2, "maxLength": 100},
            "lastName": {"type": "string", "title": "Last name", "minLength": 1, "maxLength": 100},
            "birthDate": {"type": "string", "title": "Birth date", "format": "date"},
            "email": {"type": "string", "title": "Email", "format": "email"},
            "insuranceType": {
                "type": "string",
                "title": "Insurance",
                "enum": ["SELF_INSURED", "FAMILY_INSURED"],
                "enumNames": ["Self insured", "Family insured"],
            },
            "painLevel": {"type": "integer", "title": "Pain level", "minimum": 0, "maximum": 10},
            "smoker": {"type": "boolean", "title": "Smoker"},
            "complaints": {"type": "string", "title": "Complaints", "maxLength": 2000},
            "favoriteColor": {"type": "string", "enum": ["red", "green"], "enumNames": ["Red", "Green"]},
            "dataConsent": {"type": "boolean", "title": "I agree to data processing"},
            "patientSignature": {"type": "string", "format": "signature", "title": "Signature"},
        },
    }


@pytest.fixture
def anamnesis_ui_schema() -> Dict[str, Any]:
    return {
        "ui:order": [
            "firstName", "lastName", "birthDate", "email", "insuranceType",
            "painLevel", "smoker", "complaints", "favoriteColor", "dataConsent", "patientSignature",
        ],
        "insuranceType": {"ui:widget": "radio"},
        "complaints": {"ui:widget": "textarea", "ui:options": {"rows": 5}, "ui:placeholder": "Describe your complaints"},
        "patientSignature": {"ui:widget": "signature"},
    }


@pytest.fixture
def anamnesis_mappings() -> Dict[str, str]:
    return {
        "firstName": "FIRST_NAME",
        "lastName": "LAST_NAME",
        "birthDate": "BIRTH_DATE",
        "email": "EMAIL",
        "insuranceType": "INSURANCE_TYPE",
        "complaints": "CURRENT_COMPLAINTS",
        "dataConsent": "CONSENT_DATA_PROCESSING",
        "patientSignature": "PATIENT_SIGNATURE",
    }


# 1x1 transparent PNG, as sent by the signature pad
SIGNATURE_DATA_URL = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture
def signature_data_url() -> str:
    return SIGNATURE_DATA_URL


@pytest.fixture
def valid_submission_data() -> Dict[str, Any]:
    """A complete submission of the anamnesis form, as posted by the browser."""
    return {
        "firstName": "Anna",
        "lastName": "Müller",
        "birthDate": "1985-03-15",
        "email": "anna@example.com",
        "insuranceType": "SELF_INSURED",
        "painLevel": "4",
        "smoker": "false",
        "complaints": "Back pain since two weeks",
        "favoriteColor": "green",
        "dataConsent": "true",
        "patientSignature": SIGNATURE_DATA_URL,
    }


@pytest.fixture
def create_definition(db_session, anamnesis_schema, anamnesis_ui_schema, anamnesis_mappings):
    """Factory creating anamnesis drafts; keyword arguments override the defaults."""
    def _create(**overrides) -> FormDefinition:
        params: Dict[str, Any] = {
            "name": "Anamnesis",
            "category": FormCategory.ANAMNESIS.value,
            "schema": anamnesis_schema,
            "ui_schema": anamnesis_ui_schema,
            "field_mappings": anamnesis_mappings,
            "description": "Initial intake questionnaire",
            "created_by": "admin@example.com",
        }
        params.update(overrides)
        return FormDefinitionService.create(db_session, **params)
    return _create


@pytest.fixture
def published_form(db_session, field_types, create_definition) -> FormDefinition:
    """An active published anamnesis form."""
    definition = create_definition()
    return FormDefinitionService.publish(db_session, definition.id, published_by="admin@example.com", set_active=True)
