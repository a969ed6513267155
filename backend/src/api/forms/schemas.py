"""
Request and response models for the form API.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.constants import FieldCategory, FieldDataType, FormCategory, SUPPORTED_LANGUAGES


# ===== Field types =====

class FieldTypeCreate(BaseModel):
    field_type: str = Field(..., min_length=1, max_length=50)
    canonical_name: str = Field(..., min_length=1, max_length=100)
    display_name_key: Optional[str] = Field(None, max_length=100)
    category: FieldCategory = FieldCategory.CUSTOM
    data_type: FieldDataType = FieldDataType.STRING
    is_required: bool = False
    accepted_aliases: List[str] = []
    validation_rules: Optional[Dict[str, Any]] = None


class FieldTypeResponse(BaseModel):
    id: int
    field_type: str
    canonical_name: str
    display_name_key: str
    category: str
    data_type: str
    is_required: bool
    is_system: bool
    accepted_aliases: List[str]
    validation_rules: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(from_attributes=True)


class FieldMappingCheckRequest(BaseModel):
    field_mappings: Dict[str, str] = {}


class FieldMappingCheckResponse(BaseModel):
    valid: bool
    errors: List[str]


# ===== Form definitions =====

class FormDefinitionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: FormCategory
    version: Optional[str] = Field(None, max_length=20)
    schema_: Dict[str, Any] = Field(..., alias="schema")
    ui_schema: Optional[Dict[str, Any]] = None
    field_mappings: Dict[str, str] = {}
    is_default: bool = False
    validation_rules: Optional[Dict[str, Any]] = None
    rendering_options: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = Field(None, max_length=255)

    model_config = ConfigDict(populate_by_name=True)


class FormDefinitionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[FormCategory] = None
    version: Optional[str] = Field(None, max_length=20)
    schema_: Optional[Dict[str, Any]] = Field(None, alias="schema")
    ui_schema: Optional[Dict[str, Any]] = None
    field_mappings: Optional[Dict[str, str]] = None
    is_default: Optional[bool] = None
    validation_rules: Optional[Dict[str, Any]] = None
    rendering_options: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(populate_by_name=True)


class FormDefinitionResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: str
    version: str
    status: str
    is_active: bool
    is_default: bool
    schema_: Dict[str, Any] = Field(..., alias="schema")
    ui_schema: Optional[Dict[str, Any]] = None
    field_mappings: Dict[str, str] = {}
    validation_rules: Optional[Dict[str, Any]] = None
    rendering_options: Optional[Dict[str, Any]] = None
    created_by: Optional[str] = None
    published_at: Optional[datetime] = None
    published_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class PublishRequest(BaseModel):
    published_by: Optional[str] = Field(None, max_length=255)
    set_active: bool = False


class DuplicateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    created_by: Optional[str] = Field(None, max_length=255)


class DefinitionCheckResponse(BaseModel):
    valid: bool
    errors: List[str]
    warnings: List[str]


# ===== Translations =====

def _check_language(v: str) -> str:
    if v not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language: {v}. Supported languages: {', '.join(SUPPORTED_LANGUAGES)}")
    return v


class TranslationCreate(BaseModel):
    language: str
    translations: Dict[str, Any] = {}
    created_by: Optional[str] = Field(None, max_length=255)

    @field_validator('language')
    @classmethod
    def validate_language(cls, v: str) -> str:
        return _check_language(v)


class TranslationUpdate(BaseModel):
    translations: Dict[str, Any]


class TranslationResponse(BaseModel):
    id: int
    form_definition_id: int
    language: str
    language_display_name: str
    is_rtl: bool
    translations: Dict[str, Any]
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ===== Submissions =====

class SubmissionRequest(BaseModel):
    language: Optional[str] = None
    data: Dict[str, Any]

    @field_validator('language')
    @classmethod
    def validate_language(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_language(v)


class SubmissionPatientResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    birth_date: date
    email_address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    id: int
    form_definition_id: int
    patient_id: int
    submission_date: datetime
    form_language: str
    form_version: Optional[str] = None
    status: str
    pdf_hash: Optional[str] = None
    pdf_generated_at: Optional[datetime] = None
    notes: Optional[str] = None
    device_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionDetailResponse(SubmissionResponse):
    form_data_snapshot: Dict[str, Any]
    patient: SubmissionPatientResponse
