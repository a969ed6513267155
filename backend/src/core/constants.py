"""Application constants and configuration values."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite) - localhost
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]


# --- Form definitions ---

class FormCategory(str, Enum):
    ANAMNESIS = "ANAMNESIS"
    CONSENT = "CONSENT"
    TREATMENT = "TREATMENT"
    CUSTOM = "CUSTOM"


class FormStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


DEFAULT_FORM_VERSION = "1.0.0"


# --- Field type registry ---

class FieldCategory(str, Enum):
    PERSONAL = "PERSONAL"
    CONTACT = "CONTACT"
    INSURANCE = "INSURANCE"
    MEDICAL = "MEDICAL"
    CONSENT = "CONSENT"
    CUSTOM = "CUSTOM"


class FieldDataType(str, Enum):
    STRING = "STRING"
    TEXT = "TEXT"
    DATE = "DATE"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    NUMBER = "NUMBER"
    BOOLEAN = "BOOLEAN"
    SIGNATURE = "SIGNATURE"


# Section order of the generated submission document.
# Fields without a mapping end up in the trailing catch-all section.
DOCUMENT_CATEGORY_ORDER: List[str] = [
    FieldCategory.PERSONAL.value,
    FieldCategory.CONTACT.value,
    FieldCategory.INSURANCE.value,
    FieldCategory.MEDICAL.value,
    FieldCategory.CUSTOM.value,
]
UNMAPPED_CATEGORY = "OTHER"


# --- Submissions ---

class SubmissionStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ARCHIVED = "ARCHIVED"


class InsuranceType(str, Enum):
    SELF_INSURED = "SELF_INSURED"
    FAMILY_INSURED = "FAMILY_INSURED"


class SignatureType(str, Enum):
    SIMPLE = "SIMPLE"
    ADVANCED = "ADVANCED"
    QUALIFIED = "QUALIFIED"


class SignatureDocumentType(str, Enum):
    ANAMNESIS = "ANAMNESIS"
    CONSENT = "CONSENT"
    TREATMENT = "TREATMENT"


SIGNATURE_DATA_URL_PREFIX = "data:image/png;base64,"
SIGNATURE_MIME_TYPE = "image/png"

# Canonical fields every submission must resolve, with their display names
REQUIRED_CANONICAL_FIELDS: List[Tuple[str, str]] = [
    ("firstName", "First name"),
    ("lastName", "Last name"),
    ("birthDate", "Birth date"),
]

# Accepted birth date patterns, tried in order
BIRTH_DATE_FORMATS: List[Tuple[str, str]] = [
    ("%Y-%m-%d", "YYYY-MM-DD"),
    ("%d.%m.%Y", "DD.MM.YYYY"),
    ("%d/%m/%Y", "DD/MM/YYYY"),
    ("%m/%d/%Y", "MM/DD/YYYY"),
]


# --- Languages ---

@dataclass(frozen=True)
class SupportedLanguage:
    """A language forms can be translated into and rendered in."""
    code: str
    display_name: str
    rtl: bool = False
    date_format: str = "%d.%m.%Y"

    @property
    def direction(self) -> str:
        return "rtl" if self.rtl else "ltr"


SUPPORTED_LANGUAGES: Dict[str, SupportedLanguage] = {
    "de": SupportedLanguage("de", "Deutsch"),
    "en": SupportedLanguage("en", "English", date_format="%m/%d/%Y"),
    "ar": SupportedLanguage("ar", "العربية", rtl=True, date_format="%d/%m/%Y"),
    "ru": SupportedLanguage("ru", "Русский"),
}

# Top-level roles of a translation bundle
TRANSLATION_ROLES = ["fields", "placeholders", "helpTexts", "options", "buttons", "validation", "messages"]
