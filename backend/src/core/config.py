"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # .env at repository root
        pathlib.Path.cwd() / ".env",
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "postgresql://localhost/intake_forms_dev"
    )


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = get_database_url()
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Forms
DEFAULT_FORM_LANGUAGE = os.getenv("DEFAULT_FORM_LANGUAGE", "de")
SEED_FIELD_TYPES_ON_STARTUP = _get_bool("SEED_FIELD_TYPES_ON_STARTUP", "true")

# Rendered markup cache
FORM_MARKUP_CACHE_MAX_ENTRIES = int(os.getenv("FORM_MARKUP_CACHE_MAX_ENTRIES", "100"))
FORM_MARKUP_CACHE_TTL_SECONDS = int(os.getenv("FORM_MARKUP_CACHE_TTL_SECONDS", "3600"))

# Document generation
PDF_STORAGE_DIR = os.getenv("PDF_STORAGE_DIR", "storage/submissions")
SIGNATURE_MATCH_WINDOW_MINUTES = int(os.getenv("SIGNATURE_MATCH_WINDOW_MINUTES", "60"))
