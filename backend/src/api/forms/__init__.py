"""
Form engine API modules.

Routers are mounted under /api/forms by main.py.
"""

from api.forms.definitions import router as definitions_router
from api.forms.field_types import router as field_types_router
from api.forms.public import router as public_router
from api.forms.submissions import router as submissions_router
from api.forms.translations import router as translations_router

__all__ = [
    'definitions_router',
    'field_types_router',
    'public_router',
    'submissions_router',
    'translations_router',
]
