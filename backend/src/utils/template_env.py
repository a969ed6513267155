"""
Jinja2 environment shared by the markup and document renderers.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from utils.datetime_utils import format_date_for_language, format_datetime

logger = logging.getLogger(__name__)

# backend/templates
TEMPLATE_DIR = Path(__file__).parent.parent.parent / "templates"


def create_template_environment(template_dir: Optional[Path] = None) -> Environment:
    """Create a Jinja2 environment with HTML autoescaping and the form filters."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        autoescape=select_autoescape(['html', 'xml']),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    def format_local_date(value: object, language: str = "de") -> str:
        """Format a date for display in the given language; other values pass through."""
        if isinstance(value, datetime):
            return format_date_for_language(value.date(), language)
        if isinstance(value, date):
            return format_date_for_language(value, language)
        return "" if value is None else str(value)

    def format_timestamp(value: Optional[datetime]) -> str:
        """Format a timestamp as 'YYYY-MM-DD HH:MM' (UTC)."""
        return format_datetime(value) if value else ""

    env.filters['format_local_date'] = format_local_date
    env.filters['format_timestamp'] = format_timestamp
    return env
