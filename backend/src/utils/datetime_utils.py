"""
Datetime utilities for consistent timezone handling across the application.

All timestamps are stored in UTC. Databases without timezone support
(SQLite in tests) hand back naive datetimes, so comparisons go through
`ensure_utc` first.
"""

import logging
from datetime import datetime, timezone, date
from typing import List, Optional, Tuple

from core.constants import BIRTH_DATE_FORMATS, SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in UTC.

    Naive datetimes are assumed to already be in UTC.

    Args:
        dt: Datetime to normalize

    Returns:
        Timezone-aware UTC datetime, or None if input is None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_date_with_formats(value: str, formats: List[Tuple[str, str]] = BIRTH_DATE_FORMATS) -> Optional[date]:
    """
    Parse a date string trying each format in turn.

    Args:
        value: Date text, surrounding whitespace is ignored
        formats: (strptime pattern, human label) pairs

    Returns:
        Parsed date, or None if no format matches
    """
    text = value.strip()
    for pattern, _label in formats:
        try:
            return datetime.strptime(text, pattern).date()
        except ValueError:
            continue
    return None


def parse_iso_date(value: object) -> Optional[date]:
    """Parse a date or ISO date/datetime string, returning None when it isn't one."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    try:
        if "T" in text:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    except ValueError:
        return parse_date_with_formats(text)


def format_date_for_language(value: date, language: str) -> str:
    """Format a date using the display pattern of the given language (DD.MM.YYYY by default)."""
    lang = SUPPORTED_LANGUAGES.get(language)
    pattern = lang.date_format if lang else "%d.%m.%Y"
    return value.strftime(pattern)


def format_datetime(dt: datetime) -> str:
    """Format a datetime as 'YYYY-MM-DD HH:MM' in UTC."""
    normalized = ensure_utc(dt)
    assert normalized is not None
    return normalized.strftime("%Y-%m-%d %H:%M")
