"""
Shared type definitions for the form engine backend.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.form_fields import FormField, FieldKind, FieldOption
from shared_types.validation import ValidationResult

__all__ = ["FormField", "FieldKind", "FieldOption", "ValidationResult"]
