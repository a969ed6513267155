"""
Result type of submission validation.

Validation problems are returned as data so callers can re-render the
form with the errors attached.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ValidationResult:
    """Field errors keyed by field name plus form-level (global) errors."""
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    global_errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.field_errors and not self.global_errors

    def add_field_error(self, field_name: str, message: str) -> None:
        self.field_errors.setdefault(field_name, []).append(message)

    def add_global_error(self, message: str) -> None:
        self.global_errors.append(message)

    @property
    def all_errors(self) -> List[str]:
        """Global errors first, then 'field: message' for every field error."""
        errors = list(self.global_errors)
        for field_name, messages in self.field_errors.items():
            errors.extend(f"{field_name}: {message}" for message in messages)
        return errors

    @property
    def first_error(self) -> Optional[str]:
        """The first global error, else the first field error as 'field: message'."""
        if self.global_errors:
            return self.global_errors[0]
        for field_name, messages in self.field_errors.items():
            if messages:
                return f"{field_name}: {messages[0]}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "field_errors": self.field_errors,
            "global_errors": self.global_errors,
            "all_errors": self.all_errors,
            "first_error": self.first_error,
        }
