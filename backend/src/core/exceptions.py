"""
Domain exceptions raised by the form engine services.

API routers translate these into HTTP responses; services never raise
HTTPException themselves.
"""

from typing import List, Optional


class FormEngineError(Exception):
    """Base class for form engine errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(FormEngineError):
    """Raised when a definition, translation, field type or submission does not exist."""
    def __init__(self, entity: str, identifier: object):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found: {identifier}")


class FormStateError(FormEngineError):
    """Raised when an operation is not allowed in the entity's current state."""
    pass


class FormValidationError(FormEngineError, ValueError):
    """Raised when a definition or registry entry fails validation.

    `errors` holds every individual problem so callers can show all of them.
    """
    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors if errors is not None else [message]
        super().__init__(message)


class FieldTypeValidationError(FormValidationError):
    """Raised when a custom field type conflicts with an existing entry."""
    def __init__(self, message: str, field: str):
        self.field = field
        super().__init__(message)


class SubmissionFormatError(FormEngineError, ValueError):
    """Raised when submitted data cannot be mapped onto the canonical patient record."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class DocumentRenderingError(FormEngineError):
    """Raised when markup or the submission document cannot be produced."""
    pass
