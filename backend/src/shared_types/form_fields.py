"""
Field variants produced from a form's data schema and layout schema.

Each field kind carries its own constraint payload. The markup renderer
and the document renderer dispatch on `FormField.kind`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class FieldKind(str, Enum):
    TEXT = "text"
    EMAIL = "email"
    DATE = "date"
    URL = "url"
    TEXTAREA = "textarea"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    RADIO = "radio"
    SIGNATURE = "signature"


@dataclass
class FieldOption:
    """One choice of a select or radio field."""
    value: str
    label: str


@dataclass
class TextConstraints:
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None

    def attributes(self) -> Dict[str, str]:
        attrs: Dict[str, str] = {}
        if self.min_length is not None:
            attrs["minlength"] = str(self.min_length)
        if self.max_length is not None:
            attrs["maxlength"] = str(self.max_length)
        if self.pattern:
            attrs["pattern"] = self.pattern
        return attrs


@dataclass
class TextareaConstraints(TextConstraints):
    rows: int = 3

    def attributes(self) -> Dict[str, str]:
        attrs = super().attributes()
        attrs.pop("pattern", None)  # not supported on textarea
        attrs["rows"] = str(self.rows)
        return attrs


@dataclass
class NumberConstraints:
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    integer: bool = False

    def attributes(self) -> Dict[str, str]:
        attrs: Dict[str, str] = {}
        if self.minimum is not None:
            attrs["min"] = _format_number(self.minimum)
        if self.maximum is not None:
            attrs["max"] = _format_number(self.maximum)
        if self.integer:
            attrs["step"] = "1"
        return attrs


@dataclass
class ChoiceConstraints:
    options: List[FieldOption] = field(default_factory=list)

    def attributes(self) -> Dict[str, str]:
        return {}

    def label_for(self, value: object) -> Optional[str]:
        for option in self.options:
            if option.value == str(value):
                return option.label
        return None


@dataclass
class NoConstraints:
    def attributes(self) -> Dict[str, str]:
        return {}


# Posted checkbox values that mean "checked"
CHECKED_VALUES = {"true", "on", "yes", "1"}

Constraints = Union[TextConstraints, TextareaConstraints, NumberConstraints, ChoiceConstraints, NoConstraints]


@dataclass
class FormField:
    """A single renderable field, resolved against its translation bundle."""
    name: str
    kind: FieldKind
    label: str
    required: bool = False
    placeholder: Optional[str] = None
    help_text: Optional[str] = None
    constraints: Constraints = field(default_factory=NoConstraints)
    # Previously submitted value and its validation errors, when re-rendering
    value: Any = None
    errors: List[str] = field(default_factory=list)

    @property
    def input_id(self) -> str:
        return f"field_{self.name}"

    @property
    def options(self) -> List[FieldOption]:
        if isinstance(self.constraints, ChoiceConstraints):
            return self.constraints.options
        return []

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def value_text(self) -> str:
        """The submitted value as the text an input element shows."""
        if self.value is None:
            return ""
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return str(self.value)

    @property
    def checked(self) -> bool:
        if isinstance(self.value, bool):
            return self.value
        return self.value_text.strip().lower() in CHECKED_VALUES

    def is_selected(self, option: FieldOption) -> bool:
        return self.value is not None and option.value == self.value_text

    def attributes(self) -> Dict[str, str]:
        """Native HTML validation attributes for the field's input element."""
        attrs = self.constraints.attributes()
        if self.placeholder and self.kind not in (FieldKind.CHECKBOX, FieldKind.RADIO, FieldKind.SELECT, FieldKind.SIGNATURE):
            attrs["placeholder"] = self.placeholder
        return attrs


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
