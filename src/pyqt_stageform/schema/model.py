"""
Typed model for declarative form schemas.

A schema is either multi-stage (``stages`` non-empty) or a legacy
single-stage form that only declares ``fields``. Field names are unique
across the whole schema because form state is one flat mapping keyed by
field name.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

# Value types a field can hold in form state
FieldValue = Union[str, bool, int, float]
FormState = Dict[str, FieldValue]


class FieldType(Enum):
    """Fixed enumeration of renderable field types."""
    PLAIN_TEXT = "plain text"
    TEXT = "text"
    EMAIL = "email"
    TEL = "tel"
    NUMBER = "number"
    DATE = "date"
    SEARCH = "search"
    URL = "url"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"

    @classmethod
    def parse(cls, raw: Any) -> 'FieldType':
        """Parse a schema type string. Raises ValueError for unknown types."""
        text = str(raw or "").strip().lower()
        if text == "plaintext":
            return cls.PLAIN_TEXT
        return cls(text)

    @property
    def is_plain_text(self) -> bool:
        return self is FieldType.PLAIN_TEXT

    @property
    def is_choice(self) -> bool:
        return self in (FieldType.SELECT, FieldType.RADIO)

    @property
    def is_text_like(self) -> bool:
        """Free-text inputs that fire per-keystroke input events."""
        return self in TEXT_LIKE_TYPES


TEXT_LIKE_TYPES = frozenset({
    FieldType.TEXT, FieldType.EMAIL, FieldType.TEL, FieldType.NUMBER,
    FieldType.DATE, FieldType.SEARCH, FieldType.URL, FieldType.PASSWORD,
    FieldType.TEXTAREA,
})


class AttributeKind(Enum):
    ABSENT = "absent"
    PRESENT = "present"
    VALUE = "value"


@dataclass(frozen=True)
class AttributeValue:
    """
    One entry of a field's custom attribute bag.

    ABSENT entries are never applied, PRESENT entries toggle a boolean
    attribute on, VALUE entries are applied verbatim.
    """
    kind: AttributeKind
    value: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> 'AttributeValue':
        if raw is None or raw is False:
            return cls(AttributeKind.ABSENT)
        if raw is True:
            return cls(AttributeKind.PRESENT)
        return cls(AttributeKind.VALUE, raw)

    @property
    def is_applied(self) -> bool:
        return self.kind is not AttributeKind.ABSENT

    def to_raw(self) -> Any:
        if self.kind is AttributeKind.PRESENT:
            return True
        if self.kind is AttributeKind.ABSENT:
            return None
        return self.value


@dataclass(frozen=True)
class FieldOption:
    """A (value, display label) pair for select/radio fields."""
    value: Any
    label: str

    @classmethod
    def from_raw(cls, raw: Any) -> 'FieldOption':
        if isinstance(raw, dict):
            value = raw.get("value")
            label = raw.get("label")
            return cls(value=value, label=label if label is not None else str(value))
        return cls(value=raw, label=str(raw))


@dataclass(frozen=True)
class ShowIf:
    """Visibility condition: show when state[field] strictly equals ``equals``."""
    field: str
    equals: Any


@dataclass
class Field:
    name: str
    type: FieldType
    label: Optional[str] = None
    title: Optional[str] = None
    text: Optional[str] = None
    placeholder: Optional[str] = None
    helper_text: Optional[str] = None
    required: bool = False
    options: List[FieldOption] = field(default_factory=list)
    attributes: Dict[str, AttributeValue] = field(default_factory=dict)
    error_messages: Dict[str, str] = field(default_factory=dict)
    show_if: Optional[ShowIf] = None
    rows: int = 3

    @property
    def display_label(self) -> str:
        return self.label if self.label is not None else self.name

    def applied_attributes(self) -> Dict[str, AttributeValue]:
        return {name: attr for name, attr in self.attributes.items() if attr.is_applied}

    def attribute(self, name: str, default: Any = None) -> Any:
        attr = self.attributes.get(name)
        if attr is None or not attr.is_applied:
            return default
        return attr.to_raw()


@dataclass
class Stage:
    id: str
    label: Optional[str] = None
    type: Optional[str] = None
    optional: bool = False
    fields: List[Field] = field(default_factory=list)

    @property
    def is_summary(self) -> bool:
        return self.type == "summary"


@dataclass
class FormSchema:
    id: str
    stages: List[Stage] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)


class SchemaError(ValueError):
    """Raised when a schema cannot be loaded. Carries every problem found."""

    def __init__(self, problems: Union[str, List[str]]):
        self.problems = [problems] if isinstance(problems, str) else list(problems)
        super().__init__("; ".join(self.problems))
