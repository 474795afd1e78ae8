"""Field and form elements.

A FieldElement stands in for a rendered form control: its wire name
(``user[email]``), id, current value and the serialized rule descriptors the
form helpers attached to it. A Form groups fields so validators can reach
siblings (e.g. the confirmation field).
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any

_SEGMENT_PATTERN = re.compile(r"\[([^\]]*)\]")


def is_blank(value: Any) -> bool:
    """Check if a field value is considered blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def wire_string(value: Any) -> str:
    """Serialize a value the way it would appear as a submitted field value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def name_segments(name: str) -> list[str]:
    """Split a wire name into its segments.

    ``user[emails_attributes][0][address]`` -> ``["user", "emails_attributes", "0", "address"]``
    """
    head, _, _ = name.partition("[")
    segments = [head] if head else []
    segments.extend(_SEGMENT_PATTERN.findall(name[len(head):]))
    return [s for s in segments if s != ""]


def camelize(term: str) -> str:
    """``email_attributes`` -> ``EmailAttributes``"""
    return "".join(part[:1].upper() + part[1:] for part in term.split("_") if part)


def attribute_from_name(name: str) -> str:
    """The attribute a wire name refers to: its last segment."""
    segments = name_segments(name)
    return segments[-1] if segments else name


def record_type_from_name(name: str) -> str | None:
    """Derive the record type name from a wire name.

    The nearest non-numeric segment before the attribute is camelized.
    Nested sub-form names yield the sub-form key, which the server maps back
    to the real record type through its alias table.

    Examples:
        ``user[email]`` -> ``User``
        ``user[email_attributes][address]`` -> ``EmailAttributes``
        ``user[emails_attributes][0][address]`` -> ``EmailsAttributes``
    """
    for segment in reversed(name_segments(name)[:-1]):
        if not segment.isdigit():
            return camelize(segment)
    return None


def id_from_name(name: str) -> str:
    """Default element id for a wire name: ``user[email]`` -> ``user_email``."""
    return "_".join(name_segments(name))


@dataclass(eq=False)
class FieldElement:
    """A single validated form field.

    Attributes:
        name: Wire name of the field (e.g. "user[email]")
        value: Current value
        id: Element id; derived from the name when not given
        validate: Serialized JSON array of rule descriptors
        record_type: Explicit record type, overriding the one derived from name
        original_value: Value the field was rendered with (edit forms)
        form: The form this field belongs to, if any
    """

    name: str
    value: str = ""
    id: str = ""
    validate: str | None = None
    record_type: str | None = None
    original_value: str | None = None
    form: "Form | None" = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.id:
            self.id = id_from_name(self.name)

    @property
    def attribute(self) -> str:
        return attribute_from_name(self.name)

    @property
    def resolved_record_type(self) -> str | None:
        """Record type as sent over the wire (not alias-resolved)."""
        return self.record_type or record_type_from_name(self.name)

    @property
    def blank(self) -> bool:
        return is_blank(self.value)

    def sibling(self, element_id: str) -> "FieldElement | None":
        """Look up another field of the same form by id."""
        if self.form is None:
            return None
        return self.form.get(element_id)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldElement":
        """Create a FieldElement from a dict (e.g. a JSON form fixture).

        ``validate`` may be given either serialized or as a decoded list.
        """
        validate = data.get("validate")
        if validate is not None and not isinstance(validate, str):
            validate = json.dumps(validate)

        original_value = data.get("originalValue", data.get("original_value"))
        return cls(
            name=data["name"],
            value=wire_string(data.get("value", "")),
            id=data.get("id", ""),
            validate=validate,
            record_type=data.get("recordType", data.get("record_type")),
            original_value=None if original_value is None else wire_string(original_value),
        )


class Form:
    """An ordered collection of fields with lookup by id and name."""

    def __init__(self, fields: list[FieldElement] | None = None, name: str = ""):
        self.name = name
        self._fields: list[FieldElement] = []
        for f in fields or []:
            self.add(f)

    def __iter__(self):
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"<Form {self.name!r} fields={len(self._fields)}>"

    @property
    def fields(self) -> list[FieldElement]:
        return list(self._fields)

    def add(self, element: FieldElement) -> FieldElement:
        element.form = self
        self._fields.append(element)
        return element

    def get(self, element_id: str) -> FieldElement | None:
        """Find a field by element id."""
        for f in self._fields:
            if f.id == element_id:
                return f
        return None

    def get_by_name(self, name: str) -> FieldElement | None:
        """Find a field by wire name."""
        for f in self._fields:
            if f.name == name:
                return f
        return None

    def validated_fields(self) -> list[FieldElement]:
        """Fields that carry a descriptor binding."""
        return [f for f in self._fields if f.validate is not None]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Form":
        """Create a Form from ``{"name": ..., "fields": [...]}``."""
        return cls(
            fields=[FieldElement.from_dict(f) for f in data.get("fields", [])],
            name=data.get("name", ""),
        )
