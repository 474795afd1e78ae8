"""Core types for the formjudge validation engine.

Rule descriptors are the declarative representation of a server-side
validation rule, serialized by the form helpers as a JSON array attached to
each field:

    [{"kind": "length", "options": {"minimum": 3}, "messages": {"too_short": "..."}}]
"""

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from formjudge.errors import DescriptorError

if TYPE_CHECKING:
    from formjudge.validation.fields import FieldElement
    from formjudge.validation.state import Validation


# Validator function signature: (field, options, messages) -> Validation
ValidatorFn = Callable[["FieldElement", Mapping[str, Any], Mapping[str, str]], "Validation"]


@dataclass(frozen=True)
class RuleDescriptor:
    """One validation rule attached to a field.

    Attributes:
        kind: Registry name of the validator ("presence", "length", ...)
        options: Validator-specific options, passed through uninterpreted
        messages: Pre-localized messages keyed by message name
        allow_blank: Skip the validator (treat as valid) when the value is blank
    """

    kind: str
    options: dict[str, Any] = field(default_factory=dict)
    messages: dict[str, str] = field(default_factory=dict)
    allow_blank: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> "RuleDescriptor":
        """Create a RuleDescriptor from its decoded JSON form.

        Raises:
            DescriptorError: If required keys are missing or mistyped
        """
        if not isinstance(data, dict):
            raise DescriptorError(f"Descriptor must be an object, got {type(data).__name__}")

        kind = data.get("kind")
        if not isinstance(kind, str) or not kind:
            raise DescriptorError("Descriptor is missing a 'kind'")

        options = data.get("options") or {}
        if not isinstance(options, dict):
            raise DescriptorError(f"Descriptor '{kind}' options must be an object")

        messages = data.get("messages") or {}
        if not isinstance(messages, dict):
            raise DescriptorError(f"Descriptor '{kind}' messages must be an object")

        allow_blank = data.get("allowBlank", data.get("allow_blank"))
        if allow_blank is None:
            allow_blank = options.get("allow_blank", False)

        return cls(
            kind=kind,
            options=dict(options),
            messages={str(k): str(v) for k, v in messages.items()},
            allow_blank=bool(allow_blank),
        )

    def to_dict(self) -> dict[str, Any]:
        options = dict(self.options)
        if self.allow_blank:
            options["allow_blank"] = True
        return {"kind": self.kind, "options": options, "messages": dict(self.messages)}


def parse_descriptors(raw: str | None) -> list[RuleDescriptor]:
    """Parse the serialized descriptor list attached to a field.

    An absent or empty binding means the field carries no rules.

    Raises:
        DescriptorError: If the JSON is malformed or not a list of descriptors
    """
    if raw is None or raw.strip() == "":
        return []

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Descriptor JSON is malformed: {e}") from e

    if not isinstance(data, list):
        raise DescriptorError(f"Descriptor JSON must be an array, got {type(data).__name__}")

    return [RuleDescriptor.from_dict(item) for item in data]


def serialize_descriptors(descriptors: list[RuleDescriptor]) -> str:
    """Serialize descriptors the way the form helpers attach them to a field."""
    return json.dumps([d.to_dict() for d in descriptors])
