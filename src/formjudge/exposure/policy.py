"""Exposure policy: which record types/attributes may be queried remotely.

The uniqueness endpoint is keyed by untrusted client input, so it only runs
a query for (record type, attribute) pairs that were explicitly exposed.
Anything not exposed is refused.

Nested sub-forms send a wire-level type name (e.g. ``EmailAttributes``) that
differs from the real record type; ``expose_with_alias`` maps it back to the
canonical type before the allow-list is consulted.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any


class ExposurePolicy:
    """Allow-list of record type/attribute pairs plus an alias table.

    Built once at startup and passed to whatever serves uniqueness queries.

    Example:
        policy = ExposurePolicy()
        policy.expose("Post", "title", "slug")
        policy.expose_with_alias("Email", "EmailAttributes")
        policy.expose("Email", "address")

        policy.is_exposed("EmailAttributes", "address")  # True
    """

    def __init__(self) -> None:
        self._exposed: dict[str, list[str]] = {}
        self._aliases: dict[str, str] = {}

    def __repr__(self) -> str:
        return f"<ExposurePolicy types={len(self._exposed)} aliases={len(self._aliases)}>"

    def expose(self, record_type: str, *attributes: str) -> None:
        """Allow remote queries on the given attributes of record_type.

        Idempotent: attributes already exposed are not duplicated.
        """
        exposed = self._exposed.setdefault(record_type, [])
        for attribute in attributes:
            if attribute not in exposed:
                exposed.append(attribute)

    def unexpose(self, record_type: str, *attributes: str) -> None:
        """Withdraw exposure.

        With no attributes, or once the last attribute is removed, the whole
        record type entry is dropped.
        """
        exposed = self._exposed.get(record_type)
        if exposed is None:
            return
        for attribute in attributes:
            if attribute in exposed:
                exposed.remove(attribute)
        if not attributes or not exposed:
            del self._exposed[record_type]

    def expose_with_alias(self, record_type: str, alias: str) -> None:
        """Resolve lookups for alias through record_type."""
        self._aliases[alias] = record_type

    def aliased_as(self, record_type: str) -> str | None:
        """The canonical type an alias points to, or None if not an alias."""
        return self._aliases.get(record_type)

    def resolve(self, record_type: str) -> str:
        """Resolve a wire-level type name to its canonical record type."""
        return self._aliases.get(record_type, record_type)

    def is_exposed(self, record_type: str, attribute: str) -> bool:
        """Check if attribute of record_type (after alias resolution) is exposed."""
        return attribute in self._exposed.get(self.resolve(record_type), ())

    @property
    def exposed(self) -> Mapping[str, tuple[str, ...]]:
        """Read-only view of the allow-list."""
        return MappingProxyType({k: tuple(v) for k, v in self._exposed.items()})

    @property
    def exposed_as(self) -> Mapping[str, str]:
        """Read-only view of the alias table (alias -> canonical type)."""
        return MappingProxyType(dict(self._aliases))

    def configure(self, block: Callable[["ExposurePolicy"], Any]) -> "ExposurePolicy":
        """Apply a configuration function to this policy and return it.

        Usage:
            policy = ExposurePolicy().configure(lambda p: p.expose("User", "email"))
        """
        block(self)
        return self

    def clear(self) -> None:
        """Remove all exposure and alias entries. Primarily for testing."""
        self._exposed.clear()
        self._aliases.clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "expose": {k: list(v) for k, v in self._exposed.items()},
            "aliases": dict(self._aliases),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "ExposurePolicy":
        """Create a policy from ``{"expose": {...}, "aliases": {...}}``.

        Raises:
            ValueError: If the structure is not mappings of the expected shape
        """
        policy = cls()
        if not data:
            return policy
        if not isinstance(data, Mapping):
            raise ValueError("Exposure config must be a mapping")

        expose = data.get("expose") or {}
        if not isinstance(expose, Mapping):
            raise ValueError("'expose' must map record types to attribute lists")
        for record_type, attributes in expose.items():
            if isinstance(attributes, str):
                attributes = [attributes]
            if not isinstance(attributes, list) or not all(isinstance(a, str) for a in attributes):
                raise ValueError(f"Exposed attributes for '{record_type}' must be a list of names")
            policy.expose(str(record_type), *attributes)

        aliases = data.get("aliases") or {}
        if not isinstance(aliases, Mapping):
            raise ValueError("'aliases' must map alias names to record types")
        for alias, record_type in aliases.items():
            policy.expose_with_alias(str(record_type), str(alias))

        return policy
