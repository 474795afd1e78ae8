"""Validator registry for formjudge.

Maps a validator name to a function ``(field, options, messages) ->
Validation``. Built-ins and host-registered validators share the same
mapping and are looked up at call time.
"""

from collections.abc import Callable, Mapping
from typing import Any

from formjudge.errors import UnknownValidatorError
from formjudge.validation.fields import FieldElement
from formjudge.validation.state import Validation
from formjudge.validation.types import ValidatorFn


class ValidatorRegistry:
    """Registry of validator functions.

    Validators must be registered before the first validation run. The
    registry is an explicit object so tests and hosts can keep independent
    instances.

    Example:
        registry = ValidatorRegistry()

        @registry.validator("postcode")
        def postcode(field, options, messages):
            return Validation([] if POSTCODE.match(field.value) else [messages["invalid"]])
    """

    def __init__(self) -> None:
        self._validators: dict[str, ValidatorFn] = {}

    def register(self, name: str, fn: ValidatorFn) -> None:
        """Register a validator function by name.

        Re-registering a name replaces the previous function, which lets
        host code override a built-in before first use.

        Args:
            name: Descriptor kind this function handles
            fn: Function implementing the validator signature
        """
        if not callable(fn):
            raise TypeError(f"Validator '{name}' must be callable")
        self._validators[name] = fn

    def validator(self, name: str) -> Callable[[ValidatorFn], ValidatorFn]:
        """Decorator to register a validator function."""

        def decorator(fn: ValidatorFn) -> ValidatorFn:
            self.register(name, fn)
            return fn

        return decorator

    def unregister(self, name: str) -> None:
        self._validators.pop(name, None)

    def get(self, name: str) -> ValidatorFn:
        """Get a registered validator function by name.

        Raises:
            UnknownValidatorError: If the validator is not registered
        """
        if name not in self._validators:
            raise UnknownValidatorError(name, self.list_registered())
        return self._validators[name]

    def invoke(
        self,
        name: str,
        field: FieldElement,
        options: Mapping[str, Any],
        messages: Mapping[str, str],
    ) -> Validation:
        """Look up and run a validator.

        Raises:
            UnknownValidatorError: If the validator is not registered
            TypeError: If the validator does not return a Validation
        """
        result = self.get(name)(field, options, messages)
        if not isinstance(result, Validation):
            raise TypeError(
                f"Validator '{name}' returned {type(result).__name__}, expected Validation"
            )
        return result

    def is_registered(self, name: str) -> bool:
        """Check if a validator is registered."""
        return name in self._validators

    def list_registered(self) -> list[str]:
        """List all registered validator names."""
        return sorted(self._validators.keys())

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._validators.clear()

    def __contains__(self, name: str) -> bool:
        return self.is_registered(name)
