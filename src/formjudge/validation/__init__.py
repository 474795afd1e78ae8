"""formjudge client-side validation engine.

- Validation: the pending/valid/invalid result every validator returns
- ValidatorRegistry: name -> validator function
- ValidationOrchestrator: runs a field's rules and reports the outcome

Usage:
    from formjudge.validation import (
        FieldElement,
        ValidationOrchestrator,
        ValidatorRegistry,
        register_builtin_validators,
    )

    registry = ValidatorRegistry()
    register_builtin_validators(registry, client=uniqueness_client)
    orchestrator = ValidationOrchestrator(registry)
    result = await orchestrator.validate_field(field)
"""

from formjudge.validation.fields import FieldElement, Form, is_blank
from formjudge.validation.orchestrator import (
    FieldCallbacks,
    FieldResult,
    FieldStatus,
    FormCallbacks,
    FormResult,
    ValidationOrchestrator,
)
from formjudge.validation.registry import ValidatorRegistry
from formjudge.validation.state import (
    Errored,
    Invalid,
    Outcome,
    Valid,
    Validation,
    ValidationState,
    closed,
    pending,
)
from formjudge.validation.types import (
    RuleDescriptor,
    ValidatorFn,
    parse_descriptors,
    serialize_descriptors,
)
from formjudge.validation.validators import register_builtin_validators

__all__ = [
    # Fields
    "FieldElement",
    "Form",
    "is_blank",
    # State
    "Errored",
    "Invalid",
    "Outcome",
    "Valid",
    "Validation",
    "ValidationState",
    "closed",
    "pending",
    # Descriptors
    "RuleDescriptor",
    "ValidatorFn",
    "parse_descriptors",
    "serialize_descriptors",
    # Registry
    "ValidatorRegistry",
    "register_builtin_validators",
    # Orchestration
    "FieldCallbacks",
    "FieldResult",
    "FieldStatus",
    "FormCallbacks",
    "FormResult",
    "ValidationOrchestrator",
]
