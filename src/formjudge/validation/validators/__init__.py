"""Built-in validators for formjudge."""

from formjudge.validation.validators.builtins import (
    BUILTIN_VALIDATORS,
    DEFAULT_MESSAGES,
    AcceptanceOptions,
    ConfirmationOptions,
    FormatOptions,
    LengthOptions,
    MembershipOptions,
    NumericalityOptions,
    compile_pattern,
    register_builtin_validators,
)
from formjudge.validation.validators.uniqueness import (
    UniquenessQuery,
    make_uniqueness_validator,
)

__all__ = [
    "BUILTIN_VALIDATORS",
    "DEFAULT_MESSAGES",
    "AcceptanceOptions",
    "ConfirmationOptions",
    "FormatOptions",
    "LengthOptions",
    "MembershipOptions",
    "NumericalityOptions",
    "UniquenessQuery",
    "compile_pattern",
    "make_uniqueness_validator",
    "register_builtin_validators",
]
