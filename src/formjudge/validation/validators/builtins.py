"""Built-in validators for formjudge.

These mirror the server-side record validators so a field can be checked
before submission. Each one decodes its raw options into its own options
dataclass, reads the field's current value and returns a closed Validation.

Available validators:
- presence: value must not be blank
- length: minimum / maximum / is
- inclusion, exclusion: membership in an "in" list
- format: "with" / "without" regular expressions
- numericality: numeric literal plus relational and parity constraints
- acceptance: value must equal an accepted token
- confirmation: value must equal the "<id>_confirmation" sibling
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Any

from formjudge.validation.fields import FieldElement, wire_string
from formjudge.validation.registry import ValidatorRegistry
from formjudge.validation.state import Validation

logger = logging.getLogger(__name__)


DEFAULT_MESSAGES: dict[str, str] = {
    "blank": "can't be blank",
    "too_short": "is too short (minimum is {count} characters)",
    "too_long": "is too long (maximum is {count} characters)",
    "wrong_length": "is the wrong length (should be {count} characters)",
    "inclusion": "is not included in the list",
    "exclusion": "is reserved",
    "invalid": "is invalid",
    "not_a_number": "is not a number",
    "not_an_integer": "must be an integer",
    "greater_than": "must be greater than {count}",
    "greater_than_or_equal_to": "must be greater than or equal to {count}",
    "less_than": "must be less than {count}",
    "less_than_or_equal_to": "must be less than or equal to {count}",
    "equal_to": "must be equal to {count}",
    "other_than": "must be other than {count}",
    "odd": "must be odd",
    "even": "must be even",
    "accepted": "must be accepted",
    "confirmation": "doesn't match confirmation",
    "taken": "has already been taken",
}


def message_for(messages: Mapping[str, str], key: str, **values: Any) -> str:
    """Return the embedded message for key, or the default English one."""
    if key in messages:
        return messages[key]
    return DEFAULT_MESSAGES.get(key, key).format(**values)


def _int_option(options: Mapping[str, Any], key: str, kind: str) -> int | None:
    value = options.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        logger.warning("Ignoring non-integer %s option %r=%r", kind, key, value)
        return None
    return value


# =============================================================================
# Presence
# =============================================================================


def validate_presence(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    if field.blank:
        return Validation([message_for(messages, "blank")])
    return Validation([])


# =============================================================================
# Length
# =============================================================================


@dataclass(frozen=True)
class LengthOptions:
    """Options for the length validator. Bounds are inclusive."""

    minimum: int | None = None
    maximum: int | None = None
    is_: int | None = None

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "LengthOptions":
        minimum = _int_option(options, "minimum", "length")
        maximum = _int_option(options, "maximum", "length")

        within = options.get("within", options.get("in"))
        if isinstance(within, (list, tuple)) and len(within) == 2:
            low, high = within
            if minimum is None and isinstance(low, int) and not isinstance(low, bool):
                minimum = low
            if maximum is None and isinstance(high, int) and not isinstance(high, bool):
                maximum = high
        elif within is not None:
            logger.warning("Ignoring length range option %r; expected [min, max]", within)

        return cls(
            minimum=minimum,
            maximum=maximum,
            is_=_int_option(options, "is", "length"),
        )


def validate_length(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = LengthOptions.from_dict(options)
    length = len(field.value or "")
    errors = []

    if opts.minimum is not None and length < opts.minimum:
        errors.append(message_for(messages, "too_short", count=opts.minimum))
    if opts.maximum is not None and length > opts.maximum:
        errors.append(message_for(messages, "too_long", count=opts.maximum))
    if opts.is_ is not None and length != opts.is_:
        errors.append(message_for(messages, "wrong_length", count=opts.is_))

    return Validation(errors)


# =============================================================================
# Inclusion / Exclusion
# =============================================================================


@dataclass(frozen=True)
class MembershipOptions:
    """Options for inclusion and exclusion. Members compare as strings."""

    members: tuple[str, ...] | None = None

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "MembershipOptions":
        members = options.get("in", options.get("within"))
        if members is None:
            return cls()
        if not isinstance(members, (list, tuple)):
            logger.warning("Ignoring membership option %r; expected a list", members)
            return cls()
        return cls(members=tuple(wire_string(m) for m in members))


def validate_inclusion(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = MembershipOptions.from_dict(options)
    if opts.members is not None and field.value not in opts.members:
        return Validation([message_for(messages, "inclusion")])
    return Validation([])


def validate_exclusion(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = MembershipOptions.from_dict(options)
    if opts.members is not None and field.value in opts.members:
        return Validation([message_for(messages, "exclusion")])
    return Validation([])


# =============================================================================
# Format
# =============================================================================

# Ruby Regexp#to_s form: (?mix-mix:source)
_RUBY_REGEX = re.compile(r"\A\(\?([mix]*)(?:-[mix]*)?:(.*)\)\Z", re.DOTALL)
_RUBY_ANCHOR = re.compile(r"(?<!\\)((?:\\\\)*)\\([zZ])")
_RUBY_FLAGS = {"i": re.IGNORECASE, "m": re.DOTALL, "x": re.VERBOSE}


def _translate_anchors(source: str) -> str:
    def replace(match: re.Match) -> str:
        escapes, anchor = match.groups()
        return escapes + (r"\Z" if anchor == "z" else r"(?=\n?\Z)")

    return _RUBY_ANCHOR.sub(replace, source)


def compile_pattern(pattern: Any) -> re.Pattern:
    """Compile a serialized server-side pattern.

    Accepts:
        - a Ruby-serialized regexp string, e.g. ``(?-mix:\\A\\d+\\z)``
        - a mapping ``{"source": ..., "flags": "i"}``
        - a plain pattern string

    Ruby patterns keep Ruby semantics: ``^``/``$`` match at line boundaries,
    ``m`` means dot-matches-newline and ``\\z`` is end of string.

    Raises:
        re.error: If the pattern cannot be compiled
        TypeError: If the pattern has an unsupported shape
    """
    flags = 0
    if isinstance(pattern, Mapping):
        source = pattern.get("source")
        if not isinstance(source, str):
            raise TypeError("Pattern mapping needs a string 'source'")
        for flag in str(pattern.get("flags", "")):
            flags |= _RUBY_FLAGS.get(flag, 0)
        return re.compile(_translate_anchors(source), flags | re.MULTILINE)

    if not isinstance(pattern, str):
        raise TypeError(f"Unsupported pattern type {type(pattern).__name__}")

    match = _RUBY_REGEX.match(pattern)
    if match is None:
        return re.compile(pattern)

    enabled, source = match.groups()
    for flag in enabled:
        flags |= _RUBY_FLAGS[flag]
    return re.compile(_translate_anchors(source), flags | re.MULTILINE)


@dataclass(frozen=True)
class FormatOptions:
    """Options for the format validator."""

    with_: re.Pattern | None = None
    without: re.Pattern | None = None

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "FormatOptions":
        return cls(
            with_=cls._pattern(options, "with"),
            without=cls._pattern(options, "without"),
        )

    @staticmethod
    def _pattern(options: Mapping[str, Any], key: str) -> re.Pattern | None:
        if options.get(key) is None:
            return None
        try:
            return compile_pattern(options[key])
        except (re.error, TypeError) as e:
            # Unusable pattern in the descriptor: no constraint
            logger.warning("Ignoring format option %r=%r: %s", key, options[key], e)
            return None


def validate_format(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = FormatOptions.from_dict(options)
    value = field.value or ""
    errors = []

    if opts.with_ is not None and not opts.with_.search(value):
        errors.append(message_for(messages, "invalid"))
    if opts.without is not None and opts.without.search(value):
        errors.append(message_for(messages, "invalid"))

    return Validation(errors)


# =============================================================================
# Numericality
# =============================================================================

NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")

COMPARISONS = {
    "greater_than": lambda a, b: a > b,
    "greater_than_or_equal_to": lambda a, b: a >= b,
    "equal_to": lambda a, b: a == b,
    "less_than": lambda a, b: a < b,
    "less_than_or_equal_to": lambda a, b: a <= b,
    "other_than": lambda a, b: a != b,
}


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    if isinstance(value, str) and NUMBER_PATTERN.match(value.strip()):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            return None
    return None


def _is_even(number: Decimal) -> bool:
    """Parity of the truncated integer part, read from the decimal digits.

    Never expands the exponent, so ``1e999999999`` costs nothing.
    """
    _, digits, exponent = number.to_integral_value(rounding=ROUND_DOWN).as_tuple()
    if exponent > 0:
        # trailing zeros
        return True
    return digits[-1] % 2 == 0


@dataclass(frozen=True)
class NumericalityOptions:
    """Options for the numericality validator."""

    only_integer: bool = False
    odd: bool = False
    even: bool = False
    bounds: tuple[tuple[str, Decimal], ...] = ()

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "NumericalityOptions":
        bounds = []
        for key in COMPARISONS:
            if options.get(key) is None:
                continue
            bound = _to_decimal(options[key])
            if bound is None:
                # e.g. a bound that names another attribute on the server
                logger.warning("Ignoring non-numeric numericality option %r=%r", key, options[key])
                continue
            bounds.append((key, bound))

        return cls(
            only_integer=bool(options.get("only_integer", False)),
            odd=bool(options.get("odd", False)),
            even=bool(options.get("even", False)),
            bounds=tuple(bounds),
        )


def validate_numericality(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = NumericalityOptions.from_dict(options)
    raw = (field.value or "").strip()

    number = _to_decimal(raw)
    if number is None:
        return Validation([message_for(messages, "not_a_number")])

    errors = []
    if opts.only_integer and not INTEGER_PATTERN.match(raw):
        errors.append(message_for(messages, "not_an_integer"))

    if opts.odd and _is_even(number):
        errors.append(message_for(messages, "odd"))
    if opts.even and not _is_even(number):
        errors.append(message_for(messages, "even"))

    for key, bound in opts.bounds:
        if not COMPARISONS[key](number, bound):
            errors.append(message_for(messages, key, count=bound))

    return Validation(errors)


# =============================================================================
# Acceptance
# =============================================================================

DEFAULT_ACCEPTED = ("1", "true")


@dataclass(frozen=True)
class AcceptanceOptions:
    """Options for the acceptance validator."""

    accept: tuple[str, ...] = DEFAULT_ACCEPTED

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "AcceptanceOptions":
        accept = options.get("accept")
        if accept is None:
            return cls()
        if isinstance(accept, (list, tuple)):
            return cls(accept=tuple(wire_string(a) for a in accept))
        return cls(accept=(wire_string(accept),))


def validate_acceptance(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = AcceptanceOptions.from_dict(options)
    if field.value not in opts.accept:
        return Validation([message_for(messages, "accepted")])
    return Validation([])


# =============================================================================
# Confirmation
# =============================================================================

CONFIRMATION_SUFFIX = "_confirmation"


@dataclass(frozen=True)
class ConfirmationOptions:
    """Options for the confirmation validator."""

    case_sensitive: bool = True

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> "ConfirmationOptions":
        return cls(case_sensitive=bool(options.get("case_sensitive", True)))


def confirmation_id(field: FieldElement) -> str:
    """Id of the sibling holding the confirmation value."""
    return field.id + CONFIRMATION_SUFFIX


def validate_confirmation(
    field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
) -> Validation:
    opts = ConfirmationOptions.from_dict(options)
    sibling = field.sibling(confirmation_id(field))
    if sibling is None:
        logger.warning("No confirmation field '%s' for '%s'", confirmation_id(field), field.name)
        return Validation([message_for(messages, "confirmation")])

    value, other = field.value or "", sibling.value or ""
    if not opts.case_sensitive:
        value, other = value.casefold(), other.casefold()

    if value != other:
        return Validation([message_for(messages, "confirmation")])
    return Validation([])


# =============================================================================
# Registration
# =============================================================================

BUILTIN_VALIDATORS = {
    "presence": validate_presence,
    "length": validate_length,
    "inclusion": validate_inclusion,
    "exclusion": validate_exclusion,
    "format": validate_format,
    "numericality": validate_numericality,
    "acceptance": validate_acceptance,
    "confirmation": validate_confirmation,
}


def register_builtin_validators(registry: ValidatorRegistry, client=None) -> None:
    """Register all built-in validators with the registry.

    The uniqueness validator needs a remote client and is only registered
    when one is given.
    """
    for name, fn in BUILTIN_VALIDATORS.items():
        registry.register(name, fn)

    if client is not None:
        from formjudge.validation.validators.uniqueness import make_uniqueness_validator

        registry.register("uniqueness", make_uniqueness_validator(client))
