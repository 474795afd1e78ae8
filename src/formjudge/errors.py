"""Error taxonomy for formjudge.

- ConfigurationError: a field or descriptor is unusable (skipped, logged)
- ExposureError: a uniqueness query targets a non-exposed type/attribute
- TransportError: the remote endpoint could not answer
- ValidationProtocolError: a validator misused a Validation (raised)
"""


class JudgeError(Exception):
    """Base class for all formjudge errors."""


class ConfigurationError(JudgeError):
    """A descriptor or field binding cannot be used."""


class DescriptorError(ConfigurationError):
    """The serialized descriptor list attached to a field is malformed."""


class UnknownValidatorError(ConfigurationError):
    """A descriptor names a validator that is not registered."""

    def __init__(self, name: str, available: list[str] | None = None):
        self.name = name
        self.available = available or []
        message = f"Validator '{name}' is not registered."
        if self.available:
            message += " Available: " + ", ".join(self.available)
        super().__init__(message)


class ExposureError(JudgeError):
    """A (record type, attribute) pair has not been exposed for remote queries."""

    def __init__(self, record_type: str, attribute: str):
        self.record_type = record_type
        self.attribute = attribute
        super().__init__(f"{record_type}#{attribute} is not exposed")


class TransportError(JudgeError):
    """The remote endpoint returned a non-success response or was unreachable.

    Attributes:
        status: HTTP status code, or None for network-level failures
        detail: Response body or underlying error description
    """

    def __init__(self, message: str, status: int | None = None, detail: str = ""):
        self.status = status
        self.detail = detail
        super().__init__(message)


class ValidationProtocolError(JudgeError):
    """A Validation was used incorrectly, e.g. closed twice."""


class MalformedMessagesError(ValidationProtocolError):
    """A message payload was not a JSON array of strings."""
