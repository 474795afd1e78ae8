"""Validation state object.

A Validation is what every validator returns. It starts either closed
(messages known at construction) or pending (messages arrive later, e.g.
after a network round-trip), and is closed exactly once. Subscribers
registered with on_close are notified synchronously at close time, so the
orchestrator never needs to know whether a validator was synchronous.
"""

import asyncio
import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from formjudge.errors import MalformedMessagesError, ValidationProtocolError


class ValidationState(Enum):
    """Lifecycle state of a Validation."""

    PENDING = "pending"
    CLOSED = "closed"


# =============================================================================
# Outcomes
# =============================================================================


@dataclass(frozen=True)
class Valid:
    """Closed with no messages."""

    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class Invalid:
    """Closed with one or more messages."""

    messages: tuple[str, ...]


@dataclass(frozen=True)
class Errored:
    """Closed without a verdict; the field's validity is unknown."""

    error: BaseException
    messages: tuple[str, ...] = field(default=())


Outcome = Union[Valid, Invalid, Errored]

MessagesInput = Union[Sequence[str], str]


def parse_messages(messages: MessagesInput) -> list[str]:
    """Normalize a message payload to a list of strings.

    Accepts a sequence of strings or a serialized JSON array of strings.

    Raises:
        MalformedMessagesError: If the payload is not an array of strings
    """
    if isinstance(messages, (str, bytes)):
        try:
            messages = json.loads(messages)
        except json.JSONDecodeError as e:
            raise MalformedMessagesError(f"Messages are not valid JSON: {e}") from e

    if not isinstance(messages, (list, tuple)):
        raise MalformedMessagesError(
            f"Messages must be an array of strings, got {type(messages).__name__}"
        )
    if not all(isinstance(m, str) for m in messages):
        raise MalformedMessagesError("Messages must be an array of strings")
    return list(messages)


# =============================================================================
# Validation
# =============================================================================


class Validation:
    """Three-state result container: pending, valid or invalid.

    Example:
        Validation(["is too short"]).outcome   # Invalid(("is too short",))

        pending = Validation()
        pending.on_close(lambda v: print(v.outcome))
        pending.close([])                       # prints Valid(messages=())
    """

    def __init__(self, messages: MessagesInput | None = None):
        self._state = ValidationState.PENDING
        self._messages: list[str] = []
        self._error: BaseException | None = None
        self._subscribers: list[Callable[["Validation"], None]] = []
        self._future: asyncio.Future | None = None

        if messages is not None:
            self._messages = parse_messages(messages)
            self._state = ValidationState.CLOSED

    def __repr__(self) -> str:
        return f"<Validation {self.status}>"

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def pending(self) -> bool:
        return self._state is ValidationState.PENDING

    @property
    def closed(self) -> bool:
        return self._state is ValidationState.CLOSED

    @property
    def valid(self) -> bool:
        return self.closed and self._error is None and not self._messages

    @property
    def status(self) -> str:
        """One of "pending", "valid", "invalid" or "errored"."""
        if self.pending:
            return "pending"
        if self._error is not None:
            return "errored"
        return "invalid" if self._messages else "valid"

    @property
    def outcome(self) -> Outcome | None:
        """The closed outcome, or None while pending."""
        if self.pending:
            return None
        if self._error is not None:
            return Errored(self._error)
        if self._messages:
            return Invalid(tuple(self._messages))
        return Valid()

    def close(self, messages: MessagesInput) -> None:
        """Close a pending Validation with the given messages.

        Raises:
            ValidationProtocolError: If the Validation is already closed
            MalformedMessagesError: If messages is not an array of strings
        """
        self._ensure_pending()
        self._messages = parse_messages(messages)
        self._finish()

    def fail(self, error: BaseException) -> None:
        """Close a pending Validation without a verdict.

        Used when the outcome cannot be determined (transport failure,
        validator crash). The orchestrator reports it on the error channel.

        Raises:
            ValidationProtocolError: If the Validation is already closed
        """
        self._ensure_pending()
        self._error = error
        self._finish()

    def on_close(self, callback: Callable[["Validation"], None]) -> None:
        """Call callback with this Validation once it is closed.

        Runs immediately if already closed; otherwise runs once at close
        time, in registration order.
        """
        if self.closed:
            callback(self)
        else:
            self._subscribers.append(callback)

    async def wait(self) -> Outcome:
        """Wait for the Validation to close and return its outcome."""
        if self.closed:
            return self.outcome  # type: ignore[return-value]
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return await asyncio.shield(self._future)

    def _ensure_pending(self) -> None:
        if self.closed:
            raise ValidationProtocolError(
                f"Validation is already closed ({self.status}); close() is single-use"
            )

    def _finish(self) -> None:
        self._state = ValidationState.CLOSED
        subscribers, self._subscribers = self._subscribers, []
        for callback in subscribers:
            callback(self)
        if self._future is not None and not self._future.done():
            self._future.set_result(self.outcome)


def closed(messages: MessagesInput) -> Validation:
    """Shorthand for a Validation that is closed from the start."""
    return Validation(messages)


def pending() -> Validation:
    """Shorthand for a pending Validation."""
    return Validation()
