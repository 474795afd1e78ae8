"""Uniqueness validator.

The only asynchronous built-in: it returns a pending Validation and asks
the remote uniqueness endpoint whether the value is taken. The client
performs no authorization of its own; the endpoint decides whether the
record type and attribute are exposed.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Protocol

from formjudge.errors import ConfigurationError, TransportError
from formjudge.validation.fields import FieldElement
from formjudge.validation.state import Validation
from formjudge.validation.types import ValidatorFn

logger = logging.getLogger(__name__)


class UniquenessQuery(Protocol):
    """What the uniqueness validator needs from a remote client."""

    async def fetch_messages(
        self,
        record_type: str,
        attribute: str,
        value: str,
        original_value: str | None = None,
    ) -> list[str]:
        """Return the endpoint's messages (empty when the value is unique).

        Raises:
            TransportError: If the endpoint did not answer with 200
        """
        ...


def make_uniqueness_validator(client: UniquenessQuery) -> ValidatorFn:
    """Create the uniqueness validator bound to a remote client.

    Must be invoked from within a running event loop; the request is
    scheduled as a task and closes the returned Validation when it finishes.
    """
    in_flight: set[asyncio.Task] = set()

    async def query(
        validation: Validation,
        record_type: str,
        attribute: str,
        value: str,
        original_value: str | None,
    ) -> None:
        try:
            messages = await client.fetch_messages(
                record_type, attribute, value, original_value=original_value
            )
        except TransportError as e:
            logger.warning("Uniqueness check for %s#%s failed: %s", record_type, attribute, e)
            validation.fail(e)
            return
        except Exception as e:
            logger.exception("Uniqueness check for %s#%s crashed", record_type, attribute)
            validation.fail(e)
            return

        validation.close(messages)

    def validate_uniqueness(
        field: FieldElement, options: Mapping[str, Any], messages: Mapping[str, str]
    ) -> Validation:
        validation = Validation()

        record_type = field.resolved_record_type
        if record_type is None:
            validation.fail(
                ConfigurationError(f"Cannot derive a record type from field name '{field.name}'")
            )
            return validation

        task = asyncio.get_running_loop().create_task(
            query(validation, record_type, field.attribute, field.value, field.original_value)
        )
        in_flight.add(task)
        task.add_done_callback(in_flight.discard)
        return validation

    validate_uniqueness.in_flight = in_flight  # type: ignore[attr-defined]
    return validate_uniqueness
