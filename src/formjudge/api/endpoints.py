"""Uniqueness endpoint.

``GET {mount_path}/validate?klass=&attribute=&value=&kind=uniqueness``
answers with a JSON array of messages (empty when the value is unique).
Queries for types/attributes the exposure policy does not list are refused
with 404 before any lookup happens.
"""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from formjudge.config import DEFAULT_TAKEN_MESSAGE
from formjudge.errors import ExposureError
from formjudge.exposure.policy import ExposurePolicy
from formjudge.remote.checker import UniquenessChecker

logger = logging.getLogger(__name__)

SUPPORTED_KINDS = ("uniqueness",)


class UniquenessQuery(BaseModel):
    """Query parameters of a uniqueness request."""

    klass: str = Field(min_length=1)
    attribute: str = Field(min_length=1)
    value: str = ""
    kind: str = "uniqueness"
    original_value: str | None = None


async def run_uniqueness_query(
    query: UniquenessQuery,
    policy: ExposurePolicy,
    checker: UniquenessChecker,
    taken_message: str = DEFAULT_TAKEN_MESSAGE,
) -> list[str]:
    """Answer a uniqueness query.

    Args:
        query: The request parameters
        policy: Exposure allow-list; consulted before any lookup
        checker: Performs the lookup on the canonical record type
        taken_message: Message returned when the value is in use

    Returns:
        Messages for the field; empty when the value is unique

    Raises:
        ExposureError: If the pair is not exposed or the checker can't answer
        ValueError: If the kind is not supported
    """
    if query.kind not in SUPPORTED_KINDS:
        raise ValueError(f"Unsupported validation kind '{query.kind}'")

    record_type = policy.resolve(query.klass)
    if not policy.is_exposed(query.klass, query.attribute):
        raise ExposureError(record_type, query.attribute)
    if not checker.knows(record_type, query.attribute):
        raise ExposureError(record_type, query.attribute)

    # Unchanged value on an edit form can't collide with another record
    if query.original_value is not None and query.original_value == query.value:
        return []

    if await checker.is_taken(record_type, query.attribute, query.value):
        return [taken_message]
    return []


def create_validations_router(
    get_policy: Callable[[], ExposurePolicy | None],
    get_checker: Callable[[], UniquenessChecker | None],
    mount_path: str = "/judge",
    taken_message: str = DEFAULT_TAKEN_MESSAGE,
) -> APIRouter:
    """Create the uniqueness router with injected dependencies."""
    router = APIRouter(prefix=mount_path, tags=["validations"])

    @router.get("/validate")
    async def validate(query: Annotated[UniquenessQuery, Query()]) -> list[str]:
        """Return the uniqueness messages for one field value."""
        policy = get_policy()
        checker = get_checker()
        if policy is None or checker is None:
            raise HTTPException(500, "Service not initialized")

        try:
            return await run_uniqueness_query(query, policy, checker, taken_message)
        except ExposureError as e:
            logger.warning("Refused uniqueness query for %s#%s", query.klass, query.attribute)
            raise HTTPException(404, str(e)) from e
        except ValueError as e:
            raise HTTPException(400, str(e)) from e

    return router
