"""HTTP surface of formjudge: the uniqueness endpoint."""

from formjudge.api.app import create_app
from formjudge.api.endpoints import (
    UniquenessQuery,
    create_validations_router,
    run_uniqueness_query,
)

__all__ = [
    "UniquenessQuery",
    "create_app",
    "create_validations_router",
    "run_uniqueness_query",
]
