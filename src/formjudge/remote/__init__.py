"""Uniqueness round-trip: client shim and server-side checkers."""

from formjudge.remote.checker import (
    InMemoryUniquenessChecker,
    SQLAlchemyUniquenessChecker,
    UniquenessChecker,
)
from formjudge.remote.client import UniquenessClient

__all__ = [
    "InMemoryUniquenessChecker",
    "SQLAlchemyUniquenessChecker",
    "UniquenessChecker",
    "UniquenessClient",
]
