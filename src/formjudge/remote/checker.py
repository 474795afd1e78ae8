"""Server-side uniqueness checkers.

The uniqueness endpoint delegates the actual lookup to a checker. Checkers
only ever see canonical record types that passed the exposure policy.
"""

import asyncio
import threading
from collections.abc import Iterable, Mapping
from typing import Any, Protocol

from sqlalchemy import Engine, MetaData, Table, create_engine, func, inspect, select

from formjudge.validation.fields import wire_string


class UniquenessChecker(Protocol):
    """Protocol for looking up whether a value is already in use."""

    def knows(self, record_type: str, attribute: str) -> bool:
        """Check if the checker can answer for this record type/attribute."""
        ...

    async def is_taken(self, record_type: str, attribute: str, value: str) -> bool:
        """Check if any existing record has attribute == value."""
        ...


class InMemoryUniquenessChecker:
    """Checker over in-memory records, compared as strings.

    Example:
        checker = InMemoryUniquenessChecker({"User": [{"email": "a@example.com"}]})
    """

    def __init__(self, records: Mapping[str, Iterable[Mapping[str, Any]]] | None = None):
        self._records: dict[str, list[Mapping[str, Any]]] = {
            record_type: list(rows) for record_type, rows in (records or {}).items()
        }

    def add(self, record_type: str, record: Mapping[str, Any]) -> None:
        self._records.setdefault(record_type, []).append(record)

    def knows(self, record_type: str, attribute: str) -> bool:
        return record_type in self._records

    async def is_taken(self, record_type: str, attribute: str, value: str) -> bool:
        return any(
            attribute in row and wire_string(row[attribute]) == value
            for row in self._records.get(record_type, [])
        )


class SQLAlchemyUniquenessChecker:
    """Checker backed by SQLAlchemy Core. Dialect-neutral.

    Each record type maps to one table; attributes are column names. Lookups
    run in a worker thread, so an in-memory SQLite engine needs StaticPool.

    Example:
        checker = SQLAlchemyUniquenessChecker(
            "sqlite:///data/app.db",
            tables={"User": "users", "Email": "emails"},
        )
    """

    def __init__(self, database: str | Engine, tables: Mapping[str, str]):
        self._engine = create_engine(database) if isinstance(database, str) else database
        self._tables = dict(tables)
        self._metadata = MetaData()
        self._reflected: dict[str, Table] = {}
        self._reflect_lock = threading.Lock()

    def _table(self, record_type: str) -> Table:
        """Reflect (once) the table mapped to record_type."""
        with self._reflect_lock:
            if record_type not in self._reflected:
                self._reflected[record_type] = Table(
                    self._tables[record_type], self._metadata, autoload_with=self._engine
                )
        return self._reflected[record_type]

    def knows(self, record_type: str, attribute: str) -> bool:
        if record_type not in self._tables:
            return False
        table_name = self._tables[record_type]
        if not inspect(self._engine).has_table(table_name):
            return False
        return attribute in self._table(record_type).c

    async def is_taken(self, record_type: str, attribute: str, value: str) -> bool:
        # Engine I/O is blocking; keep it off the event loop
        return await asyncio.to_thread(self._count_matches, record_type, attribute, value) > 0

    def _count_matches(self, record_type: str, attribute: str, value: str) -> int:
        table = self._table(record_type)
        stmt = select(func.count()).select_from(table).where(table.c[attribute] == value)
        with self._engine.connect() as conn:
            return conn.execute(stmt).scalar_one()
