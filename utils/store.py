"""
Process-wide access to the event store.

Django already keeps one database connection per worker thread and (on PostgreSQL) a psycopg
pool behind it. :class:`StoreConnection` adds the failure policy the repositories rely on:
connect on first use, reuse while healthy, and drop a broken connection so the next call opens a
fresh one.
"""

from collections.abc import Callable
from functools import cache
from typing import TypeVar

import structlog
from django.db import DEFAULT_DB_ALIAS, DatabaseError, InterfaceError, OperationalError, connections
from django.db.backends.base.base import BaseDatabaseWrapper

from events.errors import StoreConnectivityError


logger = structlog.get_logger(__name__)

T = TypeVar("T")

CONNECTIVITY_ERRORS = (OperationalError, InterfaceError)


class StoreConnection:
    """Handle on one configured database alias."""

    def __init__(self, alias: str = DEFAULT_DB_ALIAS) -> None:
        """
        Initialize the handle.

        Args:
            alias: Key of the database in ``settings.DATABASES``

        """
        self.alias = alias

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"StoreConnection(alias={self.alias!r})"

    @property
    def connection(self) -> BaseDatabaseWrapper:
        """Return the connection of the current thread."""
        return connections[self.alias]

    def ensure(self) -> None:
        """Open the connection if there is none yet."""
        try:
            self.connection.ensure_connection()
        except CONNECTIVITY_ERRORS as exc:
            self._handle_failure("connect", exc)
            raise StoreConnectivityError from exc

    def reset(self) -> None:
        """Close the current connection so that the next query reconnects."""
        connection = self.connection
        if connection.in_atomic_block:
            # The surrounding transaction is rolled back by its owner
            logger.debug("Store reset deferred to transaction owner", alias=self.alias)
            return
        connection.close()
        logger.info("Store connection reset", alias=self.alias)

    def is_healthy(self) -> bool:
        """Return whether the store answers a trivial query."""
        try:
            self.connection.ensure_connection()
            with self.connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                cursor.fetchone()
        except DatabaseError as exc:
            self._handle_failure("health", exc)
            return False
        return True

    def read(self, operation: str, query: Callable[[], T], default: T) -> T:
        """
        Run a list or aggregate read, degrading to ``default`` on store failure.

        Args:
            operation: Name used in log entries
            query: Callable performing the read
            default: Value returned when the store fails

        """
        try:
            return query()
        except DatabaseError as exc:
            self._handle_failure(operation, exc)
            return default

    def run(self, operation: str, action: Callable[[], T]) -> T:
        """
        Run a single-object read or a write.

        Connectivity failures surface as :class:`StoreConnectivityError`. Every other database
        error (integrity violations included) propagates unchanged to the caller.
        """
        try:
            return action()
        except CONNECTIVITY_ERRORS as exc:
            self._handle_failure(operation, exc)
            raise StoreConnectivityError from exc

    def _handle_failure(self, operation: str, exc: DatabaseError) -> None:
        logger.error(
            "Store operation failed",
            operation=operation,
            alias=self.alias,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        if isinstance(exc, CONNECTIVITY_ERRORS):
            self.reset()


@cache
def get_store(alias: str = DEFAULT_DB_ALIAS) -> StoreConnection:
    """Return the shared :class:`StoreConnection` for ``alias``."""
    return StoreConnection(alias)
