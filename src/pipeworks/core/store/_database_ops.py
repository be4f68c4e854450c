"""Statement execution shared by the store mixins.

Every call opens its own transaction through PipelineDB.connection() and
reports driver failures as StoreError, so callers above the store never
see SQLAlchemy exceptions.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import Connection, Executable
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from pipeworks.contracts.errors import StoreError

if TYPE_CHECKING:
    from pipeworks.core.store.database import PipelineDB


class DatabaseOps:
    """Thin execution layer over a PipelineDB."""

    def __init__(self, db: "PipelineDB") -> None:
        self._db = db

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Connection]:
        try:
            with self._db.connection() as conn:
                yield conn
        except SQLAlchemyError as e:
            raise StoreError(f"Store {action} failed: {e}") from e

    def execute_fetchone(self, query: Executable) -> Row[Any] | None:
        with self._transaction("read") as conn:
            return conn.execute(query).first()

    def execute_fetchall(self, query: Executable) -> list[Row[Any]]:
        with self._transaction("read") as conn:
            return list(conn.execute(query))

    def execute_insert(self, stmt: Executable) -> None:
        """Run an INSERT that must add at least one row.

        Raises:
            StoreError: On driver failure, or if nothing was inserted.
        """
        with self._transaction("write") as conn:
            inserted = conn.execute(stmt).rowcount
        if inserted == 0:
            raise StoreError("Insert affected zero rows (missing parent row or constraint violation)")

    def execute_update(self, stmt: Executable) -> int:
        """Run an UPDATE or DELETE and return the affected row count."""
        with self._transaction("write") as conn:
            return int(conn.execute(stmt).rowcount)

    def execute_update_one(self, stmt: Executable, *, what: str) -> None:
        """Run an update whose target row must exist.

        Raises:
            StoreError: ``"<what> does not exist"`` when no row matched.
        """
        if self.execute_update(stmt) == 0:
            raise StoreError(f"{what} does not exist")
