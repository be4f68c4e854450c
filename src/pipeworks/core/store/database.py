# src/pipeworks/core/store/database.py
"""Engine ownership for the pipeline store.

SQLite is the default backend. File databases get their parent directory
created on demand; in-memory databases share one connection across
threads so the scheduler and the CLI see the same rows.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Self

from sqlalchemy import Connection, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.pool import StaticPool

from pipeworks.core.store.schema import metadata

# Applied to every new DBAPI connection on SQLite engines
_SQLITE_PRAGMAS: tuple[str, ...] = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def _is_sqlite(url: URL) -> bool:
    return url.get_backend_name() == "sqlite"


def _is_in_memory(url: URL) -> bool:
    return _is_sqlite(url) and url.database in (None, "", ":memory:")


def _apply_sqlite_pragmas(dbapi_connection: object, connection_record: object) -> None:
    cursor = dbapi_connection.cursor()  # type: ignore[attr-defined]
    for pragma in _SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def _build_engine(url: URL) -> Engine:
    if _is_in_memory(url):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        if _is_sqlite(url) and url.database:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(url)

    if _is_sqlite(url):
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


class PipelineDB:
    """Owns the SQLAlchemy engine behind a PipelineStore.

    Usable as a context manager; leaving the block disposes the engine.
    """

    def __init__(self, connection_string: str, *, create_tables: bool = True) -> None:
        """
        Args:
            connection_string: SQLAlchemy URL, e.g. ``"sqlite:///./pipeworks.db"``
                or ``"sqlite://"`` for a throwaway in-memory store.
            create_tables: Create any missing tables on startup.
        """
        self.connection_string = connection_string
        self._engine: Engine | None = _build_engine(make_url(connection_string))
        if create_tables:
            metadata.create_all(self.engine)

    @classmethod
    def in_memory(cls) -> Self:
        """Fresh in-memory SQLite store with all tables created."""
        return cls("sqlite://")

    @classmethod
    def from_url(cls, url: str, *, create_tables: bool = True) -> Self:
        return cls(url, create_tables=create_tables)

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("PipelineDB is closed")
        return self._engine

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Yield a connection inside a transaction.

        The transaction commits when the block exits normally and rolls
        back if it raises.
        """
        with self.engine.begin() as conn:
            yield conn

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        self.close()
