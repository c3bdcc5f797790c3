"""Row store client with a hard per-call row limit.

This module wraps a SQLAlchemy engine behind the narrow table API the
pipeline needs: upsert, ranged select, select-in, delete-in, count.
Every batch operation is capped at ``max_rows_per_call`` rows, the same
ceiling the hosted backend enforces, so callers must page explicitly.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence

from sqlalchemy import Table, create_engine, delete, func, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from core.constants import DEFAULT_READ_PAGE_SIZE, STORE_MAX_ROWS_PER_CALL
from core.errors import AtlasStoreError
from core.logging_config import get_logger
from store.schema import metadata

_LOGGER = get_logger(__name__)

Row = dict[str, Any]

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RowStore:
    """Size-limited table client over a SQLAlchemy engine."""

    def __init__(self, engine: Engine, max_rows_per_call: int = STORE_MAX_ROWS_PER_CALL) -> None:
        """Initialize store around an engine.

        Args:
            engine: SQLAlchemy engine bound to the primary store.
            max_rows_per_call: Largest row count accepted by one call.
        """
        self._engine = engine
        self._max_rows_per_call = max_rows_per_call

    @classmethod
    def from_url(
        cls,
        database_url: str,
        max_rows_per_call: int = STORE_MAX_ROWS_PER_CALL,
    ) -> "RowStore":
        """Create a store from a SQLAlchemy database URL.

        Args:
            database_url: Database URL, e.g. ``sqlite:///atlas.db``.
            max_rows_per_call: Largest row count accepted by one call.

        Returns:
            Store instance.

        Raises:
            AtlasStoreError: If the URL is invalid or its driver is missing.
        """
        engine_kwargs: dict[str, Any] = {"pool_pre_ping": True}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_kwargs = {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        try:
            engine = create_engine(database_url, **engine_kwargs)
        except (ArgumentError, ImportError) as error:
            raise AtlasStoreError(
                f"Failed to create store engine for the configured database URL: {error}. "
                "Check ATLAS_DATABASE_URL and that its database driver is installed."
            ) from error
        return cls(engine, max_rows_per_call)

    @property
    def max_rows_per_call(self) -> int:
        """Return the per-call row ceiling."""
        return self._max_rows_per_call

    def check_connection(self) -> None:
        """Fail fast when the store is unreachable.

        Raises:
            AtlasStoreError: If a trivial query cannot be executed.
        """
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as error:
            raise AtlasStoreError(
                f"Primary store is unreachable: {error}. Verify ATLAS_DATABASE_URL and network access."
            ) from error

    def create_schema(self) -> None:
        """Create all tables and indexes that do not exist yet."""
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as error:
            raise AtlasStoreError(f"Failed to create store schema: {error}.") from error
        _LOGGER.info("store_schema_ready", tables=sorted(metadata.tables))

    def upsert(
        self,
        table_name: str,
        rows: Sequence[Mapping[str, Any]],
        conflict_columns: Sequence[str],
    ) -> int:
        """Insert rows, overwriting existing rows that collide on a key.

        Args:
            table_name: Target table.
            rows: Row payloads sharing one key set.
            conflict_columns: Unique column set used as the upsert key.

        Returns:
            Number of rows submitted.

        Raises:
            AtlasStoreError: If the batch exceeds the row limit or fails.
        """
        if not rows:
            return 0
        self._check_row_limit("upsert", len(rows))
        table = self._table(table_name)
        statement = self._build_upsert(table, rows[0].keys(), conflict_columns)
        try:
            with self._engine.begin() as connection:
                connection.execute(statement, [dict(row) for row in rows])
        except SQLAlchemyError as error:
            raise AtlasStoreError(
                f"Upsert of {len(rows)} rows into {table_name} failed: {_short_error(error)}"
            ) from error
        return len(rows)

    def select_page(
        self,
        table_name: str,
        offset: int,
        limit: int,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[str] = ("id",),
    ) -> list[Row]:
        """Read one bounded range of rows.

        Args:
            table_name: Source table.
            offset: Zero-based row offset.
            limit: Maximum rows to return.
            columns: Optional column subset; all columns when omitted.
            filters: Optional column equality constraints.
            order_by: Column names; a leading ``-`` sorts descending.

        Returns:
            Rows as plain dictionaries.

        Raises:
            AtlasStoreError: If limit exceeds the row limit or the read fails.
        """
        self._check_row_limit("select", limit)
        table = self._table(table_name)
        statement = select(*self._columns(table, columns))
        statement = statement.where(*self._conditions(table, filters))
        statement = statement.order_by(*self._ordering(table, order_by))
        statement = statement.offset(offset).limit(limit)
        return self._fetch_rows(table_name, statement)

    def iter_rows(
        self,
        table_name: str,
        columns: Sequence[str] | None = None,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[str] = ("id",),
        page_size: int | None = None,
    ) -> Iterator[Row]:
        """Yield every matching row by looping over bounded pages.

        Args:
            table_name: Source table.
            columns: Optional column subset.
            filters: Optional column equality constraints.
            order_by: Stable ordering used across pages.
            page_size: Rows per page, at most the row limit.

        Yields:
            Rows as plain dictionaries.
        """
        size = min(page_size or DEFAULT_READ_PAGE_SIZE, self._max_rows_per_call)
        offset = 0
        while True:
            page = self.select_page(table_name, offset, size, columns, filters, order_by)
            yield from page
            if len(page) < size:
                return
            offset += size

    def select_in(
        self,
        table_name: str,
        column: str,
        values: Sequence[Any],
        columns: Sequence[str] | None = None,
    ) -> list[Row]:
        """Read rows whose column value is in a bounded value list."""
        if not values:
            return []
        self._check_row_limit("select", len(values))
        table = self._table(table_name)
        statement = select(*self._columns(table, columns)).where(
            self._column(table, column).in_(list(values))
        )
        return self._fetch_rows(table_name, statement)

    def get_one(self, table_name: str, filters: Mapping[str, Any]) -> Row | None:
        """Return the first row matching the filters, or None."""
        rows = self.select_page(table_name, 0, 1, filters=filters)
        return rows[0] if rows else None

    def count(self, table_name: str, filters: Mapping[str, Any] | None = None) -> int:
        """Count rows matching the filters."""
        table = self._table(table_name)
        statement = select(func.count()).select_from(table).where(*self._conditions(table, filters))
        try:
            with self._engine.connect() as connection:
                return int(connection.execute(statement).scalar_one())
        except SQLAlchemyError as error:
            raise AtlasStoreError(f"Count on {table_name} failed: {_short_error(error)}") from error

    def update(
        self,
        table_name: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
    ) -> int:
        """Update matching rows and return the affected row count."""
        table = self._table(table_name)
        statement = update(table).where(*self._conditions(table, filters)).values(dict(values))
        return self._execute_write(table_name, "update", statement)

    def delete_in(self, table_name: str, column: str, values: Sequence[Any]) -> int:
        """Delete rows whose column value is in a bounded value list."""
        if not values:
            return 0
        self._check_row_limit("delete", len(values))
        table = self._table(table_name)
        statement = delete(table).where(self._column(table, column).in_(list(values)))
        return self._execute_write(table_name, "delete", statement)

    def delete_all(self, table_name: str) -> int:
        """Remove every row from a table."""
        table = self._table(table_name)
        return self._execute_write(table_name, "truncate", delete(table))

    def dispose(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    def _build_upsert(
        self,
        table: Table,
        column_names: Any,
        conflict_columns: Sequence[str],
    ) -> Any:
        dialect_name = self._engine.dialect.name
        insert = _UPSERT_INSERTS.get(dialect_name)
        if insert is None:
            raise AtlasStoreError(
                f"Upserts are not supported on the '{dialect_name}' dialect. "
                "Use a PostgreSQL or SQLite database URL."
            )
        statement = insert(table)
        update_columns = {
            name: statement.excluded[name]
            for name in column_names
            if name not in conflict_columns and name != "id"
        }
        index_elements = [self._column(table, name) for name in conflict_columns]
        if not update_columns:
            return statement.on_conflict_do_nothing(index_elements=index_elements)
        return statement.on_conflict_do_update(index_elements=index_elements, set_=update_columns)

    def _fetch_rows(self, table_name: str, statement: Any) -> list[Row]:
        try:
            with self._engine.connect() as connection:
                return [dict(row._mapping) for row in connection.execute(statement)]
        except SQLAlchemyError as error:
            raise AtlasStoreError(f"Read from {table_name} failed: {_short_error(error)}") from error

    def _execute_write(self, table_name: str, operation: str, statement: Any) -> int:
        try:
            with self._engine.begin() as connection:
                result = connection.execute(statement)
        except SQLAlchemyError as error:
            raise AtlasStoreError(
                f"{operation.capitalize()} on {table_name} failed: {_short_error(error)}"
            ) from error
        return int(result.rowcount or 0)

    def _check_row_limit(self, operation: str, row_count: int) -> None:
        if row_count > self._max_rows_per_call:
            raise AtlasStoreError(
                f"Refusing {operation} of {row_count} rows: the store accepts at most "
                f"{self._max_rows_per_call} rows per call. Split the request into pages."
            )

    def _table(self, table_name: str) -> Table:
        table = metadata.tables.get(table_name)
        if table is None:
            raise AtlasStoreError(f"Unknown table '{table_name}'.")
        return table

    def _column(self, table: Table, column_name: str) -> Any:
        if column_name not in table.c:
            raise AtlasStoreError(f"Unknown column '{column_name}' on table {table.name}.")
        return table.c[column_name]

    def _columns(self, table: Table, columns: Sequence[str] | None) -> list[Any]:
        if not columns:
            return list(table.c)
        return [self._column(table, name) for name in columns]

    def _conditions(self, table: Table, filters: Mapping[str, Any] | None) -> list[Any]:
        if not filters:
            return []
        return [self._column(table, name) == value for name, value in filters.items()]

    def _ordering(self, table: Table, order_by: Sequence[str]) -> list[Any]:
        clauses: list[Any] = []
        for name in order_by:
            if name.startswith("-"):
                clauses.append(self._column(table, name[1:]).desc())
            else:
                clauses.append(self._column(table, name).asc())
        return clauses


def _short_error(error: SQLAlchemyError) -> str:
    """Return the first line of a driver error without the SQL dump."""
    original = getattr(error, "orig", None)
    message = str(original) if original is not None else str(error)
    return message.splitlines()[0] if message else type(error).__name__
