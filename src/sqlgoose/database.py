"""
Database access: one SQLAlchemy asyncio connection, identifier quoting and
statement execution.

Statements are built with ``?`` value placeholders and pre-quoted
identifiers.  :func:`adapt_placeholders` rewrites them to the driver's DB-API
``paramstyle`` right before execution, so the compiler never needs to know
which driver is in use.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, fields, replace
from typing import TYPE_CHECKING, Any, NamedTuple

from sqlalchemy.ext.asyncio import create_async_engine

from .exceptions import ConnectionStateError, OperationError
from .model import Model
from .registry import TableRegistry
from .session import Session

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from sqlalchemy.engine import URL, Dialect
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

    from .registry import DuplicatePolicy
    from .schema import ColumnDefinition, Schema

logger = logging.getLogger("sqlgoose.database")


@dataclass(frozen=True)
class DatabaseOptions:
    """
    Runtime options changed through :meth:`Database.set`.

    Attributes:
        debug: ``True`` logs every statement at INFO level on
            ``sqlgoose.database``; a callable receives the statement and its
            values instead; ``False`` disables it.
    """

    debug: bool | Callable[..., Any] = False


class QueryResult(NamedTuple):
    """What the driver returned for one statement."""

    rows: list[dict[str, Any]]
    affected_rows: int
    last_insert_id: Any


def adapt_placeholders(
    sql: str, values: Sequence[Any], paramstyle: str
) -> tuple[str, tuple[Any, ...] | dict[str, Any]]:
    """
    Rewrite ``?`` placeholders for a DB-API ``paramstyle``.

    Identifiers are quoted by the dialect and never contain a bare ``?`` in
    anything the compiler emits.
    """
    params = tuple(values)
    if paramstyle == "qmark":
        return sql, params
    if paramstyle in ("format", "pyformat"):
        return sql.replace("%", "%%").replace("?", "%s"), params

    counter = itertools.count(1)
    if paramstyle == "numeric":
        return "".join(
            f":{next(counter)}" if ch == "?" else ch for ch in sql
        ), params
    if paramstyle == "named":
        text = "".join(f":p{next(counter)}" if ch == "?" else ch for ch in sql)
        return text, {f"p{n}": value for n, value in enumerate(params, start=1)}
    raise OperationError(f"unsupported driver paramstyle: {paramstyle}")


class Database:
    """
    Connection holder and model factory.

    Each database owns the :class:`TableRegistry` its models register into,
    which is what filter keys and ``populate`` lists are resolved against.

    Usage::

        db = Database()
        await db.connect("sqlite+aiosqlite:///shop.db")
        customer = db.model("customer", {"nId": {"type": "int", "primary": True}})
        rows = await customer.find({"nId": {"$gt": 1}})
        await db.disconnect()

    A ``dialect`` may be given up front so models can be declared (and
    filters compiled) before connecting.
    """

    def __init__(
        self,
        *,
        dialect: Dialect | None = None,
        registry: TableRegistry | None = None,
        duplicate_tables: DuplicatePolicy = "replace",
    ) -> None:
        self._dialect = dialect
        self._engine: AsyncEngine | None = None
        self._connection: AsyncConnection | None = None
        self._session_transaction = False
        self.registry = registry if registry is not None else TableRegistry(duplicate_tables)
        self.options = DatabaseOptions()

    # -- connection ----------------------------------------------------------

    async def connect(self, url: str | URL, **engine_options: Any) -> None:
        """
        Open a connection.

        ``engine_options`` are passed unmodified to
        :func:`sqlalchemy.ext.asyncio.create_async_engine`.
        """
        if self._connection is not None:
            raise ConnectionStateError("already connected")
        engine = create_async_engine(url, **engine_options)
        try:
            self._connection = await engine.connect()
        except Exception:
            await engine.dispose()
            raise
        self._engine = engine
        self._dialect = engine.dialect
        logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))

    async def disconnect(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._connection is None or self._engine is None:
            raise ConnectionStateError("not connected")
        try:
            await self._connection.close()
        finally:
            await self._engine.dispose()
            self._connection = None
            self._engine = None
            self._session_transaction = False
            logger.info("Disconnected")

    def get_connection(self) -> AsyncConnection:
        if self._connection is None:
            raise ConnectionStateError("not connected")
        return self._connection

    @property
    def dialect(self) -> Dialect:
        if self._dialect is None:
            raise ConnectionStateError(
                "no SQL dialect known yet: connect first or pass dialect="
            )
        return self._dialect

    def quote_identifier(self, name: str) -> str:
        """Dialect-safe quoted identifier (always quoted)."""
        return self.dialect.identifier_preparer.quote_identifier(name)

    # -- factories -----------------------------------------------------------

    def model(
        self,
        name: str,
        schema: Schema | Mapping[str, Mapping[str, Any] | ColumnDefinition],
    ) -> Model:
        """Declare a :class:`Model` for table ``name``."""
        return Model(name, schema, self)

    def start_session(self) -> Session:
        """A new :class:`Session`, required for transactions."""
        return Session(self)

    # -- options -------------------------------------------------------------

    def set(self, key: str, value: Any) -> Database:
        """Set an option (currently only ``"debug"``)."""
        if key not in {f.name for f in fields(DatabaseOptions)}:
            raise ValueError(f"Unknown option: {key!r}")
        self.options = replace(self.options, **{key: value})
        return self

    def debug(self, *args: Any) -> None:
        """Route a debugging message according to the ``debug`` option."""
        option = self.options.debug
        if callable(option):
            option(*args)
        elif option:
            logger.info("SqlgooseDebug: %s", " ".join(repr(arg) for arg in args))

    # -- execution -----------------------------------------------------------

    @property
    def in_session_transaction(self) -> bool:
        return self._session_transaction

    async def query(self, sql: str, values: Sequence[Any] = ()) -> QueryResult:
        """
        Execute one statement.

        **Warning:** ``sql`` must already be safe; only ``values`` are bound.

        Outside a session transaction the statement is committed at once
        (and rolled back if the driver fails).
        """
        connection = self.get_connection()
        statement, params = adapt_placeholders(sql, values, self.dialect.paramstyle)
        self.debug(sql, list(values))
        logger.debug("Executing %s with %r", sql, values)

        try:
            result = await connection.exec_driver_sql(statement, params)
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings().all()]
                outcome = QueryResult(rows, len(rows), None)
            else:
                outcome = QueryResult([], result.rowcount, result.lastrowid)
        except Exception:
            if not self._session_transaction and connection.in_transaction():
                await connection.rollback()
            raise

        if not self._session_transaction:
            await connection.commit()
        return outcome

    async def begin(self) -> None:
        """Start an explicit transaction (``START TRANSACTION``)."""
        connection = self.get_connection()
        if self._session_transaction:
            raise OperationError("a transaction is already in progress")
        if connection.in_transaction():
            await connection.commit()
        await connection.begin()
        self._session_transaction = True
        logger.debug("Transaction started")

    async def commit(self) -> None:
        """Commit the explicit transaction (``COMMIT``)."""
        connection = self.get_connection()
        try:
            await connection.commit()
        finally:
            self._session_transaction = False
        logger.debug("Transaction committed")

    async def rollback(self) -> None:
        """Roll back the explicit transaction (``ROLLBACK``)."""
        connection = self.get_connection()
        try:
            await connection.rollback()
        finally:
            self._session_transaction = False
        logger.debug("Transaction rolled back")
