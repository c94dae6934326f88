"""
Table models.

A :class:`Model` binds a table name and its :class:`~sqlgoose.schema.Schema`
to a :class:`~sqlgoose.database.Database`, quotes its identifiers once, and
runs the document-style CRUD operations::

    order = db.model("order", {
        "nId": {"type": "int", "primary": True},
        "nCustomerId": {"type": "int",
                        "references": {"table": "customer", "column": "nId"}},
    })

    await order.find({"customer": {"zName": "Ada"}, "$limit": 10})

Filters and assignments are compiled before any statement reaches the
driver, so a malformed document never touches the connection.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, NamedTuple

from .assignment import build_assignment
from .compiler import compile_query
from .exceptions import OperationError, StructuralError
from .joins import plan_joins
from .keywords import FilterOperator
from .reconstruct import populated_alias, reconstruct
from .schema import Schema

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from .assignment import Assignment
    from .compiler import CompiledQuery
    from .database import Database
    from .joins import JoinPlan
    from .registry import TableRegistry
    from .schema import ColumnDefinition
    from .strategy import SqlOperatorRegistry

logger = logging.getLogger("sqlgoose.model")


class RemoveResult(NamedTuple):
    removed: int


class Model:
    def __init__(
        self,
        table_name: str,
        schema: Schema | Mapping[str, Mapping[str, Any] | ColumnDefinition],
        database: Database,
    ) -> None:
        self.table_name = table_name
        self.schema = schema if isinstance(schema, Schema) else Schema(schema)
        self.database = database
        self.quoted_table = database.quote_identifier(table_name)
        self._quoted_columns = {
            name: database.quote_identifier(name) for name in self.schema
        }
        database.registry.register(self)
        logger.debug("Declared model %s (%d columns)", table_name, len(self.schema))

    def __repr__(self) -> str:
        return f"Model({self.table_name!r})"

    @property
    def registry(self) -> TableRegistry:
        return self.database.registry

    # -- identifiers ---------------------------------------------------------

    def quoted_column(self, name: str) -> str:
        return self._quoted_columns[name]

    def qualified_column(self, name: str) -> str:
        """``"table"."column"``."""
        return f"{self.quoted_table}.{self._quoted_columns[name]}"

    # -- compilation ---------------------------------------------------------

    def compile(
        self,
        document: Mapping[str, Any] | None = None,
        *,
        operators: SqlOperatorRegistry | None = None,
    ) -> CompiledQuery:
        """Compile a filter document without executing anything."""
        return compile_query(self, document, self.registry, operators=operators)

    def build_assignment(
        self, document: Mapping[str, Any], include_primary_key: bool = False
    ) -> Assignment:
        return build_assignment(self, document, include_primary_key)

    def reconstruct(
        self, rows: Iterable[Mapping[str, Any]], plan: JoinPlan | None = None
    ) -> list[dict[str, Any]]:
        return reconstruct(rows, self, plan, self.registry)

    def _require_id_field(self) -> str:
        id_field = self.schema.id_field
        if id_field is None:
            raise OperationError(f"no primary key for {self.table_name}")
        return id_field

    def _select_sql(self, plan: JoinPlan | None) -> str:
        columns = [self.qualified_column(name) for name in self.schema]
        for table in plan.joined if plan is not None else ():
            related = self.registry[table]
            columns.extend(
                f"{related.qualified_column(name)} AS "
                f"{self.database.quote_identifier(populated_alias(table, name))}"
                for name in related.schema
            )
        joins = plan.text if plan is not None else ""
        return f"SELECT {', '.join(columns)} FROM {self.quoted_table}{joins}"

    # -- operations ----------------------------------------------------------

    async def create(self, document: Mapping[str, Any]) -> dict[str, Any] | None:
        """Insert ``document`` and return the stored row."""
        self.database.debug(self.table_name, "create", document)
        id_field = self._require_id_field()
        assignment = self.build_assignment(document, include_primary_key=True)

        result = await self.database.query(
            f"INSERT INTO {self.quoted_table} {assignment.insert_text}",
            assignment.values,
        )
        record_id = document.get(id_field)
        if record_id is None:
            record_id = result.last_insert_id
        if record_id is None or record_id == 0:
            raise OperationError("missing insert ID")

        logger.debug("Inserted %s %s=%r", self.table_name, id_field, record_id)
        return await self.find_by_id(record_id)

    async def find(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        populate: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        """
        Rows of this table matching ``filter``.

        Tables named in the filter (or its ``$orderby``) are joined and
        populated automatically; ``populate`` adds more.  Populated rows are
        nested under their table name inside the row that references them.
        """
        self.database.debug(self.table_name, "find", filter, list(populate))
        if isinstance(populate, str) or not isinstance(populate, list | tuple):
            raise StructuralError("populate must be a list of table names")

        query = self.compile(filter)
        requested = [
            name
            for name in dict.fromkeys([*query.populate, *populate])
            if name != self.table_name
        ]
        plan = plan_joins(self, requested, self.registry) if requested else None

        result = await self.database.query(self._select_sql(plan) + query.sql, query.values)
        logger.debug("find on %s returned %d rows", self.table_name, len(result.rows))
        return self.reconstruct(result.rows, plan)

    async def find_one(
        self,
        filter: Mapping[str, Any] | None = None,
        *,
        populate: Sequence[str] = (),
    ) -> dict[str, Any] | None:
        """First row matching ``filter``, or ``None``."""
        document = dict(filter or {})
        document[FilterOperator.LIMIT.value] = 1
        rows = await self.find(document, populate=populate)
        return rows[0] if rows else None

    async def find_by_id(
        self, record_id: Any, *, populate: Sequence[str] = ()
    ) -> dict[str, Any] | None:
        return await self.find_one(
            {self._require_id_field(): record_id}, populate=populate
        )

    async def find_by_id_and_update(
        self,
        record_id: Any,
        update: Mapping[str, Any],
        *,
        populate: Sequence[str] = (),
    ) -> dict[str, Any] | None:
        """
        Update one row by primary key and return it re-read.

        The primary key in ``update`` is ignored.  Anything other than exactly
        one affected row is an error.
        """
        self.database.debug(self.table_name, "findByIdAndUpdate", record_id, update)
        id_field = self._require_id_field()
        assignment = self.build_assignment(update)
        where = self.compile({id_field: record_id})

        result = await self.database.query(
            f"UPDATE {self.quoted_table} SET {assignment.set_text}{where.sql}",
            [*assignment.values, *where.values],
        )
        if result.affected_rows != 1:
            raise OperationError(f"{result.affected_rows} rows updated")
        return await self.find_by_id(record_id, populate=populate)

    async def find_by_id_and_remove(self, record_id: Any) -> dict[str, Any] | None:
        """Delete one row by primary key and return it as it was."""
        self.database.debug(self.table_name, "findByIdAndRemove", record_id)
        id_field = self._require_id_field()
        document = await self.find_by_id(record_id)

        # The key is unique, so no LIMIT is needed (and SQLite rejects it)
        result = await self.remove({id_field: record_id})
        if result.removed != 1:
            raise OperationError(f"{result.removed} rows deleted")
        return document

    async def remove(
        self, filter: Mapping[str, Any] | None = None, *, single: bool = False
    ) -> RemoveResult:
        """
        Delete rows of this table matching ``filter``.

        ``single`` adds ``$limit: 1`` unless the filter sets its own limit.
        Conditions on related tables are rejected, since ``DELETE`` has no
        portable join syntax.
        """
        self.database.debug(self.table_name, "remove", filter)
        document: dict[str, Any] = dict(filter or {})
        if single:
            document = {FilterOperator.LIMIT.value: 1, **document}

        query = self.compile(document)
        related = [name for name in query.populate if name != self.table_name]
        if related:
            raise StructuralError(
                f"remove cannot filter on related table {related[0]}"
            )

        result = await self.database.query(
            f"DELETE FROM {self.quoted_table}{query.sql}", query.values
        )
        logger.debug("Removed %d rows from %s", result.affected_rows, self.table_name)
        return RemoveResult(result.affected_rows)
