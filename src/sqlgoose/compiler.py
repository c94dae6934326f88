"""
Compile a filter document into SQL clauses.

Uses the strategy pattern: each leaf operator is an isolated class in
``operators/``, registered in a ``SqlOperatorRegistry``.  ``compile_filter``
walks the document and delegates leaf compilation to the registry; logical
operators (``$and``, ``$or``, ``$not``), related-table keys and the
result-shaping directives (``$orderby``, ``$limit``, ``$skip``) recurse here.

Every sub-document compiles to its own immutable
:class:`~sqlgoose.clause.CompiledClause`; siblings are merged left to right.

Related tables
--------------
A bare key that names a registered table switches the context to that table
and marks it for population, so the caller joins it in.  ``$orderby`` keys
follow the same rule.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from .clause import EMPTY_CLAUSE, CompiledClause
from .context import ColumnContext, TableContext
from .exceptions import ResolutionError, StructuralError, UnsupportedOperatorError
from .keywords import FilterOperator
from .operators import DEFAULT_OPERATORS, compile_regex

if TYPE_CHECKING:
    from .context import FilterContext
    from .model import Model
    from .registry import TableRegistry
    from .strategy import SqlOperatorRegistry


class CompiledQuery(NamedTuple):
    """Root-level compilation result handed to statement builders."""

    sql: str
    values: list[Any]
    populate: list[str]


_REJECTED: dict[str, str] = {
    FilterOperator.META.value: "$meta not supported because $text uses LIKE",
    FilterOperator.QUERY.value: "specify a query without $query",
}

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compile_filter(
    context: FilterContext,
    document: Mapping[str, Any],
    registry: TableRegistry,
    *,
    operators: SqlOperatorRegistry | None = None,
) -> CompiledClause:
    """
    Compile a filter (sub-)document in ``context``.

    Args:
        context: Table or column the document is interpreted against.
        document: The filter document.
        registry: Tables that bare keys may name.
        operators: Optional custom leaf-operator registry.  Falls back to
            ``DEFAULT_OPERATORS``.

    Returns:
        The merged clause for every key of ``document``.
    """
    if not isinstance(document, Mapping):
        raise StructuralError(
            f"filter must be a document, found {type(document).__name__}"
        )
    ops = operators or DEFAULT_OPERATORS

    clause = EMPTY_CLAUSE
    for key, value in document.items():
        clause = clause.merge(_compile_entry(context, key, value, registry, ops))
    return clause


def compile_query(
    model: Model,
    document: Mapping[str, Any] | None,
    registry: TableRegistry,
    *,
    operators: SqlOperatorRegistry | None = None,
) -> CompiledQuery:
    """Compile ``document`` against ``model`` and render the clause text."""
    clause = compile_filter(
        TableContext(model), document or {}, registry, operators=operators
    )
    return CompiledQuery(clause.render(), list(clause.values), list(clause.populate))


# ---------------------------------------------------------------------------
# Internal compilation
# ---------------------------------------------------------------------------


def _compile_entry(
    context: FilterContext,
    key: str,
    value: Any,
    registry: TableRegistry,
    ops: SqlOperatorRegistry,
) -> CompiledClause:
    if not key.startswith("$"):
        return _compile_key(context, key, value, registry, ops)

    if key in (FilterOperator.AND, FilterOperator.OR):
        return _compile_junction(context, key, value, registry, ops)
    if key == FilterOperator.NOT:
        return _compile_not(context, value, registry, ops)
    if key == FilterOperator.ORDERBY:
        return _compile_orderby(context, value, registry)
    if key in (FilterOperator.LIMIT, FilterOperator.SKIP):
        return _compile_limit_skip(key, value)
    if key == FilterOperator.COMMENT:
        return EMPTY_CLAUSE
    if key in _REJECTED:
        raise UnsupportedOperatorError(_REJECTED[key], operator=key)

    if ops.has(key):
        if not isinstance(context, ColumnContext):
            raise StructuralError(f"{key} must be applied to a column", operator=key)
        return ops.apply(key, context, value)

    raise UnsupportedOperatorError(
        f"{key} is not supported",
        operator=key,
        valid_operators=[op.value for op in FilterOperator if op.value not in _REJECTED],
    )


def _compile_key(
    context: FilterContext,
    key: str,
    value: Any,
    registry: TableRegistry,
    ops: SqlOperatorRegistry,
) -> CompiledClause:
    """Resolve a bare key to a column of the current table or a related table."""
    model = context.model

    if isinstance(context, TableContext) and key in model.schema:
        column = ColumnContext(model, key)
        if isinstance(value, Mapping):
            return compile_filter(column, value, registry, operators=ops)
        if isinstance(value, list | tuple | set):
            raise StructuralError(f"use $in to match {key} against a list of values")
        return ops.apply(FilterOperator.EQ.value, column, value)

    related = registry.get(key)
    if related is not None:
        if not isinstance(value, Mapping):
            raise StructuralError(f"related table {key} requires a sub-document")
        sub = compile_filter(TableContext(related), value, registry, operators=ops)
        return CompiledClause(populate=(related.table_name,)).merge(sub)

    raise ResolutionError(
        f"unknown column: {key}",
        key=key,
        table=model.table_name,
        available=[*model.schema, *registry.table_names],
    )


def _compile_junction(
    context: FilterContext,
    key: str,
    value: Any,
    registry: TableRegistry,
    ops: SqlOperatorRegistry,
) -> CompiledClause:
    """``$and`` / ``$or`` over two or more sub-documents."""
    if not isinstance(value, list | tuple):
        raise StructuralError(f"{key} must be an array", operator=key)
    if len(value) < 2:
        raise StructuralError(f"{key} array must have 2+ members", operator=key)

    parts: list[str] = []
    values: list[Any] = []
    populate = EMPTY_CLAUSE
    for n, member in enumerate(value):
        if not isinstance(member, Mapping):
            raise StructuralError(
                f"{key} array member #{n} must be an object", operator=key
            )
        sub = compile_filter(context, member, registry, operators=ops)
        sub.assert_no_directives(key)
        if sub.is_empty:
            raise StructuralError(
                f"{key} array member #{n} must contain a condition", operator=key
            )
        parts.append(f"( {sub.where_text} )")
        values.extend(sub.values)
        populate = populate.with_populate(*sub.populate)

    glue = " AND " if key == FilterOperator.AND else " OR "
    return CompiledClause(
        conditions=(f"( {glue.join(parts)} )",),
        values=tuple(values),
        populate=populate.populate,
    )


def _compile_not(
    context: FilterContext,
    value: Any,
    registry: TableRegistry,
    ops: SqlOperatorRegistry,
) -> CompiledClause:
    # A string operand is always taken as a pattern to negate
    if isinstance(value, str | re.Pattern):
        if not isinstance(context, ColumnContext):
            raise StructuralError("$not must be applied to a column", operator="$not")
        return compile_regex(context, value, negate=True)

    if not isinstance(value, Mapping):
        raise StructuralError(
            "use $ne instead of $not to test values", operator="$not"
        )

    sub = compile_filter(context, value, registry, operators=ops)
    sub.assert_no_directives("$not")
    if sub.is_empty:
        raise StructuralError("$not must contain a condition", operator="$not")
    return CompiledClause(
        conditions=(f"NOT ( {sub.where_text} )",),
        values=sub.values,
        populate=sub.populate,
    )


def _compile_limit_skip(key: str, value: Any) -> CompiledClause:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise StructuralError(f"{key} requires a number", operator=key)
    if not math.isfinite(value):
        raise StructuralError(f"{key} requires a finite number", operator=key)
    count = math.floor(value)
    if count < 0:
        raise StructuralError(f"{key} must not be negative", operator=key)
    if key == FilterOperator.LIMIT:
        return CompiledClause(limit=count)
    return CompiledClause(skip=count)


def _compile_orderby(
    context: FilterContext, value: Any, registry: TableRegistry
) -> CompiledClause:
    if not isinstance(value, Mapping):
        raise StructuralError("$orderby must be a hash object", operator="$orderby")
    if not isinstance(context, TableContext):
        raise StructuralError(
            "$orderby must be applied to a table", operator="$orderby"
        )
    terms, populate = _order_terms(context.model, value, registry)
    return CompiledClause(order_by=tuple(terms), populate=tuple(populate))


def _order_terms(
    model: Model, orders: Mapping[str, Any], registry: TableRegistry
) -> tuple[list[str], list[str]]:
    """``ORDER BY`` terms for ``orders`` plus the related tables they touch."""
    terms: list[str] = []
    populate: list[str] = []

    for key, direction in orders.items():
        if key in model.schema:
            if isinstance(direction, bool) or not isinstance(direction, int):
                raise StructuralError(
                    f"$orderby expected integer direction, found {direction!r}",
                    operator="$orderby",
                )
            term = model.qualified_column(key)
            terms.append(f"{term} DESC" if direction < 0 else term)
            continue

        related = registry.get(key)
        if related is None:
            raise ResolutionError(
                f"$orderby field {key} not found",
                key=key,
                table=model.table_name,
                available=[*model.schema, *registry.table_names],
            )
        if not isinstance(direction, Mapping):
            raise StructuralError(
                f"$orderby on table {key} requires a sub-document",
                operator="$orderby",
            )
        sub_terms, sub_populate = _order_terms(related, direction, registry)
        terms.extend(sub_terms)
        for name in (related.table_name, *sub_populate):
            if name not in populate:
                populate.append(name)

    return terms, populate
