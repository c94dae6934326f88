"""
Join resolution for populated tables.

Only forward foreign keys are followed: a table can be populated when the
root (or an already-joined table) has a column referencing it.  Every table
is joined at most once per query, whichever path reaches it first.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, NamedTuple, cast

from .exceptions import ResolutionError

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from .model import Model
    from .registry import TableRegistry
    from .schema import ColumnReference


class JoinPlan(NamedTuple):
    """
    Joins for one query.

    Attributes:
        text: `` LEFT JOIN ...`` clauses, in a valid order.
        joined: Joined table names, in join order.
        links: Container table → tables it joined (drives result nesting).
    """

    text: str
    joined: list[str]
    links: dict[str, list[str]]


def resolve_joins(
    model: Model,
    requested: Iterable[str],
    already_joined: Collection[str],
    registry: TableRegistry,
) -> tuple[str, list[str]]:
    """
    Join ``model`` to every requested table it references directly.

    Tables in ``already_joined`` are skipped.  When several columns
    reference the same table, the first one declared is used.

    Returns:
        The join clause text and the names of the tables it joins.
    """
    text = ""
    joined: list[str] = []

    for table in requested:
        if table in already_joined or table in joined:
            continue
        references = model.schema.references_to(table)
        if not references:
            continue

        target = registry.get(table)
        if target is None:
            raise ResolutionError(
                f"unknown table: {table}", key=table, available=registry.table_names
            )
        column = references[0]
        reference = cast("ColumnReference", column.references)
        if reference.column not in target.schema:
            raise ResolutionError(
                f"{model.table_name}.{column.name} references unknown column "
                f"{table}.{reference.column}",
                key=reference.column,
                table=table,
                available=list(target.schema),
            )

        text += (
            f" LEFT JOIN {target.quoted_table} ON "
            f"{model.qualified_column(column.name)} = "
            f"{target.qualified_column(reference.column)}"
        )
        joined.append(table)

    return text, joined


def plan_joins(
    root: Model, requested: Iterable[str], registry: TableRegistry
) -> JoinPlan:
    """
    Plan the joins needed to populate ``requested`` from ``root``.

    Walks outward breadth-first, so a table referenced only by another
    populated table is joined after it regardless of request order.

    Raises:
        ResolutionError: If a requested table is unknown or unreachable.
    """
    wanted = [name for name in dict.fromkeys(requested) if name != root.table_name]
    for name in wanted:
        if name not in registry:
            raise ResolutionError(
                f"unknown table: {name}", key=name, available=registry.table_names
            )

    text = ""
    joined: list[str] = []
    links: dict[str, list[str]] = {}
    reached = {root.table_name}
    queue: deque[Model] = deque([root])

    while queue:
        pending = [name for name in wanted if name not in reached]
        if not pending:
            break
        container = queue.popleft()
        clause, contained = resolve_joins(container, pending, reached, registry)
        text += clause
        links[container.table_name] = contained
        for name in contained:
            reached.add(name)
            joined.append(name)
            queue.append(registry[name])

    unreachable = [name for name in wanted if name not in reached]
    if unreachable:
        raise ResolutionError(
            f"cannot populate {unreachable[0]}: "
            f"no foreign key path from {root.table_name}",
            key=unreachable[0],
            table=root.table_name,
        )

    return JoinPlan(text, joined, links)
