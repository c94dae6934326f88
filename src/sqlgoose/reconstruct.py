"""
Reassemble flat result rows into nested objects.

Columns of the driving table come back under their own names; columns of a
populated table are aliased ``table>column``.  Each row is split into one
object per table, every populated object is attached to the table that
joined it, and the driving table's object is returned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .casting import parse_decimal
from .schema import ColumnKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .joins import JoinPlan
    from .model import Model
    from .registry import TableRegistry

TABLE_SEPARATOR = ">"


def populated_alias(table: str, column: str) -> str:
    return f"{table}{TABLE_SEPARATOR}{column}"


def reconstruct(
    rows: Iterable[Mapping[str, Any]],
    root: Model,
    plan: JoinPlan | None,
    registry: TableRegistry,
) -> list[dict[str, Any]]:
    """
    Un-flatten ``rows`` selected from ``root`` with ``plan``'s joins.

    Decimal columns are parsed back to numbers; the fixed-point string used
    for binding is not the return representation.
    """
    links = plan.links if plan is not None else {}
    results: list[dict[str, Any]] = []

    for row in rows:
        objects: dict[str, dict[str, Any]] = {}
        for key, value in row.items():
            table, _, column = key.rpartition(TABLE_SEPARATOR)
            table = table or root.table_name
            model = root if table == root.table_name else registry[table]

            definition = model.schema.get(column)
            if definition is not None and definition.kind is ColumnKind.DECIMAL:
                value = parse_decimal(value)
            objects.setdefault(table, {})[column] = value

        for container, contained in links.items():
            for name in contained:
                objects.setdefault(container, {})[name] = objects.get(name)

        results.append(objects.get(root.table_name, {}))

    return results
