"""Null check operator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..clause import CompiledClause
from ..exceptions import StructuralError
from ..keywords import FilterOperator
from ..strategy import SqlOperator

if TYPE_CHECKING:
    from ..context import ColumnContext


class ExistsOperator(SqlOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EXISTS

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        if not isinstance(value, bool):
            raise StructuralError("$exists requires true or false", operator="$exists")
        if value:
            return CompiledClause.condition(f"{context.qualified} IS NOT NULL")
        return CompiledClause.condition(f"{context.qualified} IS NULL")
