"""Set membership and modulo operators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..casting import cast_value
from ..clause import CompiledClause
from ..exceptions import StructuralError
from ..keywords import FilterOperator
from ..strategy import SqlOperator

if TYPE_CHECKING:
    from ..context import ColumnContext


class _MembershipOperator(SqlOperator):
    sql: str

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        if not isinstance(value, list | tuple) or not value:
            raise StructuralError(
                f"{self.name.value} requires [ value, ... ]", operator=self.name.value
            )
        placeholders = ", ".join("?" for _ in value)
        return CompiledClause.condition(
            f"{context.qualified} {self.sql} ( {placeholders} )",
            *(cast_value(v, context.definition) for v in value),
        )


class InOperator(_MembershipOperator):
    sql = "IN"

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.IN


class NotInOperator(_MembershipOperator):
    sql = "NOT IN"

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NIN


class ModOperator(SqlOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.MOD

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        if not isinstance(value, list | tuple) or len(value) != 2:
            raise StructuralError(
                "$mod requires [ divisor, remainder ]", operator=self.name.value
            )
        divisor, remainder = value
        return CompiledClause.condition(
            f"{context.qualified} % ? = ?",
            cast_value(divisor, context.definition),
            cast_value(remainder, context.definition),
        )
