"""Standard comparison operators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..casting import cast_value
from ..clause import CompiledClause
from ..exceptions import StructuralError
from ..keywords import FilterOperator
from ..strategy import SqlOperator

if TYPE_CHECKING:
    from ..context import ColumnContext


def require_scalar(operator: FilterOperator, value: Any) -> None:
    if isinstance(value, dict | list | tuple | set):
        raise StructuralError(
            f"{operator.value} requires a scalar value", operator=operator.value
        )


class EqualOperator(SqlOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.EQ

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        require_scalar(self.name, value)
        if value is None:
            return CompiledClause.condition(f"{context.qualified} IS NULL")
        if isinstance(value, bool):
            return CompiledClause.condition(
                f"{context.qualified} IS {'TRUE' if value else 'FALSE'}"
            )
        return CompiledClause.condition(
            f"{context.qualified} = ?", cast_value(value, context.definition)
        )


class NotEqualOperator(SqlOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.NE

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        require_scalar(self.name, value)
        if value is None:
            return CompiledClause.condition(f"{context.qualified} IS NOT NULL")
        if isinstance(value, bool):
            return CompiledClause.condition(
                f"{context.qualified} IS NOT {'TRUE' if value else 'FALSE'}"
            )
        return CompiledClause.condition(
            f"{context.qualified} != ?", cast_value(value, context.definition)
        )


class _ComparisonOperator(SqlOperator):
    sql: str

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        require_scalar(self.name, value)
        return CompiledClause.condition(
            f"{context.qualified} {self.sql} ?", cast_value(value, context.definition)
        )


class GreaterThanOperator(_ComparisonOperator):
    sql = ">"

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GT


class GreaterEqualOperator(_ComparisonOperator):
    sql = ">="

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.GTE


class LessThanOperator(_ComparisonOperator):
    sql = "<"

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LT


class LessEqualOperator(_ComparisonOperator):
    sql = "<="

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.LTE
