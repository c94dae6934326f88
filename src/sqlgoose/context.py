"""Compile-time filter contexts: the table or column a sub-document targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .model import Model
    from .schema import ColumnDefinition


@dataclass(frozen=True)
class TableContext:
    """Bare keys resolve against ``model``'s columns (or the registry)."""

    model: Model

    @property
    def table_name(self) -> str:
        return self.model.table_name


@dataclass(frozen=True)
class ColumnContext:
    """Leaf operators apply to ``model.column``."""

    model: Model
    column: str

    @property
    def table_name(self) -> str:
        return self.model.table_name

    @property
    def definition(self) -> ColumnDefinition:
        return self.model.schema[self.column]

    @property
    def qualified(self) -> str:
        """Quoted ``table.column`` reference for SQL text."""
        return self.model.qualified_column(self.column)


FilterContext = Union[TableContext, ColumnContext]
