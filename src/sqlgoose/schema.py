"""
Column definitions and table schemas.

A :class:`Schema` is declared from a plain dictionary, one entry per column::

    Schema({
        "nId": {"type": "int", "primary": True},
        "zName": {"type": "varchar"},
        "nCustomerId": {
            "type": "int",
            "references": {"table": "customer", "column": "nId"},
        },
        "nPrice": {"type": "decimal", "precision": 6, "scale": 2},
    })

Column definitions are immutable once the schema is built.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from collections.abc import Callable


class ColumnKind(str, Enum):
    """Families of SQL types that share a casting rule."""

    STRING = "string"
    TEMPORAL = "temporal"
    DECIMAL = "decimal"
    OTHER = "other"


_KIND_BY_TYPE: dict[str, ColumnKind] = {
    "char": ColumnKind.STRING,
    "varchar": ColumnKind.STRING,
    "text": ColumnKind.STRING,
    "datetime": ColumnKind.TEMPORAL,
    "timestamp": ColumnKind.TEMPORAL,
    "decimal": ColumnKind.DECIMAL,
}


class ColumnReference(BaseModel):
    """Foreign-key target of a column."""

    model_config = ConfigDict(frozen=True)

    table: str
    column: str


class ColumnDefinition(BaseModel):
    """Metadata for a single column."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    sql_type: str = Field(alias="type")
    primary_key: bool = Field(default=False, alias="primary")
    precision: int | None = None
    scale: int | None = None
    references: ColumnReference | None = None

    @field_validator("sql_type")
    @classmethod
    def _lower_type(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def kind(self) -> ColumnKind:
        return _KIND_BY_TYPE.get(self.sql_type, ColumnKind.OTHER)


class Schema(Mapping[str, ColumnDefinition]):
    """Ordered mapping of column name to :class:`ColumnDefinition`."""

    def __init__(self, columns: Mapping[str, Mapping[str, Any] | ColumnDefinition]) -> None:
        defs: dict[str, ColumnDefinition] = {}
        for name, declaration in columns.items():
            if isinstance(declaration, ColumnDefinition):
                defs[name] = declaration.model_copy(update={"name": name})
            else:
                defs[name] = ColumnDefinition.model_validate({**declaration, "name": name})
        self._columns = defs

        primary = [name for name, col in defs.items() if col.primary_key]
        self.id_field: str | None = primary[0] if len(primary) == 1 else None

    def __getitem__(self, name: str) -> ColumnDefinition:
        return self._columns[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __repr__(self) -> str:
        return f"Schema({list(self._columns)!r})"

    def each_path(self, fn: Callable[[str, ColumnDefinition], Any]) -> None:
        """Call ``fn(name, definition)`` for every column, in declaration order."""
        for name, col in self._columns.items():
            fn(name, col)

    def references_to(self, table: str) -> list[ColumnDefinition]:
        """Columns holding a foreign key into *table*."""
        return [
            col
            for col in self._columns.values()
            if col.references is not None and col.references.table == table
        ]
