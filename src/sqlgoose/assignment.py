"""INSERT / UPDATE payload compilation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .casting import cast_value
from .exceptions import AssignmentError

if TYPE_CHECKING:
    from .model import Model


@dataclass(frozen=True)
class Assignment:
    """Quoted target columns and their cast bind values, in document order."""

    columns: tuple[str, ...]
    values: tuple[Any, ...]

    @property
    def set_text(self) -> str:
        """``"a" = ?, "b" = ?`` for ``UPDATE ... SET``."""
        return ", ".join(f"{column} = ?" for column in self.columns)

    @property
    def insert_text(self) -> str:
        """``("a", "b") VALUES (?, ?)`` for ``INSERT INTO``."""
        placeholders = ", ".join("?" for _ in self.columns)
        return f"({', '.join(self.columns)}) VALUES ({placeholders})"


def build_assignment(
    model: Model, document: Mapping[str, Any], include_primary_key: bool = False
) -> Assignment:
    """
    Compile ``document`` into column assignments for ``model``.

    The primary key is skipped unless ``include_primary_key`` is set.
    Writes into related tables are not supported.

    Raises:
        AssignmentError: On unknown columns, nested values, or an empty payload.
    """
    if not isinstance(document, Mapping):
        raise AssignmentError("document must be a mapping")

    columns: list[str] = []
    values: list[Any] = []
    id_ignored = False

    for key, value in document.items():
        if key not in model.schema:
            if isinstance(value, Mapping):
                raise AssignmentError("nested table update not supported")
            raise AssignmentError(f'unknown column "{key}"')
        if isinstance(value, Mapping | list | tuple | set):
            raise AssignmentError(f'nested value for column "{key}" not supported')
        if key == model.schema.id_field and not include_primary_key:
            id_ignored = True
            continue
        columns.append(model.quoted_column(key))
        values.append(cast_value(value, model.schema[key]))

    if not columns:
        raise AssignmentError(
            "no update specified" + (" (IDs are ignored)" if id_ignored else "")
        )
    return Assignment(tuple(columns), tuple(values))
