"""
Immutable compiled clause.

A :class:`CompiledClause` is what one pass of the compiler produces for one
(sub-)document.  Sub-clauses are combined with :meth:`CompiledClause.merge`,
which is where the at-most-once rule for ``$limit``, ``$skip`` and
``$orderby`` is enforced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .exceptions import CardinalityError, StructuralError

_DIRECTIVES = ("limit", "skip", "order_by")
_DIRECTIVE_NAMES = {"limit": "$limit", "skip": "$skip", "order_by": "$orderby"}


def _union(left: tuple[str, ...], right: tuple[str, ...]) -> tuple[str, ...]:
    return left + tuple(name for name in right if name not in left)


@dataclass(frozen=True)
class CompiledClause:
    """
    Result of compiling a filter (sub-)document.

    Attributes:
        conditions: WHERE fragments, glued with ``AND`` when rendered.
        values: Positional bind values, in placeholder order.
        order_by: ``ORDER BY`` terms, or ``None`` if no ``$orderby`` was seen.
        limit: Row limit from ``$limit``.
        skip: Row offset from ``$skip``.
        populate: Related tables to join, in first-seen order.
    """

    conditions: tuple[str, ...] = ()
    values: tuple[Any, ...] = ()
    order_by: tuple[str, ...] | None = None
    limit: int | None = None
    skip: int | None = None
    populate: tuple[str, ...] = ()

    @classmethod
    def condition(cls, text: str, *values: Any) -> CompiledClause:
        """A clause holding a single WHERE fragment."""
        return cls(conditions=(text,), values=values)

    @property
    def where_text(self) -> str:
        return " AND ".join(self.conditions)

    @property
    def is_empty(self) -> bool:
        return not self.conditions

    def merge(self, other: CompiledClause) -> CompiledClause:
        """
        Combine two clauses (conditions ANDed, populate sets unioned).

        Raises:
            CardinalityError: If both sides carry the same directive.
        """
        for attr in _DIRECTIVES:
            if getattr(self, attr) is not None and getattr(other, attr) is not None:
                raise CardinalityError(
                    f"{_DIRECTIVE_NAMES[attr]} can only appear once"
                )

        return CompiledClause(
            conditions=self.conditions + other.conditions,
            values=self.values + other.values,
            order_by=self.order_by if other.order_by is None else other.order_by,
            limit=self.limit if other.limit is None else other.limit,
            skip=self.skip if other.skip is None else other.skip,
            populate=_union(self.populate, other.populate),
        )

    def with_populate(self, *tables: str) -> CompiledClause:
        return CompiledClause(
            conditions=self.conditions,
            values=self.values,
            order_by=self.order_by,
            limit=self.limit,
            skip=self.skip,
            populate=_union(self.populate, tables),
        )

    def assert_no_directives(self, operator: str) -> None:
        """Root-only directives are not allowed under *operator*."""
        for attr in _DIRECTIVES:
            if getattr(self, attr) is not None:
                raise StructuralError(
                    f"{operator} cannot contain {_DIRECTIVE_NAMES[attr]}",
                    operator=operator,
                )

    def render(self) -> str:
        """
        Serialise to `` WHERE ... ORDER BY ... LIMIT ... OFFSET ...``.

        Limit and offset are integers (already floored) and are inlined.

        Raises:
            CardinalityError: If ``$skip`` was given without ``$limit``.
        """
        if self.skip is not None and self.limit is None:
            raise CardinalityError("cannot use $skip without $limit")

        text = ""
        if self.conditions:
            text += " WHERE " + self.where_text
        if self.order_by:
            text += " ORDER BY " + ", ".join(self.order_by)
        if self.limit is not None:
            text += f" LIMIT {self.limit}"
            if self.skip is not None:
                text += f" OFFSET {self.skip}"
        return text


EMPTY_CLAUSE = CompiledClause()
