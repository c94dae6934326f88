"""
Leaf-operator compilation strategy.

Each column-context operator (``$eq``, ``$in``, ``$regex``, ...) is an
isolated class in ``operators/`` registered in a ``SqlOperatorRegistry``.
Logical operators and result-shaping directives recurse, so the compiler
handles those itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .exceptions import UnsupportedOperatorError

if TYPE_CHECKING:
    from .clause import CompiledClause
    from .context import ColumnContext
    from .keywords import FilterOperator


class SqlOperator(ABC):
    """
    Strategy interface for compiling a leaf operator into a
    :class:`~sqlgoose.clause.CompiledClause`.
    """

    @property
    @abstractmethod
    def name(self) -> FilterOperator:
        """The operator this strategy handles."""
        ...

    @abstractmethod
    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        """
        Build the WHERE fragment for ``context``'s column.

        Args:
            context: The column being compared.
            value: The operand from the filter document.

        Returns:
            A clause with one condition and its bind values.
        """
        ...


class SqlOperatorRegistry:
    """
    Registry of ``SqlOperator`` instances keyed by :class:`FilterOperator`.
    """

    def __init__(self) -> None:
        self._operators: dict[FilterOperator, SqlOperator] = {}

    def register(self, operator: SqlOperator) -> None:
        self._operators[operator.name] = operator

    def register_all(self, *operators: SqlOperator) -> None:
        for op in operators:
            self.register(op)

    def unregister(self, name: FilterOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: str) -> SqlOperator | None:
        # FilterOperator is a str enum, so plain "$eq" keys hash the same
        return self._operators.get(name)  # type: ignore[call-overload]

    def has(self, name: str) -> bool:
        return name in self._operators

    @property
    def supported_operators(self) -> set[FilterOperator]:
        return set(self._operators.keys())

    def apply(self, name: str, context: ColumnContext, value: Any) -> CompiledClause:
        """
        Look up the operator and apply.

        Raises:
            UnsupportedOperatorError: If the operator is not registered.
        """
        op = self.get(name)
        if op is None:
            raise UnsupportedOperatorError(
                f"{name} is not supported",
                operator=name,
                valid_operators=sorted(o.value for o in self.supported_operators),
            )
        return op.apply(context, value)
