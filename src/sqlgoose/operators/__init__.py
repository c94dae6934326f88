"""
Leaf-operator implementations and default registry.

Usage::

    from sqlgoose.operators import DEFAULT_OPERATORS

    clause = DEFAULT_OPERATORS.apply("$eq", column_context, value)
"""

from __future__ import annotations

from ..strategy import SqlOperatorRegistry
from .null import ExistsOperator
from .set import InOperator, ModOperator, NotInOperator
from .standard import (
    EqualOperator,
    GreaterEqualOperator,
    GreaterThanOperator,
    LessEqualOperator,
    LessThanOperator,
    NotEqualOperator,
)
from .string import RegexOperator, TextOperator, compile_regex


def build_default_registry() -> SqlOperatorRegistry:
    """Create a registry with all built-in leaf operators."""
    registry = SqlOperatorRegistry()
    registry.register_all(
        # Standard comparison
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        GreaterEqualOperator(),
        LessThanOperator(),
        LessEqualOperator(),
        # Set
        InOperator(),
        NotInOperator(),
        ModOperator(),
        # Null
        ExistsOperator(),
        # String
        RegexOperator(),
        TextOperator(),
    )
    return registry


DEFAULT_OPERATORS: SqlOperatorRegistry = build_default_registry()

__all__ = [
    "DEFAULT_OPERATORS",
    "build_default_registry",
    "compile_regex",
    "SqlOperatorRegistry",
]
