"""sqlgoose: document-style filters and CRUD over SQL tables.

Filter documents (``{"nAge": {"$gte": 18}, "$limit": 10}``) compile to
parameterised SQL; related tables named in a filter are joined and nested
into the results.
"""

from __future__ import annotations

from .assignment import Assignment, build_assignment
from .casting import cast_value, parse_decimal
from .clause import CompiledClause
from .compiler import CompiledQuery, compile_filter, compile_query
from .database import Database, DatabaseOptions, QueryResult, adapt_placeholders
from .exceptions import (
    AssignmentError,
    CardinalityError,
    CastError,
    ConnectionStateError,
    OperationError,
    RegistrationError,
    ResolutionError,
    SqlgooseError,
    StructuralError,
    UnsupportedOperatorError,
)
from .joins import JoinPlan, plan_joins, resolve_joins
from .keywords import FilterOperator
from .model import Model, RemoveResult
from .operators import DEFAULT_OPERATORS, build_default_registry
from .reconstruct import TABLE_SEPARATOR, reconstruct
from .registry import TableRegistry
from .schema import ColumnDefinition, ColumnKind, ColumnReference, Schema
from .session import Session
from .strategy import SqlOperator, SqlOperatorRegistry

__all__ = [
    # Entry points
    "Database",
    "DatabaseOptions",
    "Model",
    "QueryResult",
    "RemoveResult",
    "Session",
    "adapt_placeholders",
    # Schema
    "ColumnDefinition",
    "ColumnKind",
    "ColumnReference",
    "Schema",
    "TableRegistry",
    # Compilation
    "Assignment",
    "CompiledClause",
    "CompiledQuery",
    "DEFAULT_OPERATORS",
    "FilterOperator",
    "JoinPlan",
    "SqlOperator",
    "SqlOperatorRegistry",
    "TABLE_SEPARATOR",
    "build_assignment",
    "build_default_registry",
    "cast_value",
    "compile_filter",
    "compile_query",
    "parse_decimal",
    "plan_joins",
    "reconstruct",
    "resolve_joins",
    # Errors
    "AssignmentError",
    "CardinalityError",
    "CastError",
    "ConnectionStateError",
    "OperationError",
    "RegistrationError",
    "ResolutionError",
    "SqlgooseError",
    "StructuralError",
    "UnsupportedOperatorError",
]
