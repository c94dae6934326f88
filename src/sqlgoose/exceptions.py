"""
sqlgoose exception hierarchy with fuzzy-match suggestions.

All exceptions inherit from ``SqlgooseError`` and provide ``to_dict()`` for
API-friendly error responses.  Every one of them is raised synchronously,
before any SQL reaches the driver.  Errors raised by the driver itself
(SQLAlchemy / DB-API) are *not* instances of these classes.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class SqlgooseError(Exception):
    """Base exception for all sqlgoose errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class UnsupportedOperatorError(SqlgooseError):
    """
    Unknown or disallowed ``$``-prefixed operator.

    Provides fuzzy-matched suggestions for likely intended operators when
    ``valid_operators`` is given.
    """

    def __init__(
        self,
        message: str,
        operator: str | None = None,
        valid_operators: list[str] | None = None,
    ) -> None:
        self.operator = operator
        self.valid_operators = valid_operators or []
        self.suggestions = (
            get_close_matches(operator, self.valid_operators, n=3, cutoff=0.6)
            if operator
            else []
        )
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_OPERATOR",
            "message": str(self),
            "operator": self.operator,
            "suggestions": self.suggestions,
        }


class StructuralError(SqlgooseError):
    """The filter document has the wrong shape for an operator."""

    def __init__(self, message: str, operator: str | None = None) -> None:
        self.message = message
        self.operator = operator
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "STRUCTURAL_ERROR",
            "message": self.message,
            "operator": self.operator,
        }


class ResolutionError(SqlgooseError):
    """
    A bare key names neither a column of the current table nor a known table.

    Uses fuzzy matching to suggest similar valid names::

        unknown column: zNmae
        Did you mean one of these?
          • zName
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        table: str | None = None,
        available: list[str] | None = None,
        cutoff: float = 0.6,
    ) -> None:
        self.key = key
        self.table = table
        self.available = available or []
        self.suggestions = (
            get_close_matches(key, self.available, n=5, cutoff=cutoff) if key else []
        )

        lines = [message]
        if self.suggestions:
            lines.append("Did you mean one of these?")
            for s in self.suggestions:
                lines.append(f"  • {s}")
        super().__init__("\n".join(lines))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "RESOLUTION_ERROR",
            "key": self.key,
            "table": self.table,
            "suggestions": self.suggestions,
            "available": sorted(self.available),
        }


class CastError(SqlgooseError):
    """A value is incompatible with the declared column type."""

    def __init__(self, column: str, message: str) -> None:
        self.column = column
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "CAST_ERROR",
            "message": str(self),
            "column": self.column,
        }


class CardinalityError(SqlgooseError):
    """``$limit``, ``$skip`` or ``$orderby`` used more than once, or ``$skip`` alone."""


class AssignmentError(SqlgooseError):
    """An insert/update payload references an unknown column or a nested object."""


class RegistrationError(SqlgooseError):
    """A table name was registered twice under the ``"error"`` policy."""


class OperationError(SqlgooseError):
    """A model operation could not be completed as requested."""


class ConnectionStateError(SqlgooseError):
    """The database is not connected (or no dialect is known yet)."""


__all__: list[str] = [
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
