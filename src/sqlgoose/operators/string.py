"""Pattern-matching operators (``$regex``, ``$text``)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from ..clause import CompiledClause
from ..exceptions import StructuralError, UnsupportedOperatorError
from ..keywords import FilterOperator
from ..strategy import SqlOperator

if TYPE_CHECKING:
    from ..context import ColumnContext

_COLLATION_RE = re.compile(r"^[A-Za-z0-9_]+$")


def compile_regex(
    context: ColumnContext, pattern: Any, *, negate: bool = False
) -> CompiledClause:
    """``col [NOT] REGEXP ?`` with the pattern bound as a string."""
    if isinstance(pattern, re.Pattern):
        raise UnsupportedOperatorError(
            "specify $regex value as a string (without delimiters)",
            operator="$regex",
        )
    if not isinstance(pattern, str):
        raise StructuralError("$regex requires a string pattern", operator="$regex")
    keyword = "NOT REGEXP" if negate else "REGEXP"
    return CompiledClause.condition(f"{context.qualified} {keyword} ?", pattern)


class RegexOperator(SqlOperator):
    @property
    def name(self) -> FilterOperator:
        return FilterOperator.REGEX

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        return compile_regex(context, value)


class TextOperator(SqlOperator):
    """
    ``$text`` search mapped onto ``LIKE``.

    ``$language`` names a collation; case and diacritic sensitivity are
    properties of the collation, so the dedicated flags are refused.
    """

    @property
    def name(self) -> FilterOperator:
        return FilterOperator.TEXT

    def apply(self, context: ColumnContext, value: Any) -> CompiledClause:
        if not isinstance(value, dict) or "$search" not in value:
            raise StructuralError("$text requires $search", operator="$text")
        for flag in ("$caseSensitive", "$diacriticSensitive"):
            if flag in value:
                raise UnsupportedOperatorError(
                    f"use $language instead of {flag}", operator=flag
                )

        text = f"{context.qualified} LIKE ?"
        if "$language" in value:
            collation = value["$language"]
            if not isinstance(collation, str) or not _COLLATION_RE.match(collation):
                raise StructuralError(
                    "$language must be a collation name", operator="$text"
                )
            text += f" COLLATE {collation}"
        return CompiledClause.condition(text, str(value["$search"]))
