"""
Column-type value casting.

Values are cast at the moment a comparison or assignment is compiled, never
later.  Each :class:`~sqlgoose.schema.ColumnKind` has one caster function;
``None`` always passes through unchanged.
"""

from __future__ import annotations

import datetime
from decimal import Decimal, InvalidOperation, localcontext
from typing import TYPE_CHECKING, Any

from .exceptions import CastError
from .schema import ColumnKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from .schema import ColumnDefinition


def _cast_string(value: Any, column: ColumnDefinition) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _cast_temporal(value: Any, column: ColumnDefinition) -> Any:
    # datetime.datetime is a subclass of datetime.date
    if not isinstance(value, datetime.date):
        raise CastError(column.name, f"{column.name} must be a date or datetime")
    return value


def _to_decimal(value: Any, column: ColumnDefinition) -> Decimal:
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, bool | int | float | str):
        try:
            number = Decimal(str(int(value)) if isinstance(value, bool) else str(value).strip())
        except InvalidOperation as exc:
            raise CastError(column.name, f"{column.name} must be numeric") from exc
    else:
        raise CastError(column.name, f"{column.name} must be numeric")

    if not number.is_finite():
        raise CastError(column.name, f"{column.name} must be numeric")
    return number


def _out_of_range(column: ColumnDefinition) -> CastError:
    bounds = (
        f"({column.precision},{column.scale})" if column.precision is not None else ""
    )
    return CastError(column.name, f"{column.name} out of range for decimal{bounds}")


def _cast_decimal(value: Any, column: ColumnDefinition) -> str:
    number = _to_decimal(value, column)
    if column.scale is None:
        return format(number, "f")

    integer_digits = (
        column.precision - column.scale if column.precision is not None else None
    )
    if integer_digits is not None and number and number.adjusted() + 1 > integer_digits:
        raise _out_of_range(column)

    with localcontext() as ctx:
        # Room for every integer digit plus the scale
        ctx.prec = max(ctx.prec, number.adjusted() + column.scale + 2)
        try:
            text = format(number.quantize(Decimal(1).scaleb(-column.scale)), "f")
        except InvalidOperation as exc:
            raise _out_of_range(column) from exc

    # Rounding can carry into a new integer digit (9999.995 -> 10000.00)
    if integer_digits is not None:
        digits = text.lstrip("-").split(".")[0].lstrip("0")
        if len(digits) > integer_digits:
            raise _out_of_range(column)
    return text


def _cast_other(value: Any, column: ColumnDefinition) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    return value


CASTERS: dict[ColumnKind, Callable[[Any, ColumnDefinition], Any]] = {
    ColumnKind.STRING: _cast_string,
    ColumnKind.TEMPORAL: _cast_temporal,
    ColumnKind.DECIMAL: _cast_decimal,
    ColumnKind.OTHER: _cast_other,
}


def cast_value(value: Any, column: ColumnDefinition) -> Any:
    """Cast *value* into a bind-safe value for *column*."""
    if value is None:
        return None
    return CASTERS[column.kind](value, column)


def parse_decimal(value: Any) -> float | None:
    """Parse a decimal column value read back from the driver."""
    if value is None:
        return None
    return float(value)
