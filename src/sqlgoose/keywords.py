from enum import Enum


class FilterOperator(str, Enum):
    """Supported ``$``-prefixed keys of a filter document."""

    # Comparison (column context)
    EQ = "$eq"
    NE = "$ne"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    MOD = "$mod"

    # Null checks
    EXISTS = "$exists"

    # Pattern matching
    REGEX = "$regex"
    TEXT = "$text"

    # Logical operators
    AND = "$and"
    OR = "$or"
    NOT = "$not"

    # Result shaping (root-only)
    ORDERBY = "$orderby"
    LIMIT = "$limit"
    SKIP = "$skip"

    # Ignored
    COMMENT = "$comment"

    # Recognised but always rejected
    META = "$meta"
    QUERY = "$query"
