from __future__ import annotations

import re

import pytest

from sqlgoose import (
    CardinalityError,
    CastError,
    ResolutionError,
    StructuralError,
    UnsupportedOperatorError,
    build_default_registry,
)
from sqlgoose.keywords import FilterOperator

# ---------------------------------------------------------------------------
# Bare keys and comparison operators
# ---------------------------------------------------------------------------


def test_empty_filter_compiles_to_nothing(customer):
    query = customer.compile({})
    assert query.sql == ""
    assert query.values == []
    assert query.populate == []


def test_bare_column_is_equality(customer):
    query = customer.compile({"zName": "Ada"})
    assert query.sql == ' WHERE "customer"."zName" = ?'
    assert query.values == ["Ada"]


def test_bare_none_and_bool(customer):
    assert customer.compile({"zName": None}).sql == ' WHERE "customer"."zName" IS NULL'
    query = customer.compile({"bActive": True})
    assert query.sql == ' WHERE "customer"."bActive" IS TRUE'
    assert query.values == []


def test_sibling_operators_are_anded(customer):
    query = customer.compile({"nId": {"$gt": 1, "$lte": 5}})
    assert query.sql == ' WHERE "customer"."nId" > ? AND "customer"."nId" <= ?'
    assert query.values == [1, 5]


@pytest.mark.parametrize(
    ("operator", "sql"),
    [("$gt", ">"), ("$gte", ">="), ("$lt", "<"), ("$lte", "<=")],
)
def test_comparison_operators(customer, operator, sql):
    query = customer.compile({"nId": {operator: 3}})
    assert query.sql == f' WHERE "customer"."nId" {sql} ?'
    assert query.values == [3]


def test_ne_variants(customer):
    assert customer.compile({"zName": {"$ne": "x"}}).sql == (
        ' WHERE "customer"."zName" != ?'
    )
    assert customer.compile({"zName": {"$ne": None}}).sql == (
        ' WHERE "customer"."zName" IS NOT NULL'
    )
    assert customer.compile({"bActive": {"$ne": False}}).sql == (
        ' WHERE "customer"."bActive" IS NOT FALSE'
    )


def test_comparison_rejects_non_scalar(customer):
    with pytest.raises(StructuralError, match=r"\$gt requires a scalar value"):
        customer.compile({"nId": {"$gt": [1]}})


def test_list_value_requires_in(customer):
    with pytest.raises(StructuralError, match=r"use \$in"):
        customer.compile({"nId": [1, 2]})


def test_values_are_cast_through_column_type(product):
    query = product.compile({"nPrice": {"$gte": 9.5}, "zName": 7})
    assert query.values == ["9.50", "7"]


def test_bools_bind_lowercase_on_string_columns(customer):
    assert customer.compile({"zName": {"$in": [True, 1]}}).values == ["true", "1"]


def test_huge_decimal_is_a_cast_error(product):
    with pytest.raises(CastError, match=r"out of range for decimal\(6,2\)"):
        product.compile({"nPrice": {"$gt": 1e40}})


# ---------------------------------------------------------------------------
# Set, null and pattern operators
# ---------------------------------------------------------------------------


def test_in_and_nin(customer):
    query = customer.compile({"nId": {"$in": [1, 2, 3]}})
    assert query.sql == ' WHERE "customer"."nId" IN ( ?, ?, ? )'
    assert query.values == [1, 2, 3]

    query = customer.compile({"nId": {"$nin": (4,)}})
    assert query.sql == ' WHERE "customer"."nId" NOT IN ( ? )'


@pytest.mark.parametrize("value", [[], 5, "abc"])
def test_in_requires_non_empty_list(customer, value):
    with pytest.raises(StructuralError, match=r"\$in requires \[ value, \.\.\. \]"):
        customer.compile({"nId": {"$in": value}})


def test_mod(customer):
    query = customer.compile({"nId": {"$mod": [3, 1]}})
    assert query.sql == ' WHERE "customer"."nId" % ? = ?'
    assert query.values == [3, 1]


def test_mod_requires_pair(customer):
    with pytest.raises(StructuralError, match=r"\$mod requires \[ divisor, remainder \]"):
        customer.compile({"nId": {"$mod": [3]}})


def test_exists(customer):
    assert customer.compile({"zName": {"$exists": True}}).sql == (
        ' WHERE "customer"."zName" IS NOT NULL'
    )
    assert customer.compile({"zName": {"$exists": False}}).sql == (
        ' WHERE "customer"."zName" IS NULL'
    )
    with pytest.raises(StructuralError):
        customer.compile({"zName": {"$exists": 1}})


def test_regex(customer):
    query = customer.compile({"zName": {"$regex": "^A"}})
    assert query.sql == ' WHERE "customer"."zName" REGEXP ?'
    assert query.values == ["^A"]


def test_regex_rejects_compiled_pattern(customer):
    with pytest.raises(UnsupportedOperatorError, match="without delimiters"):
        customer.compile({"zName": {"$regex": re.compile("^A")}})


def test_text_search(customer):
    query = customer.compile({"zName": {"$text": {"$search": "%da%"}}})
    assert query.sql == ' WHERE "customer"."zName" LIKE ?'
    assert query.values == ["%da%"]

    query = customer.compile(
        {"zName": {"$text": {"$search": "ada", "$language": "utf8mb4_bin"}}}
    )
    assert query.sql == ' WHERE "customer"."zName" LIKE ? COLLATE utf8mb4_bin'


def test_text_errors(customer):
    with pytest.raises(StructuralError, match=r"\$text requires \$search"):
        customer.compile({"zName": {"$text": {"$language": "x"}}})
    with pytest.raises(
        UnsupportedOperatorError, match=r"use \$language instead of \$caseSensitive"
    ):
        customer.compile({"zName": {"$text": {"$search": "a", "$caseSensitive": True}}})
    with pytest.raises(StructuralError, match="collation name"):
        customer.compile({"zName": {"$text": {"$search": "a", "$language": "x; DROP"}}})


# ---------------------------------------------------------------------------
# Logical operators
# ---------------------------------------------------------------------------


def test_and_or(customer):
    query = customer.compile({"$and": [{"nId": 1}, {"zName": "Ada"}]})
    assert query.sql == (
        ' WHERE ( ( "customer"."nId" = ? ) AND ( "customer"."zName" = ? ) )'
    )
    assert query.values == [1, "Ada"]

    query = customer.compile({"$or": [{"nId": 1}, {"nId": {"$gt": 4}}]})
    assert query.sql == (
        ' WHERE ( ( "customer"."nId" = ? ) OR ( "customer"."nId" > ? ) )'
    )


def test_or_inside_column_context(customer):
    query = customer.compile({"nId": {"$or": [{"$lt": 2}, {"$gt": 4}]}})
    assert query.sql == (
        ' WHERE ( ( "customer"."nId" < ? ) OR ( "customer"."nId" > ? ) )'
    )


@pytest.mark.parametrize(
    ("value", "message"),
    [
        ({"nId": 1}, r"\$and must be an array"),
        ([{"nId": 1}], r"\$and array must have 2\+ members"),
        ([{"nId": 1}, 5], r"\$and array member #1 must be an object"),
        ([{"nId": 1}, {}], r"\$and array member #1 must contain a condition"),
    ],
)
def test_and_structure_errors(customer, value, message):
    with pytest.raises(StructuralError, match=message):
        customer.compile({"$and": value})


def test_junction_cannot_contain_directives(customer):
    with pytest.raises(StructuralError, match=r"\$or cannot contain \$limit"):
        customer.compile({"$or": [{"nId": 1}, {"$limit": 1, "nId": 2}]})


def test_not_with_pattern_and_document(customer):
    query = customer.compile({"zName": {"$not": "^A"}})
    assert query.sql == ' WHERE "customer"."zName" NOT REGEXP ?'

    query = customer.compile({"nId": {"$not": {"$gt": 5}}})
    assert query.sql == ' WHERE NOT ( "customer"."nId" > ? )'
    assert query.values == [5]


def test_not_rejects_plain_value(customer):
    with pytest.raises(StructuralError, match=r"use \$ne instead of \$not"):
        customer.compile({"nId": {"$not": 5}})


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------


def test_limit_and_skip(customer):
    query = customer.compile({"$limit": 10, "$skip": 20})
    assert query.sql == " LIMIT 10 OFFSET 20"

    assert customer.compile({"$limit": 2.7}).sql == " LIMIT 2"


def test_skip_without_limit(customer):
    with pytest.raises(CardinalityError, match=r"cannot use \$skip without \$limit"):
        customer.compile({"$skip": 5})


@pytest.mark.parametrize("value", [True, "10", -1, float("inf")])
def test_limit_rejects_bad_values(customer, value):
    with pytest.raises(StructuralError):
        customer.compile({"$limit": value})


def test_limit_can_only_appear_once(order):
    with pytest.raises(CardinalityError, match=r"\$limit can only appear once"):
        order.compile({"$limit": 1, "customer": {"$limit": 2}})


def test_orderby(customer):
    query = customer.compile({"$orderby": {"zName": 1, "nId": -1}})
    assert query.sql == ' ORDER BY "customer"."zName", "customer"."nId" DESC'


def test_orderby_related_table_populates(order):
    query = order.compile({"$orderby": {"customer": {"zName": -1}}, "nId": {"$gt": 1}})
    assert query.sql == (
        ' WHERE "order"."nId" > ? ORDER BY "customer"."zName" DESC'
    )
    assert query.populate == ["customer"]


def test_orderby_errors(customer):
    with pytest.raises(StructuralError, match=r"\$orderby must be a hash object"):
        customer.compile({"$orderby": ["zName"]})
    with pytest.raises(
        StructuralError, match=r"\$orderby expected integer direction, found 'asc'"
    ):
        customer.compile({"$orderby": {"zName": "asc"}})
    with pytest.raises(ResolutionError, match=r"\$orderby field zNope not found"):
        customer.compile({"$orderby": {"zNope": 1}})


def test_comment_is_ignored(customer):
    query = customer.compile({"$comment": "audit", "nId": 1})
    assert query.sql == ' WHERE "customer"."nId" = ?'


@pytest.mark.parametrize(
    ("key", "message"),
    [
        ("$meta", r"\$meta not supported because \$text uses LIKE"),
        ("$query", r"specify a query without \$query"),
    ],
)
def test_rejected_operators(customer, key, message):
    with pytest.raises(UnsupportedOperatorError, match=message):
        customer.compile({key: {}})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def test_unknown_operator_suggests_close_matches(customer):
    with pytest.raises(UnsupportedOperatorError) as exc_info:
        customer.compile({"nId": {"$gtt": 1}})
    assert "$gt" in exc_info.value.suggestions
    assert "Did you mean" in str(exc_info.value)


def test_unknown_column_suggests_close_matches(customer):
    with pytest.raises(ResolutionError) as exc_info:
        customer.compile({"zNmae": "Ada"})
    assert str(exc_info.value).startswith("unknown column: zNmae")
    assert exc_info.value.suggestions[0] == "zName"
    assert exc_info.value.table == "customer"


def test_leaf_operator_at_table_level(customer):
    with pytest.raises(StructuralError, match=r"\$gt must be applied to a column"):
        customer.compile({"$gt": 1})


def test_related_table_key_switches_context(order):
    query = order.compile({"customer": {"zName": "Ada"}, "zNote": "x"})
    assert query.sql == ' WHERE "customer"."zName" = ? AND "order"."zNote" = ?'
    assert query.values == ["Ada", "x"]
    assert query.populate == ["customer"]


def test_nested_related_tables_populate_in_first_seen_order(order_product):
    query = order_product.compile(
        {"order": {"customer": {"zName": "Ada"}}, "product": {"nId": 1}}
    )
    assert query.populate == ["order", "customer", "product"]


def test_populate_is_deduplicated(order_product):
    query = order_product.compile(
        {"order": {"nId": 1}, "$and": [{"order": {"zNote": "a"}}, {"nQuantity": 2}]}
    )
    assert query.populate == ["order"]


def test_related_table_requires_document(order):
    with pytest.raises(StructuralError, match="requires a sub-document"):
        order.compile({"customer": 1})


def test_custom_operator_registry(customer):
    operators = build_default_registry()
    operators.unregister(FilterOperator.REGEX)

    with pytest.raises(
        UnsupportedOperatorError, match=r"\$regex is not supported"
    ) as exc_info:
        customer.compile({"zName": {"$regex": "^A"}}, operators=operators)
    assert FilterOperator.REGEX not in operators.supported_operators
    assert exc_info.value.valid_operators == sorted(
        op.value for op in operators.supported_operators
    )
    assert "$regex" not in exc_info.value.valid_operators
    # Other operators are unaffected
    assert customer.compile({"nId": 1}, operators=operators).values == [1]

    with pytest.raises(UnsupportedOperatorError, match=r"\$regex is not supported"):
        customer.compile({"zName": {"$regex": "^A"}}, operators=operators)
    # Other operators are unaffected
    assert customer.compile({"nId": 1}, operators=operators).values == [1]


def test_filter_must_be_a_document(customer):
    with pytest.raises(StructuralError, match="filter must be a document"):
        customer.compile(["nId"])  # type: ignore[arg-type]
