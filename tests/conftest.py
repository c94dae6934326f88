"""Shared fixtures: a small shop schema declared against the SQLite dialect."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy.dialects import sqlite

from sqlgoose import Database, Model

CUSTOMER: dict[str, dict[str, Any]] = {
    "nId": {"type": "int", "primary": True},
    "zName": {"type": "varchar"},
    "bActive": {"type": "tinyint"},
}

ORDER: dict[str, dict[str, Any]] = {
    "nId": {"type": "int", "primary": True},
    "nCustomerId": {
        "type": "int",
        "references": {"table": "customer", "column": "nId"},
    },
    "zNote": {"type": "text"},
}

PRODUCT: dict[str, dict[str, Any]] = {
    "nId": {"type": "int", "primary": True},
    "zName": {"type": "varchar"},
    "nPrice": {"type": "decimal", "precision": 6, "scale": 2},
}

ORDER_PRODUCT: dict[str, dict[str, Any]] = {
    "nId": {"type": "int", "primary": True},
    "nOrderId": {"type": "int", "references": {"table": "order", "column": "nId"}},
    "nProductId": {
        "type": "int",
        "references": {"table": "product", "column": "nId"},
    },
    "nQuantity": {"type": "int"},
}


def declare_shop(db: Database) -> dict[str, Model]:
    return {
        "customer": db.model("customer", CUSTOMER),
        "order": db.model("order", ORDER),
        "product": db.model("product", PRODUCT),
        "order_product": db.model("order_product", ORDER_PRODUCT),
    }


@pytest.fixture
def db() -> Database:
    """Unconnected database; SQL is compiled for SQLite."""
    return Database(dialect=sqlite.dialect())


@pytest.fixture
def shop(db: Database) -> dict[str, Model]:
    return declare_shop(db)


@pytest.fixture
def customer(shop: dict[str, Model]) -> Model:
    return shop["customer"]


@pytest.fixture
def order(shop: dict[str, Model]) -> Model:
    return shop["order"]


@pytest.fixture
def product(shop: dict[str, Model]) -> Model:
    return shop["product"]


@pytest.fixture
def order_product(shop: dict[str, Model]) -> Model:
    return shop["order_product"]
