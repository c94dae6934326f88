"""Integration fixtures: the shop schema in an in-memory aiosqlite database."""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from sqlgoose import Database, Model

DDL = [
    'CREATE TABLE "customer" ("nId" INTEGER PRIMARY KEY, "zName" VARCHAR(50), '
    '"bActive" TINYINT)',
    'CREATE TABLE "order" ("nId" INTEGER PRIMARY KEY, "nCustomerId" INTEGER, '
    '"zNote" TEXT)',
    'CREATE TABLE "product" ("nId" INTEGER PRIMARY KEY, "zName" VARCHAR(50), '
    '"nPrice" DECIMAL(6, 2))',
    'CREATE TABLE "order_product" ("nId" INTEGER PRIMARY KEY, "nOrderId" INTEGER, '
    '"nProductId" INTEGER, "nQuantity" INTEGER)',
]


@pytest.fixture
async def db() -> AsyncGenerator[Database, None]:
    database = Database()
    await database.connect("sqlite+aiosqlite:///:memory:")
    for statement in DDL:
        await database.query(statement)
    yield database
    await database.disconnect()


@pytest.fixture
async def seeded(shop: dict[str, Model]) -> dict[str, Model]:
    """Two customers, three products, two orders with line items."""
    await shop["customer"].create({"nId": 1, "zName": "Ada", "bActive": True})
    await shop["customer"].create({"nId": 2, "zName": "Brian", "bActive": False})
    await shop["product"].create({"nId": 1, "zName": "Widget", "nPrice": 9.5})
    await shop["product"].create({"nId": 2, "zName": "Gadget", "nPrice": "19.99"})
    await shop["product"].create({"nId": 3, "zName": "Doohickey", "nPrice": 100})
    await shop["order"].create({"nId": 10, "nCustomerId": 1, "zNote": "first"})
    await shop["order"].create({"nId": 11, "nCustomerId": 2, "zNote": "second"})
    await shop["order_product"].create(
        {"nId": 100, "nOrderId": 10, "nProductId": 1, "nQuantity": 2}
    )
    await shop["order_product"].create(
        {"nId": 101, "nOrderId": 10, "nProductId": 2, "nQuantity": 1}
    )
    await shop["order_product"].create(
        {"nId": 102, "nOrderId": 11, "nProductId": 3, "nQuantity": 5}
    )
    return shop
