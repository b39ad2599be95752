"""Tests for dashboard stats, search and filters"""

from datetime import datetime, timezone

import pytest

from pawstock.models.product import Product, StockStatus
from pawstock.services.inventory_queries import (
    filter_products,
    inventory_stats,
    low_stock_products,
    search_products,
)

NOW = datetime(2024, 1, 20, tzinfo=timezone.utc)


def make_product(product_id, stock, min_stock, price=10.0, low_stock=None, **kwargs):
    return Product(
        id=product_id,
        name=kwargs.pop("name", f"Product {product_id}"),
        supplier=kwargs.pop("supplier", "Pet Food Co."),
        price=price,
        stock=stock,
        min_stock=min_stock,
        low_stock=low_stock,
        created_at=NOW,
        updated_at=NOW,
        **kwargs,
    )


@pytest.fixture
def catalog():
    return [
        make_product("1", 25, 10, price=45.99, name="Alimento Premium para Perros"),
        make_product("2", 8, 15, price=12.50, name="Collar Ajustable", supplier="Pet Accessories Ltd."),
        make_product("3", 0, 5, price=18.75, name="Juguete Interactivo"),
        make_product("4", 5, 12, price=22.30, name="Arena para Gatos", characteristics="Control de olores"),
    ]


def test_stock_status_classification(catalog):
    assert [p.stock_status for p in catalog] == [
        StockStatus.AVAILABLE,
        StockStatus.LOW_STOCK,
        StockStatus.OUT_OF_STOCK,
        StockStatus.LOW_STOCK,
    ]


def test_server_flag_drives_status():
    # Server says not low even though stock <= minimum
    assert make_product("1", 3, 5, low_stock=False).stock_status == StockStatus.AVAILABLE
    assert make_product("2", 30, 5, low_stock=True).stock_status == StockStatus.LOW_STOCK


def test_inventory_stats(catalog):
    deleted = [make_product("9", 1, 1, is_deleted=True)]

    stats = inventory_stats(catalog, deleted)

    assert stats.total_products == 4
    assert stats.total_value == round(25 * 45.99 + 8 * 12.50 + 5 * 22.30, 2)
    assert stats.low_stock_count == 2
    assert stats.out_of_stock_count == 1
    assert stats.available_count == 1
    assert stats.deleted_count == 1


@pytest.mark.parametrize(
    "term, expected",
    [
        ("collar", ["2"]),
        ("PET ACCESSORIES", ["2"]),
        ("olores", ["4"]),
        ("  ", ["1", "2", "3", "4"]),
        ("nothing matches", []),
    ],
)
def test_search(catalog, term, expected):
    assert [p.id for p in search_products(catalog, term)] == expected


@pytest.mark.parametrize(
    "filter_by, expected",
    [
        ("all", ["1", "2", "3", "4"]),
        ("low-stock", ["2", "3", "4"]),
        ("out-of-stock", ["3"]),
        ("available", ["1"]),
    ],
)
def test_filters(catalog, filter_by, expected):
    assert [p.id for p in filter_products(catalog, filter_by)] == expected


def test_unknown_filter(catalog):
    with pytest.raises(ValueError, match="Unknown filter"):
        filter_products(catalog, "expensive")


def test_low_stock_products_sorted_emptiest_first(catalog):
    assert [p.id for p in low_stock_products(catalog)] == ["3", "4", "2"]
