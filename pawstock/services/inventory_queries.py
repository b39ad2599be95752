"""Read-only views over product lists: dashboard stats, search and filters"""

from typing import Iterable, List

from ..models.product import InventoryStats, Product, StockStatus

FILTERS = ("all", "low-stock", "out-of-stock", "available")


def inventory_stats(active: Iterable[Product], deleted: Iterable[Product] = ()) -> InventoryStats:
    active = [p for p in active if not p.is_deleted]
    return InventoryStats(
        total_products=len(active),
        total_value=round(sum(p.price * p.stock for p in active), 2),
        low_stock_count=sum(1 for p in active if p.stock_status == StockStatus.LOW_STOCK),
        out_of_stock_count=sum(1 for p in active if p.stock_status == StockStatus.OUT_OF_STOCK),
        available_count=sum(1 for p in active if p.stock_status == StockStatus.AVAILABLE),
        deleted_count=len(list(deleted)),
    )


def search_products(products: Iterable[Product], term: str) -> List[Product]:
    """Case-insensitive match on name, supplier or characteristics"""
    needle = (term or "").strip().lower()
    if not needle:
        return list(products)
    return [
        p for p in products
        if needle in p.name.lower()
        or needle in p.supplier.lower()
        or needle in p.characteristics.lower()
    ]


def filter_products(products: Iterable[Product], filter_by: str) -> List[Product]:
    if filter_by not in FILTERS:
        raise ValueError(f"Unknown filter: {filter_by!r} (expected one of {', '.join(FILTERS)})")
    products = list(products)
    if filter_by == "low-stock":
        # includes out-of-stock items, same as the notification rule
        return [p for p in products if p.stock_status != StockStatus.AVAILABLE]
    if filter_by == "out-of-stock":
        return [p for p in products if p.stock == 0]
    if filter_by == "available":
        return [p for p in products if p.stock_status == StockStatus.AVAILABLE]
    return products


def low_stock_products(products: Iterable[Product]) -> List[Product]:
    """Active products at or below their minimum, emptiest first"""
    return sorted(
        (p for p in products if not p.is_deleted and p.stock_status != StockStatus.AVAILABLE),
        key=lambda p: p.stock,
    )
