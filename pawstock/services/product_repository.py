"""
Product repository: typed access to remote product records.

The remote API is the owner of every product. The repository keeps the
latest snapshot it has seen plus the records soft-deleted from this client,
so the dashboard can show a "deleted" view without a second endpoint.
"""

from datetime import datetime, timezone
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from ..api.inventory_client import InventoryClient
from ..models.product import BackendProduct, Product, ProductDraft
from ..utils.exceptions import MissingCredential, NotFound, RemoteFailure, ValidationFailure
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_number(value: Any, kind: type) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


def validate_draft(fields: Mapping[str, Any]) -> ProductDraft:
    """
    Check create-form fields before anything is sent.

    Raises:
        ValidationFailure: naming the first offending field
    """
    for field in ("name", "supplier", "characteristics"):
        value = fields.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationFailure("All required fields must be filled in", field=field)

    price = _parse_number(fields.get("price"), float)
    if price is None or price <= 0:
        raise ValidationFailure("Price must be a valid number greater than 0", field="price")

    stock = _parse_number(fields.get("stock"), int)
    if stock is None or stock < 0:
        raise ValidationFailure("Stock must be a valid whole number of 0 or more", field="stock")

    min_stock = _parse_number(fields.get("min_stock", 0), int)
    if min_stock is None or min_stock < 0:
        raise ValidationFailure("Minimum stock must be a valid whole number of 0 or more", field="min_stock")

    supplier_id = _parse_number(fields.get("supplier_id", 1), int)
    if supplier_id is None or supplier_id < 1:
        raise ValidationFailure("Supplier id must be a positive whole number", field="supplier_id")

    return ProductDraft(
        name=fields["name"].strip(),
        supplier=fields["supplier"].strip(),
        price=price,
        stock=stock,
        min_stock=min_stock,
        image=(fields.get("image") or "").strip(),
        characteristics=fields["characteristics"].strip(),
        supplier_id=supplier_id,
    )


def _positive_amount(amount: Any) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationFailure("Amount must be a whole number greater than 0", field="amount")
    return amount


def _codigo(product_id: str) -> int:
    try:
        return int(product_id)
    except (TypeError, ValueError):
        raise ValidationFailure(f"Invalid product id: {product_id!r}", field="id")


class ProductRepository:
    """Remote product access with a local snapshot"""

    def __init__(
        self,
        client: InventoryClient,
        session_store,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.client = client
        self.session_store = session_store
        self.clock = clock
        self._products: Dict[str, Product] = {}
        self._deleted: Dict[str, Product] = {}
        self._lock = Lock()

    def _require_token(self) -> str:
        token = self.session_store.token()
        if not token:
            raise MissingCredential()
        return token

    def _convert(self, record: Any, operation: str) -> Product:
        try:
            return Product.from_backend(BackendProduct.model_validate(record), self.clock())
        except ValidationError as e:
            raise RemoteFailure(f"{operation} failed: malformed product record", operation=operation) from e

    def _convert_all(self, records: Iterable[Any]) -> List[Product]:
        """Skips malformed entries so one bad record does not hide the rest."""
        products = []
        for i, record in enumerate(records):
            try:
                products.append(Product.from_backend(BackendProduct.model_validate(record), self.clock()))
            except ValidationError as e:
                codigo = record.get("codigo") if isinstance(record, dict) else None
                logger.warning("Skipping malformed product record", index=i, codigo=codigo, error=str(e))
        return products

    def _store(self, record: Any, operation: str) -> Product:
        product = self._convert(record, operation)
        with self._lock:
            self._products[product.id] = product
        return product

    def list(self) -> List[Product]:
        """Active products; refreshes the snapshot"""
        token = self._require_token()
        products = self._convert_all(self.client.get_products(token))
        with self._lock:
            self._products = {p.id: p for p in products if p.id not in self._deleted}
            active = list(self._products.values())
        logger.debug("Products fetched", count=len(active))
        return active

    def list_deleted(self) -> List[Product]:
        with self._lock:
            return list(self._deleted.values())

    def list_low_stock(self) -> List[Product]:
        """Server-filtered low-stock products"""
        token = self._require_token()
        products = self._convert_all(self.client.get_low_stock_products(token))
        with self._lock:
            return [p for p in products if p.id not in self._deleted]

    def fetch_notification_records(self) -> List[Dict[str, Any]]:
        token = self._require_token()
        return self.client.get_notifications(token)

    def snapshot(self) -> List[Product]:
        """Last known active products, without a network call"""
        with self._lock:
            return list(self._products.values())

    def get(self, product_id: str) -> Product:
        with self._lock:
            product = self._products.get(product_id)
        if product is not None:
            return product
        self.list()
        with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        return product

    def create(self, fields: Mapping[str, Any]) -> Product:
        draft = validate_draft(fields)
        token = self._require_token()
        record = self.client.create_product(token, draft.to_backend_payload())
        product = self._store(record, "Create product")
        logger.info("Product created", product_id=product.id, name=product.name)
        return product

    def soft_delete(self, product_id: str) -> None:
        """Remote logical delete; the record moves to the local deleted view"""
        codigo = _codigo(product_id)
        token = self._require_token()
        self.client.delete_product(token, codigo)
        with self._lock:
            product = self._products.pop(product_id, None)
            if product is not None:
                self._deleted[product_id] = product.model_copy(
                    update={"is_deleted": True, "updated_at": self.clock()}
                )
        logger.info("Product deleted", product_id=product_id)

    def restore(self, product_id: str) -> Product:
        """
        Undo a soft delete in this client only.

        There is no restore endpoint, so the record comes back from the local
        deleted view and is gone again after the next list() if the server
        still treats it as deleted.
        """
        with self._lock:
            product = self._deleted.pop(product_id, None)
            if product is None:
                raise NotFound(f"Deleted product {product_id} not found")
            restored = product.model_copy(update={"is_deleted": False, "updated_at": self.clock()})
            self._products[product_id] = restored
        logger.info("Product restored locally", product_id=product_id)
        return restored

    def increase_stock(self, product_id: str, amount: int) -> Product:
        amount = _positive_amount(amount)
        codigo = _codigo(product_id)
        token = self._require_token()
        record = self.client.increase_stock(token, codigo, amount)
        product = self._store(record, "Increase stock")
        logger.info("Stock increased", product_id=product_id, amount=amount, stock=product.stock)
        return product

    def decrease_stock(self, product_id: str, amount: int) -> Product:
        """Sends the requested delta unchanged; the server clamps at zero and returns the record."""
        amount = _positive_amount(amount)
        codigo = _codigo(product_id)
        token = self._require_token()
        record = self.client.decrease_stock(token, codigo, amount)
        product = self._store(record, "Decrease stock")
        logger.info("Stock decreased", product_id=product_id, amount=amount, stock=product.stock)
        return product

    def update_minimum_threshold(self, product_id: str, value: int) -> Product:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationFailure("Minimum stock must be a whole number of 0 or more", field="min_stock")
        codigo = _codigo(product_id)
        token = self._require_token()
        record = self.client.update_minimum_threshold(token, codigo, value)
        product = self._store(record, "Update minimum threshold")
        logger.info("Minimum threshold updated", product_id=product_id, min_stock=value)
        return product
