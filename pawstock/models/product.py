"""Product and notification data models"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

PLACEHOLDER_IMAGE = "/placeholder.svg"


class StockStatus(str, Enum):
    """Display classification of a product's stock level"""
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    AVAILABLE = "available"


class BackendProduct(BaseModel):
    """Product record as returned by the inventory API"""
    model_config = ConfigDict(extra="ignore")

    codigo: int
    nombre: str
    stock: int = 0
    precio: float = 0.0
    proveedorNombre: Optional[str] = None
    umbralMinimo: Optional[int] = None
    stockBajo: Optional[bool] = None
    imagen: Optional[str] = None
    descripcion: Optional[str] = None
    fechaCreacion: Optional[datetime] = None
    fechaActualizacion: Optional[datetime] = None


class Product(BaseModel):
    """Product as used by the dashboard"""

    id: str
    name: str
    supplier: str = ""
    price: float = Field(default=0.0, ge=0)
    stock: int = Field(default=0, ge=0)
    min_stock: int = Field(default=0, ge=0)
    image: str = PLACEHOLDER_IMAGE
    characteristics: str = ""
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime
    # Server flag when known, else stock <= min_stock. Resolved once, at construction.
    low_stock: Optional[bool] = None

    @model_validator(mode="after")
    def _resolve_low_stock(self) -> "Product":
        if self.low_stock is None:
            self.low_stock = self.stock <= self.min_stock
        return self

    @classmethod
    def from_backend(cls, record: BackendProduct, now: datetime) -> "Product":
        """
        Convert an API record.

        The server's stockBajo flag wins when present; stock <= minimum is
        only the fallback for records that omit it.
        """
        stock = max(0, record.stock)
        min_stock = max(0, record.umbralMinimo or 0)
        return cls(
            id=str(record.codigo),
            name=record.nombre,
            supplier=record.proveedorNombre or "",
            price=max(0.0, record.precio),
            stock=stock,
            min_stock=min_stock,
            image=record.imagen or PLACEHOLDER_IMAGE,
            characteristics=record.descripcion or "",
            is_deleted=False,
            created_at=record.fechaCreacion or now,
            updated_at=record.fechaActualizacion or record.fechaCreacion or now,
            low_stock=record.stockBajo,
        )

    @property
    def stock_status(self) -> StockStatus:
        if self.stock == 0:
            return StockStatus.OUT_OF_STOCK
        if self.low_stock:
            return StockStatus.LOW_STOCK
        return StockStatus.AVAILABLE


class ProductDraft(BaseModel):
    """Validated input for creating a product"""

    name: str
    supplier: str
    price: float
    stock: int
    min_stock: int = 0
    image: str = ""
    characteristics: str
    supplier_id: int = 1

    def to_backend_payload(self) -> dict:
        payload = {
            "nombre": self.name,
            "cantidad": self.stock,
            "precio": self.price,
            "idProveedor": self.supplier_id,
        }
        if self.min_stock > 0:
            payload["umbralMinimo"] = self.min_stock
        if self.image:
            payload["imagen"] = self.image
        if self.characteristics:
            payload["descripcion"] = self.characteristics
        return payload


class Severity(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"


class Notification(BaseModel):
    """Low-stock alert; recomputed on every poll, never persisted"""
    model_config = ConfigDict(frozen=True)

    product_id: str
    product_name: str
    stock: int
    min_stock: int
    severity: Severity
    message: str

    @classmethod
    def for_stock(cls, product_id: str, name: str, stock: int, min_stock: int) -> "Notification":
        if stock == 0:
            severity = Severity.OUT_OF_STOCK
            message = f"{name} is out of stock"
        else:
            severity = Severity.LOW_STOCK
            message = f"{name} is running low ({stock} units)"
        return cls(
            product_id=product_id,
            product_name=name,
            stock=stock,
            min_stock=min_stock,
            severity=severity,
            message=message,
        )


class RemoteNotification(BaseModel):
    """Notification record as returned by the inventory API"""
    model_config = ConfigDict(extra="ignore")

    id: int
    idProducto: int
    nombreProducto: str
    stockActual: int
    umbralMinimo: int = 0
    fechaCreacion: Optional[datetime] = None
    eliminada: bool = False

    def to_notification(self) -> Notification:
        return Notification.for_stock(
            product_id=str(self.idProducto),
            name=self.nombreProducto,
            stock=max(0, self.stockActual),
            min_stock=max(0, self.umbralMinimo),
        )


class InventoryStats(BaseModel):
    total_products: int
    total_value: float
    low_stock_count: int
    out_of_stock_count: int
    available_count: int
    deleted_count: int
