"""
Quick stock adjustments (+1 / -1 / +5 / +10 / -5).

Adjustments are sent as deltas, never as absolute values, so edits made
from other sessions in the meantime are kept. One request per product may
be in flight at a time; a second click while it is pending is rejected.
"""

from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Dict, Iterable, Optional, Set

from ..models.product import Product
from ..utils.exceptions import (
    MissingCredential,
    MutationInFlight,
    NotFound,
    RemoteFailure,
    ValidationFailure,
)
from ..utils.logger import get_logger
from .product_repository import ProductRepository

logger = get_logger(__name__)

QUICK_ADJUSTMENTS = (1, -1, 5, 10, -5)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransientMessage:
    """Banner text that dismisses itself once expires_at passes"""

    def __init__(self, kind: str, text: str, expires_at: datetime):
        self.kind = kind
        self.text = text
        self.expires_at = expires_at

    def is_visible(self, now: datetime) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        return f"TransientMessage(kind={self.kind!r}, text={self.text!r})"


class StockMutationController:
    """Displayed stock state plus the single in-flight guard per product"""

    def __init__(
        self,
        repository: ProductRepository,
        success_dismiss_seconds: float = 3.0,
        error_dismiss_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.repository = repository
        self.success_dismiss = timedelta(seconds=success_dismiss_seconds)
        self.error_dismiss = timedelta(seconds=error_dismiss_seconds)
        self.clock = clock
        self._displayed: Dict[str, int] = {}
        self._pending: Dict[str, int] = {}
        self._in_flight: Set[str] = set()
        self._message: Optional[TransientMessage] = None
        self._mounted = True
        self._lock = Lock()

    def show(self, products: Iterable[Product]) -> None:
        """Load the stock values the view is displaying"""
        with self._lock:
            self._mounted = True
            self._displayed = {p.id: p.stock for p in products}

    def attach(self) -> None:
        with self._lock:
            self._mounted = True

    def detach(self) -> None:
        """View unmounted: responses that arrive later are dropped"""
        with self._lock:
            self._mounted = False

    def displayed_stock(self, product_id: str) -> Optional[int]:
        with self._lock:
            return self._displayed.get(product_id)

    def pending_stock(self, product_id: str) -> Optional[int]:
        """Optimistic value while a request is in flight, else None"""
        with self._lock:
            return self._pending.get(product_id)

    def is_in_flight(self, product_id: str) -> bool:
        with self._lock:
            return product_id in self._in_flight

    def can_adjust(self, product_id: str, delta: int) -> bool:
        """Whether the control for this delta should be enabled; adjust() never consults it"""
        with self._lock:
            if delta == 0 or product_id in self._in_flight:
                return False
            return delta > 0 or self._displayed.get(product_id, 0) > 0

    @property
    def message(self) -> Optional[TransientMessage]:
        with self._lock:
            if self._message is not None and not self._message.is_visible(self.clock()):
                self._message = None
            return self._message

    def _notify(self, kind: str, text: str) -> None:
        window = self.success_dismiss if kind == "success" else self.error_dismiss
        self._message = TransientMessage(kind, text, self.clock() + window)

    def adjust(self, product: Product, delta: int) -> Product:
        """
        Apply a quick adjustment and return the server-confirmed product.

        Raises:
            MutationInFlight: another adjustment for this product is pending
            RemoteFailure, MissingCredential, ValidationFailure, NotFound:
                after recording an error banner; displayed stock is untouched
        """
        with self._lock:
            if delta == 0:
                return product
            proposed = max(0, self._displayed.get(product.id, product.stock) + delta)
            if product.id in self._in_flight:
                raise MutationInFlight(product.id)
            self._in_flight.add(product.id)
            self._pending[product.id] = proposed

        try:
            if delta > 0:
                confirmed = self.repository.increase_stock(product.id, delta)
            else:
                confirmed = self.repository.decrease_stock(product.id, -delta)
        except (RemoteFailure, MissingCredential, ValidationFailure, NotFound) as e:
            with self._lock:
                if self._mounted:
                    self._notify("error", f'Could not update stock for "{product.name}": {e}')
            logger.warning("Stock adjustment failed", product_id=product.id, delta=delta, error=str(e))
            raise
        finally:
            with self._lock:
                self._in_flight.discard(product.id)
                self._pending.pop(product.id, None)

        with self._lock:
            if not self._mounted:
                logger.debug("Discarding stock result for unmounted view", product_id=product.id)
                return confirmed
            self._displayed[product.id] = confirmed.stock
            self._notify("success", f'Stock for "{confirmed.name}" updated to {confirmed.stock} units')
        return confirmed
