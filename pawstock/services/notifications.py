"""Low-stock notifications: derivation, remote fetch and the polling center"""

from threading import Event, Lock, Thread
from typing import Iterable, List, Optional

from pydantic import ValidationError

from ..models.product import Notification, Product, RemoteNotification, StockStatus
from ..utils.exceptions import PawStockError
from ..utils.logger import get_logger
from .product_repository import ProductRepository

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 30


def derive_notifications(products: Iterable[Product]) -> List[Notification]:
    """One notification per active product that is out of stock or at/below its minimum"""
    return [
        Notification.for_stock(p.id, p.name, p.stock, p.min_stock)
        for p in products
        if not p.is_deleted and p.stock_status != StockStatus.AVAILABLE
    ]


def dedupe(notifications: Iterable[Notification]) -> List[Notification]:
    """Keep the first notification per product"""
    seen = set()
    out = []
    for n in notifications:
        if n.product_id in seen:
            continue
        seen.add(n.product_id)
        out.append(n)
    return out


class LocalNotificationSource:
    """Derives notifications from the active product list"""

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    def fetch(self) -> List[Notification]:
        return derive_notifications(self.repository.list())


class RemoteNotificationSource:
    """Reads the notification list the server has already computed"""

    def __init__(self, repository: ProductRepository):
        self.repository = repository

    def fetch(self) -> List[Notification]:
        notifications = []
        for record in self.repository.fetch_notification_records():
            try:
                remote = RemoteNotification.model_validate(record)
            except ValidationError as e:
                logger.warning("Skipping malformed notification record", error=str(e))
                continue
            if remote.eliminada:
                continue
            notifications.append(remote.to_notification())
        return notifications


def build_notification_source(strategy: str, repository: ProductRepository):
    if strategy == "remote":
        return RemoteNotificationSource(repository)
    if strategy == "local":
        return LocalNotificationSource(repository)
    raise ValueError(f"Unknown notification strategy: {strategy!r}")


class NotificationCenter:
    """
    Polls a notification source on a fixed interval.

    While the panel is closed the unread count follows the size of the latest
    list. Opening the panel marks everything read but keeps the items.
    """

    def __init__(self, source, poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS):
        self.source = source
        self.poll_interval_seconds = poll_interval_seconds
        self.notifications: List[Notification] = []
        self.unread_count = 0
        self.is_open = False
        self.stop_event = Event()
        self._thread: Optional[Thread] = None
        self._torn_down = False
        self._lock = Lock()

    def poll(self) -> bool:
        """Fetch once; returns False when the fetch failed or the result was discarded"""
        try:
            items = dedupe(self.source.fetch())
        except PawStockError as e:
            logger.warning("Notification poll failed", error=str(e))
            return False

        with self._lock:
            if self._torn_down:
                logger.debug("Discarding notifications for stopped center")
                return False
            self.notifications = items
            if not self.is_open:
                self.unread_count = len(items)
        return True

    def open_panel(self) -> None:
        with self._lock:
            self.is_open = True
            self.unread_count = 0

    def close_panel(self) -> None:
        with self._lock:
            self.is_open = False

    def start(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            self._torn_down = False
            self.stop_event.clear()
        self.poll()
        with self._lock:
            if self._thread is not None or self._torn_down:
                return
            self._thread = Thread(target=self._poll_loop, daemon=True, name="notification-poller")
            self._thread.start()
        logger.info("Notification polling started", interval_seconds=self.poll_interval_seconds)

    def stop(self) -> None:
        with self._lock:
            self._torn_down = True
            self.stop_event.set()
            thread, self._thread = self._thread, None
        if thread is None:
            return
        thread.join(timeout=2)
        if thread.is_alive():
            logger.warning("Notification poller still alive after timeout, continuing shutdown")
        logger.info("Notification polling stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None

    def _poll_loop(self) -> None:
        while not self.stop_event.wait(timeout=self.poll_interval_seconds):
            try:
                self.poll()
            except Exception as e:
                logger.error("Error in notification poll loop", error=str(e))
