"""Main application entry point for the inventory dashboard core"""

from pathlib import Path
from typing import Callable, List, Optional

from .api.inventory_client import InventoryClient
from .auth.session_store import SessionStore
from .middleware.session_guard import SessionGuard
from .models.product import InventoryStats, Product
from .models.user import Session, User
from .services.client_storage import ClientStorage, JsonFileStorage
from .services.inventory_queries import (
    filter_products,
    inventory_stats,
    low_stock_products,
    search_products,
)
from .services.notifications import NotificationCenter, build_notification_source
from .services.product_repository import ProductRepository
from .services.stock_mutation import StockMutationController
from .utils.config import ConfigManager, Settings
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class PawStockApp:
    """Wires the session, product and notification services for the UI layer"""

    def __init__(
        self,
        settings_path: Optional[Path] = None,
        settings: Optional[Settings] = None,
        storage: Optional[ClientStorage] = None,
        client: Optional[InventoryClient] = None,
    ):
        self.settings_path = settings_path
        self.config = settings
        self.storage = storage
        self.client = client
        self.session_store: Optional[SessionStore] = None
        self.repository: Optional[ProductRepository] = None
        self.stock_controller: Optional[StockMutationController] = None
        self.notification_center: Optional[NotificationCenter] = None
        self.session_guard: Optional[SessionGuard] = None

    def initialize(self, configure_logging: bool = True) -> "PawStockApp":
        """Load settings and build the service graph"""
        if self.config is None:
            self.config = ConfigManager(self.settings_path).load_settings()

        if configure_logging:
            setup_logger(
                log_level=self.config.logging.level,
                log_format=self.config.logging.format,
                file_path=self.config.logging.file_path,
                max_bytes=self.config.logging.max_bytes,
                backup_count=self.config.logging.backup_count,
            )

        logger.info(
            "Initializing PawStock",
            app_name=self.config.app.name,
            version=self.config.app.version,
            environment=self.config.app.environment,
            api_url=self.config.api.base_url,
        )

        if self.storage is None:
            self.storage = JsonFileStorage(Path(self.config.session.storage_path))
        if self.client is None:
            self.client = InventoryClient(
                base_url=self.config.api.base_url,
                connection_timeout=self.config.api.connection_timeout,
                read_timeout=self.config.api.read_timeout,
            )

        self.session_store = SessionStore(
            storage=self.storage,
            client=self.client,
            session_duration=self.config.session.duration,
        )
        self.repository = ProductRepository(self.client, self.session_store)
        self.stock_controller = StockMutationController(
            self.repository,
            success_dismiss_seconds=self.config.messages.success_dismiss_seconds,
            error_dismiss_seconds=self.config.messages.error_dismiss_seconds,
        )
        self.notification_center = NotificationCenter(
            build_notification_source(self.config.notifications.strategy, self.repository),
            poll_interval_seconds=self.config.notifications.poll_interval_seconds,
        )
        return self

    def _require_initialized(self) -> None:
        if self.session_store is None:
            raise RuntimeError("PawStockApp.initialize() must be called first")

    def login(self, username: str, password: str) -> Session:
        self._require_initialized()
        return self.session_store.authenticate(username, password)

    def logout(self) -> None:
        self._require_initialized()
        self.unmount_view()
        self.session_store.terminate()

    def current_user(self) -> Optional[User]:
        self._require_initialized()
        return self.session_store.current_user()

    def mount_view(self, on_unauthorized: Callable[[], None]) -> bool:
        """
        Enter a protected view.

        Starts the session guard and, when authorized, the notification poll.
        Returns whether the view may render.
        """
        self._require_initialized()
        self.unmount_view()
        self.session_guard = SessionGuard(
            self.session_store,
            on_unauthorized=self._unauthorized_handler(on_unauthorized),
            interval_seconds=self.config.session.check_interval_seconds,
        )
        authorized = self.session_guard.start()
        if not authorized:
            self.session_guard.stop()
            self.session_guard = None
            return False
        self.stock_controller.attach()
        self.notification_center.start()
        return True

    def _unauthorized_handler(self, navigate: Callable[[], None]) -> Callable[[], None]:
        def handler() -> None:
            # The view is going away; stop polling before navigating.
            self.notification_center.stop()
            self.stock_controller.detach()
            navigate()
        return handler

    def unmount_view(self) -> None:
        """Leave the protected view; cancels both timers"""
        if self.session_guard is not None:
            self.session_guard.stop()
            self.session_guard = None
        if self.notification_center is not None:
            self.notification_center.stop()
        if self.stock_controller is not None:
            self.stock_controller.detach()

    def load_products(self) -> List[Product]:
        """Fetch active products and hand them to the stock controller for display"""
        self._require_initialized()
        products = self.repository.list()
        self.stock_controller.show(products)
        return products

    def inventory_stats(self) -> InventoryStats:
        """Dashboard counters over the last fetched snapshot"""
        self._require_initialized()
        return inventory_stats(self.repository.snapshot(), self.repository.list_deleted())

    def search(self, term: str = "", filter_by: str = "all") -> List[Product]:
        """Products page: text search, then the stock filter"""
        self._require_initialized()
        return filter_products(search_products(self.repository.snapshot(), term), filter_by)

    def low_stock(self) -> List[Product]:
        self._require_initialized()
        return low_stock_products(self.repository.snapshot())
