"""
Session Guard: gate for protected views.

Checked once when the view is entered and then every check interval while
it stays mounted. Each passing check slides the session expiry forward, so
the session lives for the configured duration since the last check, not
since login.
"""

from threading import Event, Lock, Thread
from typing import Callable, Optional

from ..auth.session_store import SessionStore
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CHECK_INTERVAL_SECONDS = 300


class SessionGuard:
    """Redirects to login when the session is gone, refreshes it otherwise"""

    def __init__(
        self,
        session_store: SessionStore,
        on_unauthorized: Callable[[], None],
        interval_seconds: float = DEFAULT_CHECK_INTERVAL_SECONDS,
    ):
        self.session_store = session_store
        self.on_unauthorized = on_unauthorized
        self.interval_seconds = interval_seconds
        self.authorized = False
        self.stop_event = Event()
        self._thread: Optional[Thread] = None
        self._state_lock = Lock()

    def check(self) -> bool:
        """Run one guard pass; returns whether the view may stay rendered"""
        if self.session_store.is_valid() and self.session_store.refresh():
            self.authorized = True
            return True

        self.authorized = False
        logger.info("Session invalid, redirecting to login")
        try:
            self.on_unauthorized()
        except Exception as e:
            logger.error("Unauthorized handler failed", error=str(e))
        return False

    def start(self) -> bool:
        """Check now, then keep checking in the background. Returns the first result."""
        with self._state_lock:
            if self._thread is not None:
                return self.authorized
            self.stop_event.clear()
            authorized = self.check()
            self._thread = Thread(
                target=self._check_loop,
                daemon=True,
                name="session-guard",
            )
            self._thread.start()

        logger.info("Session guard started", interval_seconds=self.interval_seconds)
        return authorized

    def stop(self) -> None:
        with self._state_lock:
            self.stop_event.set()
            thread, self._thread = self._thread, None
        if thread is None:
            return
        thread.join(timeout=2)
        if thread.is_alive():
            logger.warning("Session guard thread still alive after timeout, continuing shutdown")
        logger.info("Session guard stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None

    def _check_loop(self) -> None:
        while not self.stop_event.wait(timeout=self.interval_seconds):
            try:
                self.check()
            except Exception as e:
                logger.error("Error in session guard loop", error=str(e))
