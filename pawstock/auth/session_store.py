"""
Session store: login, lazy expiry, sliding refresh and logout.

One session slot per client. Expiry is detected when the session is read,
not by a background timer. Sessions written by older releases (a bare user
record under LEGACY_USER_KEY) are upgraded to the current format on first read.
"""

import json
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from ..api.inventory_client import InventoryClient
from ..models.user import Session, User
from ..services.client_storage import ClientStorage
from ..utils.exceptions import AuthFailure, RemoteFailure
from ..utils.logger import get_logger
from .token_claims import read_display_claims

logger = get_logger(__name__)

SESSION_KEY = "paw-auth-session"
LEGACY_USER_KEY = "paw-auth-user"
LEGACY_TOKEN_KEY = "paw-auth-token"

DEFAULT_SESSION_DURATION = timedelta(minutes=15)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _display_user(token: str, body: Dict[str, Any], typed_username: str) -> User:
    claims = read_display_claims(token)
    username = (
        claims.get("sub")
        or claims.get("username")
        or body.get("username")
        or typed_username
    )
    user_id = claims.get("id") or claims.get("userId") or username
    role = claims.get("role") or "admin"
    return User(id=str(user_id), username=str(username), role=str(role))


class SessionStore:
    """Owns the single persisted session slot"""

    def __init__(
        self,
        storage: ClientStorage,
        client: InventoryClient,
        session_duration: timedelta = DEFAULT_SESSION_DURATION,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.storage = storage
        self.client = client
        self.session_duration = session_duration
        self.clock = clock
        self._lock = RLock()

    def authenticate(self, username: str, password: str) -> Session:
        """
        Log in against the remote API and replace any existing session.

        Raises:
            AuthFailure: for rejected credentials and unreachable server alike
        """
        try:
            body = self.client.login(username, password)
        except RemoteFailure as e:
            logger.warning("Login failed", username=username, status_code=e.status_code)
            raise AuthFailure() from None

        token = body.get("token")
        if not isinstance(token, str) or not token:
            logger.warning("Login response carried no token", username=username)
            raise AuthFailure()

        user = _display_user(token, body, username)
        with self._lock:
            session = Session.start(user, token, self.clock(), self.session_duration)
            self._write(session)
            self.storage.delete(LEGACY_USER_KEY)
            self.storage.delete(LEGACY_TOKEN_KEY)

        logger.info("User logged in", username=user.username, expires_at=session.expires_at.isoformat())
        return session

    def is_valid(self) -> bool:
        return self._valid_session() is not None

    def current_user(self) -> Optional[User]:
        session = self._valid_session()
        return session.user if session else None

    def refresh(self) -> bool:
        """Slide the expiry window forward. No-op on a missing or expired session."""
        with self._lock:
            session = self._valid_session()
            if session is None:
                return False
            self._write(session.extended(self.clock(), self.session_duration))
            return True

    def terminate(self) -> None:
        with self._lock:
            self.storage.delete(SESSION_KEY)
            self.storage.delete(LEGACY_USER_KEY)
            self.storage.delete(LEGACY_TOKEN_KEY)
        logger.info("Session terminated")

    def token(self) -> Optional[str]:
        """Stored bearer token, expired or not; the server decides whether it still works."""
        session = self.session()
        return session.token if session else None

    def session(self) -> Optional[Session]:
        with self._lock:
            return self._read()

    def _valid_session(self) -> Optional[Session]:
        with self._lock:
            session = self._read()
            if session is None:
                return None
            if not session.is_valid_at(self.clock()):
                logger.info("Session expired", username=session.user.username)
                self.storage.delete(SESSION_KEY)
                return None
            return session

    def _write(self, session: Session) -> None:
        self.storage.set(SESSION_KEY, session.model_dump(mode="json"))

    def _read(self) -> Optional[Session]:
        raw = self.storage.get(SESSION_KEY)
        if raw is None:
            return self._migrate_legacy()
        try:
            return Session.model_validate(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable session record", error=str(e))
            self.storage.delete(SESSION_KEY)
            return None

    def _migrate_legacy(self) -> Optional[Session]:
        """
        Upgrade a legacy user record into a current-format session.

        The legacy slots are deleted whether or not the record parses, so a
        record is migrated at most once.
        """
        raw = self.storage.get(LEGACY_USER_KEY)
        if raw is None:
            return None

        try:
            if isinstance(raw, str):
                raw = json.loads(raw)
            if isinstance(raw, dict) and raw.get("username"):
                raw = {**raw, "id": str(raw.get("id") or raw["username"])}
            user = User.model_validate(raw)
        except (ValueError, ValidationError) as e:
            logger.warning("Dropping unreadable legacy session", error=str(e))
            self.storage.delete(LEGACY_USER_KEY)
            self.storage.delete(LEGACY_TOKEN_KEY)
            return None

        token = self.storage.get(LEGACY_TOKEN_KEY)
        session = Session.start(
            user,
            token if isinstance(token, str) and token else None,
            self.clock(),
            self.session_duration,
        )
        self._write(session)
        self.storage.delete(LEGACY_USER_KEY)
        self.storage.delete(LEGACY_TOKEN_KEY)
        logger.info("Migrated legacy session", username=user.username)
        return session
