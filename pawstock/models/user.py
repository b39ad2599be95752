"""User and session data models"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict


class User(BaseModel):
    """Display identity of the logged-in administrator"""
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    role: str = "admin"  # single-role system


class Session(BaseModel):
    """
    Current-format session record.

    expires_at is always issued_at + the configured session duration.
    """
    model_config = ConfigDict(frozen=True)

    user: User
    token: Optional[str] = None
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def start(
        cls,
        user: User,
        token: Optional[str],
        now: datetime,
        duration: timedelta,
    ) -> "Session":
        return cls(user=user, token=token, issued_at=now, expires_at=now + duration)

    def is_valid_at(self, now: datetime) -> bool:
        return now <= self.expires_at

    def extended(self, now: datetime, duration: timedelta) -> "Session":
        """Same user and token, new window starting at now"""
        return Session.start(self.user, self.token, now, duration)
