from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from secrets import token_urlsafe
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from .models import UserSession


class NotAuthenticated(Exception):
    pass


@dataclass(frozen=True)
class UserInfo:
    username: str
    root_folder: str


class SessionAccessor(Protocol):
    def get_current_user(self) -> UserInfo:
        ...

    def get_current_root_folder(self) -> str:
        ...


class RequestSessionAccessor:
    """Exposes the ``UserInfo`` bound to the request being handled."""

    def __init__(self, user_info: Optional[UserInfo]):
        self._user_info = user_info

    def get_current_user(self) -> UserInfo:
        if self._user_info is None:
            raise NotAuthenticated('No user is logged in')
        return self._user_info

    def get_current_root_folder(self) -> str:
        return self.get_current_user().root_folder


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SessionStore:
    """Server-side session slots, one ``UserInfo`` per session id."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_info: UserInfo, ttl_minutes: int) -> str:
        now = _utcnow()
        session_id = token_urlsafe(32)
        self.db.add(
            UserSession(
                id=session_id,
                username=user_info.username,
                root_folder=user_info.root_folder,
                created_at=now,
                expires_at=now + timedelta(minutes=ttl_minutes),
            )
        )
        self.db.commit()
        return session_id

    def get(self, session_id: Optional[str]) -> Optional[UserInfo]:
        if not session_id:
            return None
        row = self.db.get(UserSession, session_id)
        if row is None:
            return None
        if row.expires_at <= _utcnow():
            self.db.delete(row)
            self.db.commit()
            return None
        return UserInfo(username=row.username, root_folder=row.root_folder)

    def invalidate(self, session_id: Optional[str]) -> bool:
        if not session_id:
            return False
        row = self.db.get(UserSession, session_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True
