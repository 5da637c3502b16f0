from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from .db import get_db
from .security import session_id_from_token
from .services.file_encoder import FileReferenceEncoder
from .services.file_ops import FileOps
from .session_state import RequestSessionAccessor, SessionStore, UserInfo


def _extract_token(request: Request) -> Optional[str]:
    auth = request.headers.get('Authorization', '')
    if auth.startswith('Bearer '):
        return auth.split(' ', 1)[1]
    return request.cookies.get('access_token') or None


def session_id_from_request(request: Request) -> Optional[str]:
    token = _extract_token(request)
    return session_id_from_token(token) if token else None


def load_user_info(request: Request, db: Session) -> Optional[UserInfo]:
    return SessionStore(db).get(session_id_from_request(request))


def get_current_user(request: Request, db: Session = Depends(get_db)) -> UserInfo:
    if not _extract_token(request):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Missing token')

    user_info = load_user_info(request, db)
    if user_info is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Session expired or invalid')
    return user_info


def get_file_ops(user_info: UserInfo = Depends(get_current_user)) -> FileOps:
    return FileOps(FileReferenceEncoder(RequestSessionAccessor(user_info)))


def enforce_csrf(request: Request):
    if request.method in {'GET', 'HEAD', 'OPTIONS'}:
        return

    if request.url.path.startswith('/api/auth/login'):
        return

    cookie = request.cookies.get('csrf_token')
    header = request.headers.get('X-CSRF-Token')
    if not cookie or not header or cookie != header:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='CSRF validation failed')
