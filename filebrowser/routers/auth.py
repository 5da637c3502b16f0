from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..config import settings
from ..db import get_db
from ..deps import get_current_user, session_id_from_request
from ..layout import build_logout_url
from ..models import LoginAttempt, User
from ..schemas import LoginRequest, TokenResponse, UserInfoOut
from ..security import create_access_token, new_csrf_token, verify_password
from ..session_state import SessionStore, UserInfo

router = APIRouter(prefix='/api/auth', tags=['auth'])
page_router = APIRouter(tags=['auth'])

logger = logging.getLogger('filebrowser.auth')

MAX_ATTEMPTS = 5
LOCK_MINUTES = 10


def _client_ip(request: Request) -> str:
    xff = request.headers.get('x-forwarded-for')
    if xff:
        return xff.split(',')[0].strip()
    return request.client.host if request.client else 'unknown'


def root_folder_for(user: User) -> str:
    folder = Path(user.root_folder) if user.root_folder else Path(settings.files_root) / user.username
    folder = folder.resolve(strict=False)
    folder.mkdir(parents=True, exist_ok=True)
    return str(folder)


@router.post('/login', response_model=TokenResponse)
def login(payload: LoginRequest, request: Request, response: Response, db: Session = Depends(get_db)):
    ip = _client_ip(request)
    now = datetime.now(timezone.utc).replace(tzinfo=None)

    attempt = db.query(LoginAttempt).filter(LoginAttempt.username == payload.username, LoginAttempt.ip_address == ip).first()
    if attempt and attempt.lock_until and attempt.lock_until > now:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail='Account temporarily locked')

    user = db.query(User).filter(User.username == payload.username, User.is_active.is_(True)).first()
    if not user or not verify_password(payload.password, user.password_hash):
        if not attempt:
            attempt = LoginAttempt(username=payload.username, ip_address=ip, failed_count=0, last_attempt=now)
            db.add(attempt)
        attempt.failed_count += 1
        attempt.last_attempt = now
        if attempt.failed_count >= MAX_ATTEMPTS:
            attempt.lock_until = now + timedelta(minutes=LOCK_MINUTES)
            logger.warning('Locking login for %s from %s after %d failures', payload.username, ip, attempt.failed_count)
        db.commit()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

    if attempt:
        attempt.failed_count = 0
        attempt.lock_until = None
        attempt.last_attempt = now
        db.commit()

    user_info = UserInfo(username=user.username, root_folder=root_folder_for(user))
    session_id = SessionStore(db).create(user_info, settings.session_expire_minutes)
    logger.info('User %s logged in from %s', user.username, ip)

    token = create_access_token(user.username, session_id)
    csrf = new_csrf_token()
    is_https = request.url.scheme == 'https'
    max_age = settings.session_expire_minutes * 60
    response.set_cookie('access_token', token, httponly=True, secure=is_https, samesite='strict', max_age=max_age)
    response.set_cookie('csrf_token', csrf, httponly=False, secure=is_https, samesite='strict', max_age=max_age)
    return TokenResponse(access_token=token)


@router.get('/me', response_model=UserInfoOut)
def me(user_info: UserInfo = Depends(get_current_user)):
    return UserInfoOut(username=user_info.username)


def _logout(request: Request, db: Session) -> RedirectResponse:
    session_id = session_id_from_request(request)
    if session_id and SessionStore(db).invalidate(session_id):
        logger.info('Session invalidated on logout')

    response = RedirectResponse(build_logout_url(settings.cas_server, settings.app_server), status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie('access_token')
    response.delete_cookie('csrf_token')
    return response


@router.post('/logout')
def logout(request: Request, db: Session = Depends(get_db)):
    return _logout(request, db)


@page_router.get('/logout')
def logout_page(request: Request, db: Session = Depends(get_db)):
    return _logout(request, db)
