from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from .config import settings
from .db import SessionLocal, init_db
from .deps import enforce_csrf, load_user_info
from .layout import build_layout
from .models import User
from .routers import auth, files
from .security import hash_password
from .services.file_encoder import FileReferenceEncoder
from .services.file_ops import FileOps
from .services.path_protection import InvalidPathToken
from .session_state import NotAuthenticated, RequestSessionAccessor

BASE_DIR = Path(__file__).resolve().parent

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
timing_logger = logging.getLogger('filebrowser.timing')
error_logger = logging.getLogger('filebrowser.errors')

_SECURITY_HEADERS = {
    'Content-Security-Policy': "default-src 'self'; style-src 'self'",
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.jwt_secret == 'change-me':
        raise RuntimeError('Refusing to start with insecure default JWT secret. Set JWT_SECRET in .env')

    Path(settings.files_root).mkdir(parents=True, exist_ok=True)
    init_db()

    db: Session = SessionLocal()
    try:
        if not db.query(User).first():
            admin = User(username='admin', password_hash=hash_password('admin12345'))
            db.add(admin)
            db.commit()
    finally:
        db.close()
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)


def _parse_cors_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(',') if origin.strip()]


cors_origins = _parse_cors_origins(settings.cors_origins)
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=['GET', 'POST', 'OPTIONS'],
        allow_headers=['Authorization', 'Content-Type', 'X-CSRF-Token'],
    )

app.mount('/static', StaticFiles(directory=BASE_DIR / 'static'), name='static')
templates = Jinja2Templates(directory=BASE_DIR / 'templates')


def _apply_security_headers(response):
    for key, value in _SECURITY_HEADERS.items():
        response.headers[key] = value
    return response


@app.middleware('http')
async def security_middleware(request: Request, call_next):
    path = request.url.path

    if request.method in {'POST', 'PUT', 'PATCH', 'DELETE'} and path.startswith('/api/') and path != '/api/auth/login':
        try:
            enforce_csrf(request)
        except HTTPException as exc:
            return _apply_security_headers(JSONResponse({'detail': exc.detail}, status_code=exc.status_code))

    response = await call_next(request)
    return _apply_security_headers(response)


@app.middleware('http')
async def timing_middleware(request: Request, call_next):
    start = time.perf_counter()
    try:
        return await call_next(request)
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        timing_logger.info('Request time: %d ms', elapsed_ms)


@app.exception_handler(InvalidPathToken)
async def invalid_path_token_handler(request: Request, exc: InvalidPathToken):
    if request.url.path.startswith('/api/'):
        return JSONResponse({'detail': 'Invalid path token'}, status_code=403)
    return HTMLResponse('<h1>Forbidden</h1>', status_code=403)


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    if request.url.path.startswith('/api/'):
        return JSONResponse({'detail': 'Not authenticated'}, status_code=401)
    return RedirectResponse('/')


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    error_logger.error('Unhandled error on %s %s', request.method, request.url.path, exc_info=exc)
    if request.url.path.startswith('/api/'):
        return JSONResponse({'detail': 'Internal server error. Please try again.'}, status_code=500)
    return HTMLResponse('<h1>Unexpected error</h1><p>Please try again later.</p>', status_code=500)


def _current_user_info(request: Request):
    db: Session = SessionLocal()
    try:
        return load_user_info(request, db)
    finally:
        db.close()


@app.get('/', response_class=HTMLResponse)
def root(request: Request):
    user_info = _current_user_info(request)
    if user_info:
        return RedirectResponse('/files')
    return templates.TemplateResponse(request, 'login.html', build_layout('Login', None, request, settings))


@app.get('/files', response_class=HTMLResponse)
def files_page(request: Request, token: str = Query(default='')):
    user_info = _current_user_info(request)
    if not user_info:
        return RedirectResponse('/')

    ops = FileOps(FileReferenceEncoder(RequestSessionAccessor(user_info)))
    try:
        items = sorted(ops.list_dir(token), key=lambda i: (not i['is_dir'], i['name'].lower()))
    except FileNotFoundError:
        if not token:
            raise
        return RedirectResponse('/files')

    context = build_layout('Files', user_info, request, settings)
    context.update({'items': items, 'breadcrumbs': ops.breadcrumbs(token), 'current_token': token})
    return templates.TemplateResponse(request, 'files.html', context)


@app.get('/healthz')
def healthz():
    return {'ok': True}


app.include_router(auth.router)
app.include_router(auth.page_router)
app.include_router(files.router)


def run():
    import uvicorn

    uvicorn.run('filebrowser.main:app', host=settings.app_host, port=settings.app_port, log_level=settings.log_level)
