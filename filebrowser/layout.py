from __future__ import annotations

from typing import Optional
from urllib.parse import urlsplit

from fastapi import Request

from .config import Settings
from .session_state import UserInfo


class MalformedLogoutUrl(ValueError):
    pass


def build_logout_url(cas_server: str, app_server: str) -> str:
    """CAS logout endpoint that sends the browser back to the application afterwards."""
    base = urlsplit(cas_server)
    if base.scheme not in {'http', 'https'} or not base.netloc:
        raise MalformedLogoutUrl(f'CAS server is not an absolute URL: {cas_server!r}')
    if not app_server or '/' in app_server:
        raise MalformedLogoutUrl(f'Application server must be host[:port]: {app_server!r}')
    return f"{cas_server.rstrip('/')}/cas/logout?url=http://{app_server}/"


def parse_locales(value: str) -> list[str]:
    return [locale.strip() for locale in value.split(',') if locale.strip()]


def negotiate_locale(accept_language: Optional[str], supported: list[str]) -> str:
    if not supported:
        return 'en'

    by_tag = {locale.lower().replace('_', '-'): locale for locale in supported}
    by_primary: dict[str, str] = {}
    for tag, locale in by_tag.items():
        by_primary.setdefault(tag.split('-')[0], locale)

    ranked: list[tuple[float, int, str]] = []
    for index, part in enumerate((accept_language or '').split(',')):
        lang, _, params = part.strip().partition(';')
        lang = lang.strip().lower().replace('_', '-')
        if not lang or lang == '*':
            continue
        quality = 1.0
        params = params.strip()
        if params.startswith('q='):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        if quality > 0:
            ranked.append((-quality, index, lang))

    for _, _, lang in sorted(ranked):
        if lang in by_tag:
            return by_tag[lang]
        primary = lang.split('-')[0]
        if primary in by_primary:
            return by_primary[primary]
    return supported[0]


def build_layout(title: str, user_info: Optional[UserInfo], request: Request, settings: Settings) -> dict:
    return {
        'request': request,
        'title': title,
        'username': user_info.username if user_info else None,
        'index_url': '/files',
        'app_server': settings.app_server,
        'logout_url': '/logout',
        'app_name': settings.app_name,
        'app_version': settings.app_version,
        'production_mode': settings.production_mode,
        'locale': negotiate_locale(request.headers.get('accept-language'), parse_locales(settings.supported_locales)),
    }
