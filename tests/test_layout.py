from __future__ import annotations

import pytest
from starlette.requests import Request

from filebrowser.config import Settings
from filebrowser.layout import MalformedLogoutUrl, build_layout, build_logout_url, negotiate_locale, parse_locales
from filebrowser.session_state import UserInfo


def _request(accept_language: str | None = None) -> Request:
    headers = []
    if accept_language:
        headers.append((b'accept-language', accept_language.encode()))
    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': 'GET',
        'scheme': 'http',
        'path': '/files',
        'raw_path': b'/files',
        'query_string': b'',
        'headers': headers,
        'client': ('127.0.0.1', 12345),
        'server': ('testserver', 80),
    }
    return Request(scope)


def test_logout_url_points_back_to_application():
    assert build_logout_url('https://cas.example.org', 'files.example.org:8080') == (
        'https://cas.example.org/cas/logout?url=http://files.example.org:8080/'
    )


def test_logout_url_ignores_trailing_slash_on_cas_server():
    assert build_logout_url('https://cas.example.org/', 'app') == 'https://cas.example.org/cas/logout?url=http://app/'


@pytest.mark.parametrize('cas_server', ['', 'cas.example.org', 'ftp://cas.example.org', 'https://'])
def test_logout_url_rejects_malformed_cas_server(cas_server):
    with pytest.raises(MalformedLogoutUrl):
        build_logout_url(cas_server, 'app')


def test_logout_url_rejects_app_server_with_path():
    with pytest.raises(MalformedLogoutUrl):
        build_logout_url('https://cas.example.org', 'app/evil')


def test_parse_locales():
    assert parse_locales('en, MK_mk') == ['en', 'MK_mk']
    assert parse_locales(' , ') == []


@pytest.mark.parametrize(
    ('header', 'expected'),
    [
        (None, 'en'),
        ('fr-FR,fr;q=0.9', 'en'),
        ('mk-MK,mk;q=0.9,en;q=0.8', 'MK_mk'),
        ('mk', 'MK_mk'),
        ('en-US,en;q=0.9', 'en'),
        ('de;q=0.5, mk;q=0.9', 'MK_mk'),
        ('mk;q=0, en', 'en'),
        ('*', 'en'),
    ],
)
def test_negotiate_locale(header, expected):
    assert negotiate_locale(header, ['en', 'MK_mk']) == expected


def test_negotiate_locale_without_supported_locales():
    assert negotiate_locale('mk', []) == 'en'


def test_build_layout_for_logged_in_user():
    settings = Settings(app_server='files.example.org', app_version='2.0', supported_locales='en, MK_mk')
    context = build_layout('Files', UserInfo('alice', '/home/alice'), _request('mk'), settings)

    assert context['title'] == 'Files'
    assert context['username'] == 'alice'
    assert context['logout_url'] == '/logout'
    assert context['index_url'] == '/files'
    assert context['app_server'] == 'files.example.org'
    assert context['app_version'] == '2.0'
    assert context['locale'] == 'MK_mk'
    assert '/home/alice' not in context.values()


def test_build_layout_anonymous():
    context = build_layout('Login', None, _request(), Settings())

    assert context['username'] is None
    assert context['locale'] == 'en'
