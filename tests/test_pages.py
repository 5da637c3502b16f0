from __future__ import annotations

import os

import pytest
from starlette.requests import Request

from filebrowser import main
from filebrowser.services.path_protection import InvalidPathToken
from filebrowser.session_state import UserInfo


def _request(path: str, query: bytes = b'') -> Request:
    scope = {
        'type': 'http',
        'http_version': '1.1',
        'method': 'GET',
        'scheme': 'http',
        'path': path,
        'raw_path': path.encode(),
        'query_string': query,
        'headers': [(b'accept-language', b'mk')],
        'client': ('127.0.0.1', 12345),
        'server': ('testserver', 80),
    }
    return Request(scope)


def test_files_page_redirects_anonymous_user(monkeypatch):
    monkeypatch.setattr(main, '_current_user_info', lambda _request: None)

    response = main.files_page(_request('/files'), token='')

    assert response.status_code == 307
    assert response.headers['location'] == '/'


def test_files_page_renders_layout_with_tokens(monkeypatch, tmp_path):
    root = tmp_path / 'alice'
    (root / 'docs').mkdir(parents=True)
    (root / 'docs' / 'report.pdf').write_bytes(b'%PDF')
    monkeypatch.setattr(main, '_current_user_info', lambda _request: UserInfo('alice', str(root)))

    response = main.files_page(_request('/files', b'token=/docs'), token='/docs')
    body = response.body.decode()

    assert response.status_code == 200
    assert 'alice' in body
    assert 'href="/logout"' in body
    assert 'lang="MK_mk"' in body
    assert '/api/files/download?token=/docs/report.pdf' in body
    assert str(root) not in body


def test_files_page_rejects_traversal(monkeypatch, tmp_path):
    monkeypatch.setattr(main, '_current_user_info', lambda _request: UserInfo('alice', str(tmp_path)))

    with pytest.raises(InvalidPathToken):
        main.files_page(_request('/files'), token='/../..')


def test_root_page_redirects_logged_in_user(monkeypatch):
    monkeypatch.setattr(main, '_current_user_info', lambda _request: UserInfo('alice', '/home/alice'))

    response = main.root(_request('/'))

    assert response.headers['location'] == '/files'


def test_root_page_renders_login_form(monkeypatch):
    monkeypatch.setattr(main, '_current_user_info', lambda _request: None)

    response = main.root(_request('/'))

    assert b'login-form' in response.body


def test_healthz():
    assert main.healthz() == {'ok': True}


def test_files_page_lists_root_with_dangling_symlink(monkeypatch, tmp_path):
    root = tmp_path / 'alice'
    root.mkdir()
    os.symlink(root / 'gone', root / 'dangling')
    monkeypatch.setattr(main, '_current_user_info', lambda _request: UserInfo('alice', str(root)))

    response = main.files_page(_request('/files'), token='')

    assert response.status_code == 200
    assert 'dangling' in response.body.decode()
