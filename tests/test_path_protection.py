from __future__ import annotations

import os

import pytest

from filebrowser.services.path_protection import InvalidPathToken, decode, encode


def test_encode_strips_root_folder():
    assert encode('/home/alice/docs/report.pdf', '/home/alice') == '/docs/report.pdf'


def test_decode_prepends_root_folder():
    assert decode('/docs/report.pdf', '/home/alice') == '/home/alice/docs/report.pdf'


def test_root_folder_encodes_to_empty_token():
    assert encode('/home/alice', '/home/alice') == ''
    assert encode('/home/alice/', '/home/alice') == ''
    assert decode('', '/home/alice') == '/home/alice'
    assert decode('/', '/home/alice') == '/home/alice'


def test_trailing_slash_on_root_is_ignored():
    assert encode('/home/alice/docs', '/home/alice/') == '/docs'
    assert decode('/docs', '/home/alice/') == '/home/alice/docs'


def test_decode_accepts_token_without_leading_slash():
    assert decode('docs/report.pdf', '/home/alice') == '/home/alice/docs/report.pdf'


@pytest.mark.parametrize(
    'path',
    [
        '/home/alice/docs/report.pdf',
        '/home/alice/a b/c.txt',
        '/home/alice/home/alice/notes.txt',
        '/home/alice/..hidden',
    ],
)
def test_decode_reverses_encode(path):
    assert decode(encode(path, '/home/alice'), '/home/alice') == path


@pytest.mark.parametrize('token', ['', '/docs', '/docs/report.pdf', '/home/alice/nested'])
def test_encode_reverses_decode(token):
    assert encode(decode(token, '/home/alice'), '/home/alice') == token


def test_path_repeating_root_string_only_strips_leading_root():
    assert encode('/home/alice/home/alice/notes.txt', '/home/alice') == '/home/alice/notes.txt'


@pytest.mark.parametrize('token', ['../../etc/passwd', '/../../etc/passwd', '/docs/../../bob/secret', '..'])
def test_decode_rejects_traversal(token):
    with pytest.raises(InvalidPathToken) as exc:
        decode(token, '/home/alice')

    assert exc.value.token == token
    assert exc.value.root_folder == '/home/alice'


def test_decode_allows_dotdot_that_stays_inside_root():
    assert decode('/docs/../music', '/home/alice') == '/home/alice/music'


def test_decode_rejects_nul_byte():
    with pytest.raises(InvalidPathToken):
        decode('/docs\x00/x', '/home/alice')


@pytest.mark.parametrize('path', ['/home/alicex/file.txt', '/srv/home/alice/file.txt', '/etc/passwd', '/home'])
def test_encode_rejects_paths_outside_root(path):
    with pytest.raises(InvalidPathToken):
        encode(path, '/home/alice')


def test_invalid_path_token_is_value_error():
    with pytest.raises(ValueError):
        decode('../x', '/home/alice')


def test_decode_rejects_symlink_escaping_root(tmp_path):
    root = tmp_path / 'alice'
    outside = tmp_path / 'outside'
    root.mkdir()
    outside.mkdir()
    (outside / 'secret.txt').write_text('secret')
    os.symlink(outside, root / 'link')

    with pytest.raises(InvalidPathToken):
        decode('/link/secret.txt', str(root))


def test_decode_allows_symlink_inside_root(tmp_path):
    root = tmp_path / 'alice'
    (root / 'real').mkdir(parents=True)
    os.symlink(root / 'real', root / 'alias')

    assert decode('/alias/file.txt', str(root)) == str(root / 'alias' / 'file.txt')
