"""Translate absolute server paths to root-relative client tokens and back.

A token is what the browser sees in place of a real filesystem path: the
root folder of the logged-in user is stripped on the way out and added back
on the way in. ``''`` stands for the root itself, every other token starts
with ``/``.

Both directions refuse paths that do not live beneath the root folder, so a
token such as ``/../../etc/passwd`` can never be turned into a path outside
of it.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath


class InvalidPathToken(ValueError):
    def __init__(self, token: str, root_folder: str, reason: str = 'Path escapes root folder'):
        super().__init__(reason)
        self.token = token
        self.root_folder = root_folder
        self.reason = reason


def _normalize(path: str | os.PathLike) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def _is_within(candidate: Path, root: Path) -> bool:
    return candidate == root or root in candidate.parents


def encode(absolute_path: str | os.PathLike, root_folder: str | os.PathLike) -> str:
    path = _normalize(absolute_path)
    root = _normalize(root_folder)

    if path == root:
        return ''

    try:
        relative = PurePosixPath(path).relative_to(PurePosixPath(root))
    except ValueError:
        raise InvalidPathToken(path, root, 'Path is not inside root folder') from None
    return '/' + relative.as_posix()


def decode(token: str, root_folder: str | os.PathLike) -> str:
    root = _normalize(root_folder)
    if '\x00' in token:
        raise InvalidPathToken(token, root, 'Token contains NUL byte')

    joined = os.path.normpath(os.path.join(root, token.lstrip('/')))

    # lexical check first, then the symlink-resolved one
    if not _is_within(Path(joined), Path(root)):
        raise InvalidPathToken(token, root)
    if not _is_within(Path(joined).resolve(strict=False), Path(root).resolve(strict=False)):
        raise InvalidPathToken(token, root, 'Path resolves outside root folder')
    return joined
