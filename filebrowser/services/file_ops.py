from __future__ import annotations

import os
from pathlib import Path

from .file_encoder import FileModel, FileReferenceEncoder


def validate_name(name: str) -> str:
    if not name or name in {'.', '..'} or '/' in name or '\\' in name or '\x00' in name:
        raise ValueError('Invalid file name')
    return name


class FileOps:
    def __init__(self, encoder: FileReferenceEncoder):
        self.encoder = encoder

    def _root(self) -> Path:
        return FileModel.from_path(self.encoder.accessor.get_current_root_folder()).to_path()

    def resolve(self, token: str) -> Path:
        return self.encoder.to_path(token)

    def list_dir(self, token: str) -> list[dict]:
        target = self.resolve(token)
        if not target.exists() or not target.is_dir():
            raise FileNotFoundError('Directory not found')

        items: list[dict] = []
        for entry in target.iterdir():
            # dangling links are listed, not followed
            try:
                stat = entry.lstat()
            except OSError:
                continue
            items.append(
                {
                    'name': entry.name,
                    'token': self.encoder.to_client(entry),
                    'is_dir': entry.is_dir(),
                    'size': stat.st_size,
                    'mtime': int(stat.st_mtime),
                }
            )
        return items

    def mkdir(self, token: str, name: str) -> str:
        target = self.resolve(token) / validate_name(name)
        target.mkdir(parents=False, exist_ok=False)
        return self.encoder.to_client(target)

    def delete(self, token: str):
        target = self.resolve(token)
        if target == self._root():
            raise PermissionError('Cannot delete root folder')
        if target.is_dir() and not target.is_symlink():
            os.rmdir(target)
        else:
            target.unlink(missing_ok=False)

    def rename(self, token: str, new_name: str) -> str:
        target = self.resolve(token)
        if target == self._root():
            raise PermissionError('Cannot rename root folder')
        renamed = target.with_name(validate_name(new_name))
        target.rename(renamed)
        return self.encoder.to_client(renamed)

    def breadcrumbs(self, token: str) -> list[dict]:
        current = self.encoder.to_value(token).to_path()
        root = self._root()
        crumbs = [{'name': '/', 'token': ''}]
        for part in current.relative_to(root).parts:
            root = root / part
            crumbs.append({'name': part, 'token': self.encoder.to_client(root)})
        return crumbs
