from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from ..session_state import SessionAccessor
from .path_protection import decode, encode


@dataclass(frozen=True)
class FileModel:
    absolute_path: str

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike]) -> 'FileModel':
        return cls(absolute_path=os.path.normpath(os.path.abspath(os.fspath(path))))

    @property
    def name(self) -> str:
        return Path(self.absolute_path).name

    def to_path(self) -> Path:
        return Path(self.absolute_path)


class FileReferenceEncoder:
    """Converts file references to client tokens scoped to the current user's root folder."""

    def __init__(self, accessor: SessionAccessor):
        self.accessor = accessor

    def to_client(self, value: Union[FileModel, str, os.PathLike]) -> str:
        path = value.absolute_path if isinstance(value, FileModel) else os.fspath(value)
        return encode(path, self.accessor.get_current_root_folder())

    def to_value(self, token: str) -> FileModel:
        return FileModel(absolute_path=decode(token, self.accessor.get_current_root_folder()))

    def to_path(self, token: str) -> Path:
        return self.to_value(token).to_path()
