from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


class UserInfoOut(BaseModel):
    username: str


class FileEntry(BaseModel):
    name: str
    token: str
    is_dir: bool
    size: int
    mtime: int


class FileActionRequest(BaseModel):
    token: str
    new_name: Optional[str] = None


class MkdirRequest(BaseModel):
    token: str = ''
    name: str = Field(min_length=1, max_length=255)


class ApiResponse(BaseModel):
    ok: bool
    message: str
    data: Optional[Any] = None
