from __future__ import annotations

import logging
import os
import shutil

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import FileResponse

from ..deps import get_file_ops
from ..schemas import ApiResponse, FileActionRequest, FileEntry, MkdirRequest
from ..services.file_ops import FileOps, validate_name
from ..services.path_protection import InvalidPathToken

router = APIRouter(prefix='/api/files', tags=['files'])

logger = logging.getLogger('filebrowser.files')

# OSError messages carry absolute paths; clients only ever get these
_OS_ERRORS: list[tuple[type[OSError], int, str]] = [
    (FileExistsError, 400, 'Already exists'),
    (FileNotFoundError, 404, 'Not found'),
    (NotADirectoryError, 400, 'Not a directory'),
    (IsADirectoryError, 400, 'Is a directory'),
    (PermissionError, 403, 'Permission denied'),
    (OSError, 400, 'Operation failed'),
]


def _rejected(exc: InvalidPathToken) -> HTTPException:
    logger.warning('Rejected path token %r: %s', exc.token, exc.reason)
    return HTTPException(status_code=403, detail='Invalid path token')


def _failed(exc: Exception) -> HTTPException:
    if isinstance(exc, InvalidPathToken):
        return _rejected(exc)
    if isinstance(exc, OSError):
        logger.warning('File operation failed: %s', exc)
        for kind, status_code, message in _OS_ERRORS:
            if isinstance(exc, kind):
                return HTTPException(status_code=status_code, detail=message)
    return HTTPException(status_code=400, detail=str(exc))


@router.get('/list')
def list_files(
    token: str = Query(default=''),
    sort_by: str = Query(default='name', pattern='^(name|size|date)$'),
    order: str = Query(default='asc', pattern='^(asc|desc)$'),
    ops: FileOps = Depends(get_file_ops),
):
    try:
        items = ops.list_dir(token)
    except (ValueError, OSError) as exc:
        raise _failed(exc)

    reverse = order == 'desc'
    key_map = {'name': lambda i: i['name'].lower(), 'size': lambda i: i['size'], 'date': lambda i: i['mtime']}
    items.sort(key=key_map[sort_by], reverse=reverse)
    return {'ok': True, 'data': [FileEntry(**item) for item in items]}


@router.post('/upload')
def upload(token: str = Query(default=''), file: UploadFile = File(...), ops: FileOps = Depends(get_file_ops)):
    try:
        target_dir = ops.resolve(token)
        name = validate_name(file.filename or '')
    except ValueError as exc:
        raise _failed(exc)

    if not target_dir.is_dir():
        raise HTTPException(status_code=404, detail='Directory not found')

    target = target_dir / name
    try:
        with target.open('wb') as f:
            shutil.copyfileobj(file.file, f, 1024 * 1024)
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        raise _failed(exc)
    return ApiResponse(ok=True, message='Uploaded', data={'token': ops.encoder.to_client(target)})


@router.get('/download')
def download(token: str = Query(...), ops: FileOps = Depends(get_file_ops)):
    try:
        target = ops.resolve(token)
    except ValueError as exc:
        raise _failed(exc)

    if not target.exists() or not target.is_file():
        raise HTTPException(status_code=404, detail='File not found')
    return FileResponse(target, filename=target.name)


@router.post('/mkdir')
def mkdir(payload: MkdirRequest, ops: FileOps = Depends(get_file_ops)):
    try:
        created = ops.mkdir(payload.token, payload.name)
    except (ValueError, OSError) as exc:
        raise _failed(exc)
    return ApiResponse(ok=True, message='Folder created', data={'token': created})


@router.post('/rename')
def rename(payload: FileActionRequest, ops: FileOps = Depends(get_file_ops)):
    if not payload.new_name:
        raise HTTPException(status_code=400, detail='new_name is required')
    try:
        renamed = ops.rename(payload.token, payload.new_name)
    except (ValueError, OSError) as exc:
        raise _failed(exc)
    return ApiResponse(ok=True, message='Renamed', data={'token': renamed})


@router.post('/delete')
def delete(payload: FileActionRequest, ops: FileOps = Depends(get_file_ops)):
    try:
        full = ops.resolve(payload.token)
        if full.is_dir() and any(full.iterdir()):
            raise HTTPException(status_code=400, detail='Directory not empty')
        ops.delete(payload.token)
    except (ValueError, OSError) as exc:
        raise _failed(exc)
    return ApiResponse(ok=True, message='Deleted')
