"""File transfer routes, each transfer recorded in the access log."""
import base64
import binascii
from pathlib import Path
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from . import schemas
from .access_log import AccessLog, FileTransfer, get_access_log
from .auth import client_ip, get_current_session
from .config import FILES_DIR
from .logging_config import configure_logging
from ..shared.utils import split_remote_path

router = APIRouter(prefix="/files", tags=["files"])
logger = configure_logging()


def get_files_dir() -> Path:
    return FILES_DIR


def _user_path(files_dir: Path, login: str, path: str) -> Path:
    try:
        parts = split_remote_path(path)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid path")
    root = files_dir.resolve()
    user_dir = (root / login).resolve()
    if user_dir.parent != root:
        raise HTTPException(status_code=400, detail="Invalid path")
    target = user_dir.joinpath(*parts).resolve()
    # symlinks inside the user directory must not lead outside it
    if target == user_dir or user_dir not in target.parents:
        raise HTTPException(status_code=400, detail="Invalid path")
    return target


@router.put("/{path:path}")
def upload_file(
    path: str,
    payload: schemas.FileUpload,
    request: Request,
    session: Dict[str, object] = Depends(get_current_session),
    journal: AccessLog = Depends(get_access_log),
    files_dir: Path = Depends(get_files_dir),
):
    login = str(session["login"])
    ip = client_ip(request)
    try:
        target = _user_path(files_dir, login, path)
        content = base64.b64decode(payload.content_b64, validate=True)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
    except (binascii.Error, OSError, HTTPException) as exc:
        logger.warning("UPLOAD_FAIL login=%s path=%s error=%s", login, path, exc)
        journal.log_access(FileTransfer(ip=ip, user=login, path=path, success=False))
        if isinstance(exc, HTTPException):
            raise
        raise HTTPException(status_code=400, detail="Upload failed") from exc
    logger.info("UPLOAD_SUCCESS login=%s path=%s size=%s", login, path, len(content))
    journal.log_access(FileTransfer(ip=ip, user=login, path=path, success=True))
    return {"message": "File stored", "size": len(content)}


@router.get("/{path:path}", response_model=schemas.FileOut)
def download_file(
    path: str,
    request: Request,
    session: Dict[str, object] = Depends(get_current_session),
    journal: AccessLog = Depends(get_access_log),
    files_dir: Path = Depends(get_files_dir),
):
    login = str(session["login"])
    ip = client_ip(request)
    try:
        target = _user_path(files_dir, login, path)
        if not target.is_file():
            raise HTTPException(status_code=404, detail="File not found")
        content = target.read_bytes()
    except (OSError, HTTPException) as exc:
        logger.warning("DOWNLOAD_FAIL login=%s path=%s error=%s", login, path, exc)
        journal.log_access(FileTransfer(ip=ip, user=login, path=path, success=False))
        if isinstance(exc, HTTPException):
            raise
        raise HTTPException(status_code=500, detail="Download failed") from exc
    logger.info("DOWNLOAD_SUCCESS login=%s path=%s size=%s", login, path, len(content))
    journal.log_access(FileTransfer(ip=ip, user=login, path=path, success=True))
    return schemas.FileOut(path=path, content_b64=base64.b64encode(content).decode(), size=len(content))
