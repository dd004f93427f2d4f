"""File download endpoints for stored objects"""
import mimetypes

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from hrdesk.services.storage import ATTACHMENTS_BUCKET, LocalObjectStorage, StorageError, get_storage

router = APIRouter()

PUBLIC_BUCKETS = frozenset({ATTACHMENTS_BUCKET})


def _file_response(storage: LocalObjectStorage, bucket: str, path: str) -> FileResponse:
    try:
        local_path = storage.local_path(bucket, path)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    media_type = mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"
    return FileResponse(str(local_path), media_type=media_type, filename=local_path.name)


@router.get("/public/{bucket}/{path:path}")
def download_public(bucket: str, path: str, storage: LocalObjectStorage = Depends(get_storage)):
    if bucket not in PUBLIC_BUCKETS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return _file_response(storage, bucket, path)


@router.get("/signed/{token}")
def download_signed(token: str, storage: LocalObjectStorage = Depends(get_storage)):
    try:
        bucket, path = storage.resolve_signed_token(token)
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    return _file_response(storage, bucket, path)
