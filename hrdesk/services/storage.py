"""Local filesystem object storage with public and signed URLs."""
import logging
import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Iterable, List, NamedTuple, Optional, Tuple
from urllib.parse import quote

from itsdangerous import BadSignature, URLSafeTimedSerializer

from hrdesk.config import settings

logger = logging.getLogger(__name__)

ATTACHMENTS_BUCKET = "task-attachments"
DOCUMENTS_BUCKET = "documents"


class StorageError(Exception):
    """Raised for missing objects, invalid paths and bad signed tokens."""


class StoredObject(NamedTuple):
    bucket: str
    path: str
    size: int
    content_type: Optional[str]
    public_url: str


def split_extension(file_name: str) -> Tuple[str, str]:
    """Split ``report.pdf`` into ``("report", ".pdf")`` at the last dot."""
    index = file_name.rfind(".")
    if index <= 0:
        return file_name, ""
    return file_name[:index], file_name[index:]


def unique_file_name(file_name: str, existing_names: Iterable[str]) -> str:
    """Return ``file_name`` or the next free ``base (n).ext`` variant.

    The suffix is one more than the highest suffix already in use, so
    uploading ``report.pdf`` twice yields ``report (1).pdf``.
    """
    existing = set(existing_names)
    if file_name not in existing:
        return file_name

    base, extension = split_extension(file_name)
    pattern = re.compile(rf"^{re.escape(base)} \((\d+)\){re.escape(extension)}$")
    highest = 0
    for name in existing:
        match = pattern.match(name)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{base} ({highest + 1}){extension}"


class LocalObjectStorage:
    """Buckets are directories under ``root``; object paths are POSIX-style keys."""

    def __init__(
        self,
        root: str,
        public_base_url: str,
        secret_key: str,
        signed_url_expire_seconds: int = 3600,
    ) -> None:
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        self.signed_url_expire_seconds = signed_url_expire_seconds
        self._serializer = URLSafeTimedSerializer(secret_key, salt="hrdesk-storage")

    def _resolve(self, bucket: str, path: str) -> Path:
        key = PurePosixPath(path)
        if not bucket or "/" in bucket or bucket in (".", ".."):
            raise StorageError(f"Invalid bucket name: {bucket!r}")
        if key.is_absolute() or not key.parts or ".." in key.parts:
            raise StorageError(f"Invalid object path: {path!r}")
        return self.root.joinpath(bucket, *key.parts)

    def upload(self, bucket: str, path: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        target = self._resolve(bucket, path)
        if target.exists():
            raise StorageError(f"Object already exists: {bucket}/{path}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %s/%s (%d bytes)", bucket, path, len(data))
        return StoredObject(bucket, path, len(data), content_type, self.public_url(bucket, path))

    def download(self, bucket: str, path: str) -> bytes:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise StorageError(f"Object not found: {bucket}/{path}")
        return target.read_bytes()

    def local_path(self, bucket: str, path: str) -> Path:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise StorageError(f"Object not found: {bucket}/{path}")
        return target

    def exists(self, bucket: str, path: str) -> bool:
        return self._resolve(bucket, path).is_file()

    def list(self, bucket: str, prefix: str = "") -> List[str]:
        bucket_dir = self.root / bucket
        if not bucket_dir.is_dir():
            return []
        names = []
        for dirpath, _, filenames in os.walk(bucket_dir):
            for filename in filenames:
                relative = Path(dirpath, filename).relative_to(bucket_dir).as_posix()
                if relative.startswith(prefix):
                    names.append(relative)
        return sorted(names)

    def delete(self, bucket: str, paths: Iterable[str]) -> int:
        removed = 0
        for path in paths:
            target = self._resolve(bucket, path)
            if target.is_file():
                target.unlink()
                removed += 1
            else:
                logger.warning("Asked to delete missing object %s/%s", bucket, path)
        return removed

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/public/{bucket}/{quote(path)}"

    def create_signed_url(self, bucket: str, path: str, expires_in: Optional[int] = None) -> str:
        if not self.exists(bucket, path):
            raise StorageError(f"Object not found: {bucket}/{path}")
        expires_in = expires_in or self.signed_url_expire_seconds
        token = self._serializer.dumps({"bucket": bucket, "path": path, "expires_in": expires_in})
        return f"{self.public_base_url}/signed/{token}"

    def resolve_signed_token(self, token: str) -> Tuple[str, str]:
        """Return ``(bucket, path)`` for a valid, unexpired signed token."""
        try:
            payload, signed_at = self._serializer.loads(token, return_timestamp=True)
        except BadSignature as exc:
            raise StorageError("Invalid download token") from exc

        age = datetime.now(timezone.utc) - signed_at
        if age > timedelta(seconds=payload["expires_in"]):
            raise StorageError("Download link has expired")
        return payload["bucket"], payload["path"]


_storage: Optional[LocalObjectStorage] = None


def get_storage() -> LocalObjectStorage:
    """Get the storage backend configured for this process."""
    global _storage
    if _storage is None:
        _storage = LocalObjectStorage(
            settings.STORAGE_ROOT,
            settings.STORAGE_PUBLIC_BASE_URL,
            settings.JWT_SECRET_KEY,
            settings.SIGNED_URL_EXPIRE_SECONDS,
        )
    return _storage
