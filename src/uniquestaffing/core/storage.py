from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from pathlib import Path
from urllib.parse import quote, urlencode

from uniquestaffing.config import Settings
from uniquestaffing.core.documents import ALLOWED_BUCKETS, file_extension
from uniquestaffing.errors import NotFound

logger = logging.getLogger(__name__)


class StorageClient:
    """File buckets on local disk with HMAC-signed, expiring download links."""

    def __init__(self, settings: Settings):
        self.root = Path(settings.storage_dir)
        self.secret = settings.secret_key.encode("utf-8")
        self.default_ttl = settings.signed_url_ttl_sec

    def ensure_buckets(self) -> None:
        for bucket in ALLOWED_BUCKETS:
            (self.root / bucket).mkdir(parents=True, exist_ok=True)

    def _resolve(self, bucket: str, path: str) -> Path:
        if bucket not in ALLOWED_BUCKETS:
            raise NotFound(f"bucket '{bucket}' does not exist")
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise NotFound(f"object '{path}' not found in bucket '{bucket}'")
        return target

    def upload(self, bucket: str, filename: str, data: bytes, folder: str | None = None) -> str:
        extension = file_extension(filename) or "bin"
        name = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.{extension}"
        path = f"{folder.strip('/')}/{name}" if folder else name

        target = self._resolve(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored object bucket=%s path=%s size=%s", bucket, path, len(data))
        return path

    def open(self, bucket: str, path: str) -> Path:
        target = self._resolve(bucket, path)
        if not target.is_file():
            raise NotFound(f"object '{path}' not found in bucket '{bucket}'")
        return target

    def remove(self, bucket: str, path: str) -> bool:
        try:
            target = self.open(bucket, path)
        except NotFound:
            return False
        target.unlink()
        return True

    def _sign(self, bucket: str, path: str, expires: int) -> str:
        message = f"{bucket}/{path}:{expires}".encode("utf-8")
        return hmac.new(self.secret, message, hashlib.sha256).hexdigest()

    def create_signed_url(self, bucket: str, path: str, expires_in: int | None = None, now: float | None = None) -> str:
        self.open(bucket, path)
        expires = int((now if now is not None else time.time()) + (expires_in or self.default_ttl))
        query = urlencode({"expires": expires, "signature": self._sign(bucket, path, expires)})
        return f"/storage/{bucket}/{quote(path)}?{query}"

    def verify_signature(
        self,
        bucket: str,
        path: str,
        expires: int,
        signature: str,
        now: float | None = None,
    ) -> bool:
        if expires < int(now if now is not None else time.time()):
            return False
        return hmac.compare_digest(self._sign(bucket, path, expires), signature)
