"""Filesystem-backed ObjectStoragePort used with the TinyDB backend.

Blobs live under ``{media_root}/{bucket}/{path}`` and are served by the API's
``/media`` static mount, so public URLs are ``{public_base}/{bucket}/{path}``.
"""

from datetime import datetime, timezone
from pathlib import Path

from creator_toolkit.platform.errors import ObjectStorageError


class LocalObjectStorage:
    """ObjectStoragePort implementation on the local filesystem."""

    def __init__(self, root: str | Path, public_base: str):
        self._root = Path(root)
        self._public_base = public_base.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        base = (self._root / bucket).resolve()
        target = (base / path).resolve()
        if base != target and base not in target.parents:
            raise ObjectStorageError(f"Path escapes bucket: {path}")
        return target

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise ObjectStorageError(f"Object already exists: {bucket}/{path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise ObjectStorageError(f"Failed to write {bucket}/{path}: {e}") from e
        return self.public_url(bucket, path)

    def remove(self, bucket: str, paths: list[str]) -> None:
        for path in paths:
            try:
                self._resolve(bucket, path).unlink(missing_ok=True)
            except OSError as e:
                raise ObjectStorageError(f"Failed to delete {bucket}/{path}: {e}") from e

    def list(self, bucket: str, prefix: str) -> list[dict]:
        directory = self._resolve(bucket, prefix)
        if not directory.is_dir():
            return []
        entries = []
        for child in sorted(directory.iterdir()):
            if not child.is_file():
                continue
            mtime = datetime.fromtimestamp(child.stat().st_mtime, tz=timezone.utc)
            entries.append({"name": child.name, "created_at": mtime.isoformat()})
        return entries

    def public_url(self, bucket: str, path: str) -> str:
        return f"{self._public_base}/{bucket}/{path}"

    def path_from_url(self, bucket: str, url: str) -> str | None:
        prefix = f"{self._public_base}/{bucket}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):].split("?", 1)[0] or None

    def owns(self, bucket: str, url: str) -> bool:
        return self.path_from_url(bucket, url) is not None
