"""Copy vendor artifacts into owned storage and clean them up later.

Vendor output URLs are short-lived, so every artifact is downloaded and
re-uploaded under ``{user_id}/{tool_id}/{batch_id}/{identifier}.{ext}``
before its URL is handed to a caller.
"""

import mimetypes
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import requests

from creator_toolkit.features.assets.models import StoredAsset, SweepResult
from creator_toolkit.platform.errors import ObjectStorageError, RelocationError
from creator_toolkit.platform.logging_config import get_logger
from creator_toolkit.platform.protocols import ObjectStoragePort

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# mimetypes maps image/jpeg to .jpe on some platforms
_PREFERRED_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "audio/mpeg": "mp3",
}


def _content_type(response: requests.Response, source_url: str) -> str:
    header = response.headers.get("Content-Type", "").split(";", 1)[0].strip()
    if header and header != DEFAULT_CONTENT_TYPE:
        return header
    guessed, _ = mimetypes.guess_type(urlparse(source_url).path)
    return guessed or header or DEFAULT_CONTENT_TYPE


def _extension(content_type: str, source_url: str) -> str:
    if content_type in _PREFERRED_EXTENSIONS:
        return _PREFERRED_EXTENSIONS[content_type]
    guessed = mimetypes.guess_extension(content_type)
    if guessed:
        return guessed.lstrip(".")
    suffix = urlparse(source_url).path.rsplit("/", 1)[-1]
    if "." in suffix:
        return suffix.rsplit(".", 1)[-1].lower()
    return "bin"


def build_asset_path(
    user_id: str, tool_id: str, batch_id: str, identifier: str, extension: str
) -> str:
    """Deterministic, user-scoped storage path for one artifact."""
    return f"{user_id}/{tool_id}/{batch_id}/{identifier}.{extension.lstrip('.')}"


def relocate_asset(
    source_url: str,
    *,
    objects: ObjectStoragePort,
    session: requests.Session,
    bucket: str,
    user_id: str,
    tool_id: str,
    batch_id: str,
    identifier: str,
    upsert: bool = False,
    timeout: float = 60.0,
) -> StoredAsset:
    """Download ``source_url`` and store it under the caller's path.

    Raises:
        RelocationError: If the download fails, returns non-2xx, or the
            storage write fails. Nothing is returned pointing at the vendor.
    """
    try:
        response = session.get(source_url, timeout=timeout)
    except requests.RequestException as e:
        raise RelocationError(f"Failed to download artifact: {e}") from e
    if not response.ok:
        raise RelocationError(
            f"Failed to download artifact: HTTP {response.status_code}"
        )

    content_type = _content_type(response, source_url)
    path = build_asset_path(
        user_id, tool_id, batch_id, identifier, _extension(content_type, source_url)
    )
    data = response.content

    try:
        url = objects.upload(bucket, path, data, content_type, upsert=upsert)
    except ObjectStorageError as e:
        raise RelocationError(f"Failed to store artifact: {e}") from e

    if not objects.owns(bucket, url):
        raise RelocationError(f"Storage returned a foreign URL for {path}")

    logger.info(
        "asset_relocated",
        bucket=bucket,
        path=path,
        size=len(data),
        content_type=content_type,
    )
    return StoredAsset(
        bucket=bucket,
        path=path,
        url=url,
        content_type=content_type,
        size=len(data),
        source_url=source_url,
    )


def remove_asset(objects: ObjectStoragePort, bucket: str, url: str) -> bool:
    """Delete a stored asset by its public URL.

    Returns False for URLs this storage does not own.
    """
    path = objects.path_from_url(bucket, url)
    if path is None:
        logger.warning("asset_remove_foreign_url", bucket=bucket, url=url)
        return False
    objects.remove(bucket, [path])
    logger.info("asset_removed", bucket=bucket, path=path)
    return True


def sweep_expired_assets(
    objects: ObjectStoragePort,
    bucket: str,
    prefix: str,
    *,
    name_prefix: str | None = None,
    max_age: timedelta = timedelta(hours=24),
    now: datetime | None = None,
) -> SweepResult:
    """Delete blobs directly under ``prefix`` older than ``max_age``.

    Entries that cannot be listed or deleted are counted, not raised.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - max_age
    result = SweepResult()

    try:
        entries = objects.list(bucket, prefix)
    except ObjectStorageError as e:
        logger.error("asset_sweep_list_failed", bucket=bucket, prefix=prefix, error=str(e))
        result.errors += 1
        return result

    base = prefix.rstrip("/")
    for entry in entries:
        name = entry.get("name", "")
        if name_prefix and not name.startswith(name_prefix):
            continue
        try:
            created = datetime.fromisoformat(entry["created_at"])
        except (KeyError, TypeError, ValueError):
            continue
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        if created >= cutoff:
            continue

        path = f"{base}/{name}" if base else name
        try:
            objects.remove(bucket, [path])
            result.deleted += 1
        except ObjectStorageError as e:
            logger.warning("asset_sweep_delete_failed", bucket=bucket, path=path, error=str(e))
            result.errors += 1

    logger.info(
        "asset_sweep_completed",
        bucket=bucket,
        prefix=prefix,
        deleted=result.deleted,
        errors=result.errors,
    )
    return result
