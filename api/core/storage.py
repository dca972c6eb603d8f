"""
Blob storage HTTP client helpers.

Used endpoints (object-storage API with public buckets):
- POST {base}/object/{bucket}/{key}        -> upload bytes
- GET  {base}/object/public/{bucket}/{key} -> public URL of an uploaded object
"""

from __future__ import annotations

from urllib.parse import quote

import httpx

from . import config


# Storage failures are explicit and separable from other runtime errors.
class StorageError(RuntimeError):
    pass


def _normalize_base_url(base_url: str) -> str:
    base_url = (base_url or "").strip()
    if not base_url:
        raise StorageError("STORAGE_BASE_URL is empty.")
    return base_url.rstrip("/")


def _object_path(bucket: str, key: str) -> str:
    key = (key or "").strip().lstrip("/")
    if not key:
        raise StorageError("Storage key is empty.")
    return f"{quote(bucket, safe='')}/{quote(key, safe='/')}"


async def put_object(
    key: str,
    data: bytes,
    *,
    content_type: str | None = None,
    timeout_s: float = 60.0,
) -> None:
    """
    Upload `data` under `key` in the configured bucket. Never overwrites.
    """
    base_url = _normalize_base_url(config.storage_base_url())
    path = _object_path(config.storage_bucket(), key)

    headers = {
        "Content-Type": content_type or "application/octet-stream",
        "x-upsert": "false",
    }
    api_key = config.storage_api_key()
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout_s) as client:
            resp = await client.post(f"/object/{path}", content=data, headers=headers)
    except httpx.HTTPError as exc:
        raise StorageError(f"Storage upload failed: {exc}") from exc

    if resp.status_code not in (200, 201):
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:300]
        raise StorageError(f"Storage upload failed: {resp.status_code} {body}")


def public_url(key: str) -> str:
    base_url = _normalize_base_url(config.storage_base_url())
    return f"{base_url}/object/public/{_object_path(config.storage_bucket(), key)}"
