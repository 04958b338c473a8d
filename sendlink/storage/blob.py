# sendlink/storage/blob.py
# Blob store collaborator: persists bytes under an object key, returns a durable URL

from __future__ import annotations

import asyncio
import mimetypes
import os
import re
import uuid
from typing import Optional, Protocol

from sendlink.constants import DEFAULT_MIME_TYPE
from sendlink.middleware.error_handler import StorageError

_FILENAME_RE = re.compile(r"[^a-zA-Z0-9._-]")


class BlobStore(Protocol):
    async def put(self, key: str, data: bytes, content_type: str) -> str:
        ...


def sanitize_filename(name: str) -> str:
    base = os.path.basename(name or "")
    cleaned = _FILENAME_RE.sub("", base)
    return cleaned or f"{uuid.uuid4().hex}"


def build_object_key(filename: Optional[str], media_id: str) -> str:
    """Key unique per media item, so equal names never share an object."""
    return f"{media_id}-{sanitize_filename(filename or '')}"


def guess_content_type(filename: Optional[str], provided: Optional[str] = None) -> str:
    if provided:
        return provided
    guessed, _ = mimetypes.guess_type(filename or "")
    return guessed or DEFAULT_MIME_TYPE


class LocalBlobStore:
    """Writes objects below `root`; URLs are `url_prefix/<key>`."""

    def __init__(self, root: str, url_prefix: str):
        self.root = root
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, key: str) -> str:
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(os.path.abspath(self.root) + os.sep):
            raise StorageError(f"Object key escapes blob root: {key}")
        return path

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self.path_for(key)

        def _write() -> None:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageError("Failed to store uploaded file") from e
        return f"{self.url_prefix}/{key.lstrip('/')}"
