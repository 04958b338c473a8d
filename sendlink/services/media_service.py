from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from sendlink.constants import MAX_UPLOAD_BYTES, UNKNOWN_FILE_NAME
from sendlink.middleware.error_handler import PayloadTooLargeError, ValidationError
from sendlink.repositories.board_repository import BoardRepository
from sendlink.storage.blob import BlobStore, build_object_key, guess_content_type
from sendlink.utils.boards import Clock, generate_media_id, to_iso, utcnow
from sendlink.utils.logger import log_info


class MediaService:
    """Stores uploads in the blob store and attaches them to boards.

    Uploading to a board that does not exist yet creates it with empty text.
    """

    def __init__(
        self,
        boards: BoardRepository,
        blobs: BlobStore,
        max_upload_bytes: int = MAX_UPLOAD_BYTES,
        clock: Clock = utcnow,
    ):
        self.boards = boards
        self.blobs = blobs
        self.max_upload_bytes = max_upload_bytes
        self._clock = clock

    async def attach(
        self,
        board_id: str,
        data: bytes,
        file_name: Optional[str],
        mime_type: Optional[str],
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        if not board_id:
            raise ValidationError("Board ID is required")
        if len(data) > self.max_upload_bytes:
            raise PayloadTooLargeError(self.max_upload_bytes)

        name = file_name or UNKNOWN_FILE_NAME
        content_type = guess_content_type(file_name, mime_type)
        now = self._clock()
        media_id = generate_media_id(int(now.timestamp() * 1000))

        url = await self.blobs.put(build_object_key(name, media_id), data, content_type)

        media_item = {
            "id": media_id,
            "url": url,
            "name": name,
            "type": content_type,
            "size": len(data),
            "uploadedAt": to_iso(now),
        }

        await self.boards.get_or_create(board_id)
        board = await self.boards.append_media(board_id, media_item)
        log_info(f"MediaService: attached {media_item['id']} ({media_item['size']} bytes) to board {board_id}")
        return media_item, board
