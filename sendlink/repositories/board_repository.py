# sendlink/repositories/board_repository.py
# Repository for board documents in the key-value store

from __future__ import annotations

from typing import Any, Dict, Optional

from sendlink.constants import BOARD_KEY_PREFIX, BOARD_TTL_SECONDS
from sendlink.middleware.error_handler import InvalidIndexError, NotFoundError
from sendlink.storage.kv import KeyValueStore
from sendlink.utils.boards import Clock, merge_board, normalize_board, utcnow
from sendlink.utils.logger import log_exception, log_info


def board_key(board_id: str) -> str:
    return f"{BOARD_KEY_PREFIX}:{board_id}"


class BoardRepository:
    """
    Board persistence with a rolling inactivity TTL.

    Every write goes through put(), so every write refreshes the TTL.
    Positional media deletion is not safe against concurrent writers: an index
    read by one client can point at a different item once another client has
    appended or removed media. delete_media() addresses items by stable ID.
    """

    def __init__(self, store: KeyValueStore, ttl_seconds: int = BOARD_TTL_SECONDS, clock: Clock = utcnow):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def _load(self, board_id: str) -> Optional[Dict[str, Any]]:
        """Read without swallowing backend errors."""
        board = await self.store.get_json(board_key(board_id))
        if board is None:
            return None
        return normalize_board(board)

    async def get(self, board_id: str) -> Optional[Dict[str, Any]]:
        """Return the board, or None when absent or when the backend fails."""
        try:
            return await self._load(board_id)
        except Exception as e:
            log_exception(e, f"BoardRepository.get board_id={board_id}")
            return None

    async def put(self, board_id: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Merge `data` over defaults and the stored record, stamp and persist."""
        stored = await self._load(board_id)
        board = merge_board(board_id, stored, data, self._clock())
        await self.store.set_json(board_key(board_id), board, self.ttl_seconds)
        return board

    async def get_or_create(self, board_id: str) -> Dict[str, Any]:
        """Return the stored board, creating an empty one when absent."""
        board = await self._load(board_id)
        if board is None:
            log_info(f"BoardRepository: creating board {board_id}")
            board = await self.put(board_id, {})
        return board

    async def _require(self, board_id: str) -> Dict[str, Any]:
        board = await self._load(board_id)
        if board is None:
            raise NotFoundError("Board not found", details={"board_id": board_id})
        return board

    async def append_media(self, board_id: str, *items: Dict[str, Any]) -> Dict[str, Any]:
        """Append items in order to the end of the board's media list."""
        board = await self._require(board_id)
        media = board["media"] + [dict(item) for item in items]
        return await self.put(board_id, {"media": media})

    async def delete_media_at(self, board_id: str, index: int) -> Dict[str, Any]:
        board = await self._require(board_id)
        media = board["media"]
        if index < 0 or index >= len(media):
            raise InvalidIndexError(index, len(media))
        removed = media[index]
        remaining = media[:index] + media[index + 1:]
        log_info(f"BoardRepository: removed media id={removed.get('id')} index={index} board={board_id}")
        return await self.put(board_id, {"media": remaining})

    async def delete_media(self, board_id: str, media_id: str) -> Dict[str, Any]:
        board = await self._require(board_id)
        remaining = [item for item in board["media"] if item.get("id") != media_id]
        if len(remaining) == len(board["media"]):
            raise NotFoundError("Media item not found", details={"media_id": media_id})
        return await self.put(board_id, {"media": remaining})

    async def delete(self, board_id: str) -> None:
        """Unconditional, idempotent delete."""
        await self.store.delete(board_key(board_id))
