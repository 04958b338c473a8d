# sendlink/client/local_mirror.py
# Durable client-side copy of boards and share mappings, used after the
# client has fallen back from the HTTP API.

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sendlink.middleware.error_handler import InvalidIndexError, NotFoundError
from sendlink.utils.boards import Clock, merge_board, normalize_board, to_iso, utcnow

logger = logging.getLogger(__name__)


def _empty() -> Dict[str, Any]:
    return {"boards": {}, "shareMap": {}}


class LocalMirror:
    """
    JSON file holding {"boards": {id: Board}, "shareMap": {slug: {...}}}.

    Board writes go through the same merge as the server store, so a board
    written here has the same shape as one returned by the API.
    """

    def __init__(self, path: str, clock: Clock = utcnow):
        self.path = path
        self._clock = clock
        self.data = self._read()

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return _empty()
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading local mirror {self.path}: {e}")
            return _empty()
        if not isinstance(data, dict):
            return _empty()
        data.setdefault("boards", {})
        data.setdefault("shareMap", {})
        return data

    def save(self) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self.data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    # --- boards ---

    def get_board(self, board_id: str) -> Optional[Dict[str, Any]]:
        board = self.data["boards"].get(board_id)
        if board is None:
            return None
        return normalize_board(json.loads(json.dumps(board)))

    def put_board(self, board_id: str, fields: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        board = merge_board(board_id, self.data["boards"].get(board_id), fields, self._clock())
        self.data["boards"][board_id] = board
        self.save()
        return self.get_board(board_id)

    def append_media(self, board_id: str, item: Dict[str, Any]) -> Dict[str, Any]:
        """Append to the board, creating it when absent (same policy as uploads)."""
        board = self.get_board(board_id) or self.put_board(board_id, {})
        return self.put_board(board_id, {"media": board["media"] + [item]})

    def delete_media_at(self, board_id: str, index: int) -> Dict[str, Any]:
        board = self.get_board(board_id)
        if board is None:
            raise NotFoundError("Board not found", details={"board_id": board_id})
        media = board["media"]
        if index < 0 or index >= len(media):
            raise InvalidIndexError(index, len(media))
        return self.put_board(board_id, {"media": media[:index] + media[index + 1:]})

    # --- share map ---

    def put_share(self, slug: str, board_id: str, expiry_seconds: int) -> Dict[str, Any]:
        entry = {
            "boardId": board_id,
            "createdAt": to_iso(self._clock()),
            "expirySeconds": expiry_seconds,
            "accessCount": 0,
        }
        self.data["shareMap"][slug] = entry
        self.save()
        return dict(entry, expiresAt=to_iso(self._expires_at(entry)))

    def _expires_at(self, entry: Dict[str, Any]) -> datetime:
        created_at = datetime.fromisoformat(entry["createdAt"].replace("Z", "+00:00"))
        return created_at + timedelta(seconds=entry["expirySeconds"])

    def is_share_expired(self, slug: str) -> bool:
        entry = self.data["shareMap"].get(slug)
        return entry is not None and self._expires_at(entry) <= self._clock()

    def resolve_share(self, slug: str) -> Optional[Dict[str, Any]]:
        """Active share record with its access counted, shaped like the API response."""
        entry = self.data["shareMap"].get(slug)
        if entry is None:
            return None
        expires_at = self._expires_at(entry)
        if expires_at <= self._clock():
            return None
        entry["accessCount"] = entry.get("accessCount", 0) + 1
        self.save()
        return {
            "slug": slug,
            "boardId": entry["boardId"],
            "createdAt": entry["createdAt"],
            "expiresAt": to_iso(expires_at),
            "accessCount": entry["accessCount"],
        }
