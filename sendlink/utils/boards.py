# sendlink/utils/boards.py
# Single source of truth for the board document shape
# Pure functions shared by the server store and the client mirror

from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from sendlink.constants import (
    BOARD_ID_ALPHABET,
    BOARD_ID_LENGTH,
    MEDIA_ID_SUFFIX_LENGTH,
)

Clock = Callable[[], datetime]

# Fields a caller may write through a board update
WRITABLE_FIELDS = ("text", "media", "createdAt")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format as ISO-8601 UTC with millisecond precision and a 'Z' suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def random_base36(length: int) -> str:
    return "".join(secrets.choice(BOARD_ID_ALPHABET) for _ in range(length))


def generate_board_id() -> str:
    return random_base36(BOARD_ID_LENGTH)


def generate_media_id(now_ms: Optional[int] = None) -> str:
    """Timestamp plus random suffix, e.g. media_1718000000000_k3j9x0a1b."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"media_{now_ms}_{random_base36(MEDIA_ID_SUFFIX_LENGTH)}"


def merge_board(
    board_id: str,
    stored: Optional[Dict[str, Any]],
    data: Optional[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    """
    Build the record to persist for a board write.

    Precedence: defaults < stored record < supplied fields (shallow overwrite).
    createdAt from the caller is only honoured when nothing is stored yet.
    lastModified and updatedAt are always stamped with `now`.
    """
    stamp = to_iso(now)
    board: Dict[str, Any] = {
        "id": board_id,
        "text": "",
        "media": [],
        "createdAt": stamp,
    }
    if stored:
        board.update(stored)

    for field in WRITABLE_FIELDS:
        if not data or field not in data or data[field] is None:
            continue
        if field == "createdAt" and stored:
            continue
        board[field] = data[field]

    board["id"] = board_id
    if board.get("media") is None:
        board["media"] = []
    board["media"] = list(board["media"])
    board["lastModified"] = stamp
    board["updatedAt"] = stamp
    return board


def normalize_board(board: Dict[str, Any]) -> Dict[str, Any]:
    """Guarantee the media list is present on records read back from storage."""
    if board.get("media") is None:
        board["media"] = []
    if board.get("text") is None:
        board["text"] = ""
    return board
