from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel

from sendlink.constants import DEFAULT_SHARE_EXPIRY_SECONDS
from sendlink.utils.boards import to_iso


class ShareCreateRequest(BaseModel):
    boardId: Optional[str] = None
    customSlug: Optional[str] = None
    expirySeconds: int = DEFAULT_SHARE_EXPIRY_SECONDS


class ShareCreateResponse(BaseModel):
    message: str
    slug: str
    expiresAt: str
    boardId: str
    url: str


class ShareLinkResponse(BaseModel):
    slug: str
    boardId: str
    createdAt: str
    expiresAt: str
    accessCount: int

    @classmethod
    def from_record(cls, link: Dict[str, Any]) -> "ShareLinkResponse":
        return cls(
            slug=link["slug"],
            boardId=link["board_id"],
            createdAt=to_iso(link["created_at"]),
            expiresAt=to_iso(link["expires_at"]),
            accessCount=link["access_count"],
        )
