from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class MediaItem(BaseModel):
    """Metadata for one uploaded file."""
    model_config = ConfigDict(extra="allow")

    id: str
    url: str
    name: str
    type: str
    size: int
    uploadedAt: str


class BoardUpdate(BaseModel):
    """PUT body; fields left out keep their stored values."""
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None
    media: Optional[List[MediaItem]] = None
    createdAt: Optional[str] = None

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class MessageResponse(BaseModel):
    message: str


class MediaUploadResponse(BaseModel):
    message: str
    mediaItem: Dict[str, Any]
    board: Dict[str, Any]
