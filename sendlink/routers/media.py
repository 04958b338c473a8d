# sendlink/routers/media.py
# FastAPI router for media uploads (multipart form: file, boardId)

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from sendlink.middleware.error_handler import ValidationError
from sendlink.schemas.board import MediaUploadResponse
from sendlink.services.media_service import MediaService


router = APIRouter(tags=["Media"])


def get_service(request: Request) -> MediaService:
    return request.app.state.media


@router.post("/media/upload", response_model=MediaUploadResponse)
async def upload_media(
    file: Optional[UploadFile] = File(None),
    boardId: Optional[str] = Form(None),
    service: MediaService = Depends(get_service),
) -> MediaUploadResponse:
    if not boardId:
        raise ValidationError("Board ID is required")
    if file is None:
        raise ValidationError("No file uploaded")

    # Read one byte past the limit so oversize uploads are detected without buffering them whole
    data = await file.read(service.max_upload_bytes + 1)
    media_item, board = await service.attach(boardId, data, file.filename, file.content_type)
    return MediaUploadResponse(
        message="File uploaded successfully",
        mediaItem=media_item,
        board=board,
    )
