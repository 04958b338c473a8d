# sendlink/routers/boards.py
# FastAPI router for board documents

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request

from sendlink.middleware.error_handler import NotFoundError
from sendlink.repositories.board_repository import BoardRepository
from sendlink.schemas.board import BoardUpdate, MessageResponse
from sendlink.utils.logger import log_info


router = APIRouter(tags=["Boards"])


def get_repository(request: Request) -> BoardRepository:
    return request.app.state.boards


@router.get("/boards/{board_id}")
async def get_board(board_id: str, repo: BoardRepository = Depends(get_repository)) -> Dict[str, Any]:
    """Load a board; storage failures are reported as not found."""
    board = await repo.get(board_id)
    if board is None:
        log_info(f"GET /boards: board not found id={board_id}")
        raise NotFoundError("Board not found", details={"board_id": board_id})
    return board


@router.put("/boards/{board_id}")
async def put_board(
    board_id: str,
    payload: Optional[BoardUpdate] = None,
    repo: BoardRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Create or update a board and return the merged, persisted record."""
    fields = payload.to_fields() if payload else {}
    board = await repo.put(board_id, fields)
    log_info(f"PUT /boards: saved board id={board_id} fields={sorted(fields)}")
    return board


@router.delete("/boards/{board_id}")
async def delete_board(
    board_id: str,
    mediaIndex: Optional[int] = None,
    mediaId: Optional[str] = None,
    repo: BoardRepository = Depends(get_repository),
):
    """Delete one media item (by index or id) or, with neither given, the whole board."""
    if mediaIndex is not None:
        return await repo.delete_media_at(board_id, mediaIndex)
    if mediaId is not None:
        return await repo.delete_media(board_id, mediaId)

    await repo.delete(board_id)
    log_info(f"DELETE /boards: deleted board id={board_id}")
    return MessageResponse(message="Board deleted")
