# sendlink/routers/share.py
# FastAPI router for share links (slug -> board)

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from sendlink.middleware.error_handler import NotFoundError, ShareExpiredError
from sendlink.repositories.share_link_repository import ShareLinkRepository
from sendlink.schemas.share import ShareCreateRequest, ShareCreateResponse, ShareLinkResponse
from sendlink.utils.boards import to_iso


router = APIRouter(tags=["Share"])


def get_repository(request: Request) -> ShareLinkRepository:
    return request.app.state.share_links


@router.post("/share/create", response_model=ShareCreateResponse)
async def create_share_link(
    payload: ShareCreateRequest,
    request: Request,
    repo: ShareLinkRepository = Depends(get_repository),
) -> ShareCreateResponse:
    """Create a share link; an empty customSlug counts as none."""
    link = await repo.create(
        payload.boardId or "",
        custom_slug=payload.customSlug or None,
        expiry_seconds=payload.expirySeconds,
    )
    base_url = request.app.state.settings.PUBLIC_BASE_URL
    return ShareCreateResponse(
        message="Share link created successfully",
        slug=link["slug"],
        expiresAt=to_iso(link["expires_at"]),
        boardId=link["board_id"],
        url=f"{base_url}/share/{link['slug']}",
    )


@router.get("/share/{slug}", response_model=ShareLinkResponse)
async def resolve_share_link(slug: str, repo: ShareLinkRepository = Depends(get_repository)) -> ShareLinkResponse:
    """Resolve an active slug; expired and unknown slugs are both 404, told apart by error code."""
    link = await repo.resolve(slug)
    if link is None:
        if await repo.is_expired(slug):
            raise ShareExpiredError(slug)
        raise NotFoundError("Share link not found", details={"slug": slug})
    return ShareLinkResponse.from_record(link)
