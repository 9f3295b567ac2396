"""Tag listing endpoint."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import check_rate_limit, get_async_session, get_current_user_id
from schemas.tag import TagListResponse
from services import tag_service

router = APIRouter(prefix="/tags", tags=["tags"], dependencies=[Depends(check_rate_limit)])


@router.get("/", response_model=TagListResponse)
async def list_tags(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_session),
) -> TagListResponse:
    """
    Get all tags used by the current user's transactions with their counts.

    Returns tags sorted by count (most used first), then alphabetically.
    """
    tags = await tag_service.list_tag_counts(db, user_id)
    return TagListResponse(tags=tags)
